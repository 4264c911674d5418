"""Tool contract and registry."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from agent_workflow.errors import ToolExecutionFailed, UnresolvedReference
from agent_workflow.tools.stream import ResultStream

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Outcome of a successful tool call: a final value, a live stream, or both."""

    value: Any = None
    stream: ResultStream | None = None

    @classmethod
    def of(cls, value: Any) -> ToolResult:
        return cls(value=value)

    @classmethod
    def streaming(cls, stream: ResultStream) -> ToolResult:
        return cls(stream=stream)


@dataclass(slots=True)
class ToolContext:
    """Per-call context threaded through every tool invocation.

    Tools performing long-running work should poll `cancelled` (or call
    `raise_if_cancelled`) between blocking steps.
    """

    timeout: float | None = None
    _cancel: threading.Event = field(default_factory=threading.Event)

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def cancel(self) -> None:
        self._cancel.set()

    def raise_if_cancelled(self) -> None:
        if self._cancel.is_set():
            raise ToolExecutionFailed("Tool call was cancelled")


ToolCallable = Callable[[dict[str, Any], ToolContext], ToolResult]


@dataclass(frozen=True, slots=True)
class Tool:
    """A named external capability. Stateless and immutable once registered."""

    id: str
    name: str
    execute: ToolCallable


class ToolRegistry:
    """Mapping from tool id to tool. Registration is last-write-wins."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> Tool:
        if tool.id in self._tools:
            logger.debug(f"Overwriting tool registration: {tool.id}")
        self._tools[tool.id] = tool
        return tool

    def resolve(self, tool_id: str) -> Tool | None:
        return self._tools.get(tool_id)

    def get(self, tool_id: str) -> Tool:
        tool = self._tools.get(tool_id)
        if tool is None:
            raise UnresolvedReference(f"Unknown tool id: {tool_id!r}")
        return tool

    def ids(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, tool_id: object) -> bool:
        return tool_id in self._tools

    def __len__(self) -> int:
        return len(self._tools)
