"""Task: one tool invocation with its inputs and outcome."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from agent_workflow.errors import TaskAlreadyExecuted, ToolExecutionFailed, UnboundToolError
from agent_workflow.tools.registry import Tool, ToolContext, ToolResult
from agent_workflow.tools.stream import ResultStream

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class InputBinding(BaseModel):
    """Declares that a task input is taken from an upstream task's result.

    When `output_key` is set the upstream result must be a mapping (or an
    object with that attribute) and only that entry is bound.
    """

    source_agent: str
    source_task: str
    target_input: str
    output_key: str | None = Field(default=None)


class Task:
    """A unit of work binding a tool to an input map.

    A task runs at most once per workflow run; a second `execute` call raises
    `TaskAlreadyExecuted` instead of calling the tool again.
    """

    def __init__(
        self,
        id: str,
        name: str,
        tool: Tool | None,
        inputs: dict[str, Any] | None = None,
        bindings: list[InputBinding] | None = None,
    ) -> None:
        self.id = id
        self.name = name
        self.tool = tool
        self.inputs: dict[str, Any] = dict(inputs or {})
        self.bindings: list[InputBinding] = list(bindings or [])

        self.result: Any = None
        self.stream: ResultStream | None = None
        self.state = TaskState.PENDING
        self.error: BaseException | None = None
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        tool_id = self.tool.id if self.tool else None
        return f"Task(id={self.id!r}, tool={tool_id!r}, state={self.state.value})"

    def execute(self, context: ToolContext | None = None, *, timeout: float | None = None) -> None:
        """Run the bound tool once and store its result and stream.

        Tool errors propagate unchanged and leave `result` and `stream` unset.

        On timeout the worker thread is abandoned, not stopped: the context is
        cancelled, but a tool that never checks `ToolContext.cancelled` keeps
        running in the background until it returns on its own.

        Raises:
            UnboundToolError: If no tool is bound.
            TaskAlreadyExecuted: If the task already ran in this run.
            ToolExecutionFailed: If the call exceeds `timeout`.
        """
        if self.tool is None:
            raise UnboundToolError(f"task {self.name} has no tool assigned")

        with self._lock:
            if self.state is not TaskState.PENDING:
                raise TaskAlreadyExecuted(
                    f"task {self.id} already executed (state={self.state.value})"
                )
            self.state = TaskState.RUNNING

        context = context or ToolContext(timeout=timeout)
        timeout = timeout if timeout is not None else context.timeout

        logger.debug(f"Executing task {self.id} with tool {self.tool.id}")
        try:
            outcome = self._call(self.tool, context, timeout)
        except Exception as e:
            with self._lock:
                self.state = TaskState.FAILED
                self.error = e
            raise

        with self._lock:
            self.result = outcome.value
            self.stream = outcome.stream
            self.state = TaskState.DONE

    def _call(self, tool: Tool, context: ToolContext, timeout: float | None) -> ToolResult:
        inputs = dict(self.inputs)
        if timeout is None:
            return tool.execute(inputs, context)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"task-{self.id}")
        try:
            future = executor.submit(tool.execute, inputs, context)
            try:
                return future.result(timeout=timeout)
            except FuturesTimeout as e:
                context.cancel()
                raise ToolExecutionFailed(
                    f"task {self.id} timed out after {timeout} seconds"
                ) from e
        finally:
            executor.shutdown(wait=False)

    def reset(self) -> None:
        """Return the task to `pending`, discarding any previous outcome."""
        with self._lock:
            self.result = None
            self.stream = None
            self.error = None
            self.state = TaskState.PENDING
