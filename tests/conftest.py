"""Test configuration and fixtures."""

from __future__ import annotations

import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from agent_workflow.core.config import EngineConfig, LLMConfig, WorkflowSettings
from agent_workflow.errors import ToolExecutionFailed
from agent_workflow.tools.registry import Tool, ToolContext, ToolRegistry, ToolResult
from agent_workflow.tools.stream import ResultStream, produce_stream


class RecordingTool:
    """Tool double that records calls and returns a fixed value or raises."""

    def __init__(
        self,
        value: Any = None,
        error: Exception | None = None,
        stream_values: list[Any] | None = None,
        on_call: Callable[[dict[str, Any]], None] | None = None,
    ) -> None:
        self.value = value
        self.error = error
        self.stream_values = stream_values
        self.on_call = on_call
        self.calls: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def __call__(self, inputs: dict[str, Any], context: ToolContext) -> ToolResult:
        with self._lock:
            self.calls.append(dict(inputs))
        if self.on_call is not None:
            self.on_call(inputs)
        if self.error is not None:
            raise self.error
        if self.stream_values is not None:
            values = list(self.stream_values)

            def _pump(stream: ResultStream) -> None:
                for value in values:
                    stream.put(value)

            return ToolResult(value=self.value, stream=produce_stream(_pump, name="test"))
        return ToolResult.of(self.value)


@pytest.fixture
def make_tool() -> Callable[..., tuple[Tool, RecordingTool]]:
    """Build a `Tool` backed by a `RecordingTool`."""

    def _make(tool_id: str = "tool", **kwargs: Any) -> tuple[Tool, RecordingTool]:
        recorder = RecordingTool(**kwargs)
        return Tool(id=tool_id, name=tool_id.title(), execute=recorder), recorder

    return _make


@pytest.fixture
def registry(make_tool: Callable[..., tuple[Tool, RecordingTool]]) -> ToolRegistry:
    """Registry with an echo tool, a failing tool and a constant tool."""
    registry = ToolRegistry()

    def echo(inputs: dict[str, Any], context: ToolContext) -> ToolResult:
        return ToolResult.of(inputs.get("value"))

    registry.register(Tool(id="echo", name="Echo", execute=echo))
    registry.register(make_tool("fail", error=ToolExecutionFailed("boom"))[0])
    registry.register(make_tool("const", value="constant")[0])
    return registry


@pytest.fixture
def engine_config() -> EngineConfig:
    """Provide a test engine configuration."""
    return EngineConfig(max_workers=4, task_timeout_seconds=None)


@pytest.fixture
def llm_config() -> LLMConfig:
    """Provide a test LLM configuration."""
    return LLMConfig(
        openai_api_key="test-key",
        chat_model="gpt-4",
    )


@pytest.fixture
def settings(llm_config: LLMConfig, engine_config: EngineConfig) -> WorkflowSettings:
    """Provide test settings."""
    return WorkflowSettings(
        log_level="DEBUG",
        debug=True,
        llm=llm_config,
        engine=engine_config,
    )


@pytest.fixture
def workflow_file(tmp_path: Path) -> Path:
    """A small two-agent workflow definition on disk."""
    path = tmp_path / "workflow.json"
    path.write_text(
        """
        {
          "tasks": [
            {"id": "t_text", "name": "Make text", "tool_id": "text_to_pdf",
             "inputs": {"text": "hello"}},
            {"id": "t_echo", "name": "Echo", "tool_id": "text_to_pdf",
             "bindings": [{"source_agent": "a1", "source_task": "t_text",
                           "target_input": "text"}]}
          ],
          "agents": [
            {"id": "a1", "name": "First", "tasks": ["t_text"]},
            {"id": "a2", "name": "Second", "depends_on": ["a1"], "tasks": ["t_echo"]}
          ]
        }
        """,
        encoding="utf-8",
    )
    return path
