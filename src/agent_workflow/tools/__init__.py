"""Tool contract, registry and built-in tools."""

from agent_workflow.tools.registry import Tool, ToolContext, ToolRegistry, ToolResult
from agent_workflow.tools.stream import ResultStream, produce_stream

__all__ = [
    "ResultStream",
    "Tool",
    "ToolContext",
    "ToolRegistry",
    "ToolResult",
    "produce_stream",
]
