"""Error taxonomy for workflow construction and execution.

Every error raised by the engine carries an `ErrorKind` so callers can branch
on the category without matching on exception classes.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNBOUND_TOOL = "unbound_tool"
    TOOL_INPUT_INVALID = "tool_input_invalid"
    TOOL_EXECUTION_FAILED = "tool_execution_failed"
    UNRESOLVED_REFERENCE = "unresolved_reference"
    WORKFLOW_CYCLE = "workflow_cycle"
    TASK_ALREADY_EXECUTED = "task_already_executed"
    WORKFLOW_STALLED = "workflow_stalled"


class WorkflowError(Exception):
    """Base class for all engine errors."""

    kind: ErrorKind = ErrorKind.TOOL_EXECUTION_FAILED


class UnboundToolError(WorkflowError):
    """Raised when a task is executed without a tool."""

    kind = ErrorKind.UNBOUND_TOOL


class ToolInputInvalid(WorkflowError):
    """Raised by a tool when a required input is missing or has the wrong type."""

    kind = ErrorKind.TOOL_INPUT_INVALID


class ToolExecutionFailed(WorkflowError):
    """Raised when the external call behind a tool fails."""

    kind = ErrorKind.TOOL_EXECUTION_FAILED


class UnresolvedReference(WorkflowError):
    """Raised when construction references an unknown tool, task or agent id."""

    kind = ErrorKind.UNRESOLVED_REFERENCE


class WorkflowCycleError(WorkflowError):
    """Raised when agent dependencies form a cycle."""

    kind = ErrorKind.WORKFLOW_CYCLE

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__("Agent dependencies form a cycle: " + " -> ".join(cycle))


class TaskAlreadyExecuted(WorkflowError):
    """Raised when a task is executed a second time within one run."""

    kind = ErrorKind.TASK_ALREADY_EXECUTED


class WorkflowStalledError(WorkflowError):
    """Raised when a scheduling pass finds no runnable agent but work remains."""

    kind = ErrorKind.WORKFLOW_STALLED

    def __init__(self, pending: list[str]) -> None:
        self.pending = pending
        super().__init__(f"No agent can be scheduled; pending agents: {', '.join(pending)}")
