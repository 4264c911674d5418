"""Agent Workflow.

Schedules a small graph of named agents, each running tool-backed tasks,
to completion:
- dependency-gated barrier passes, sequential or concurrent
- declarative passing of upstream task results into downstream inputs
- built-in document, embedding, completion and image tools
"""

__version__ = "0.1.0"

from agent_workflow.core.config import WorkflowSettings
from agent_workflow.errors import ErrorKind, WorkflowError
from agent_workflow.workflow.manager import ExecutionMode, FailurePolicy, WorkflowManager

__all__ = [
    "__version__",
    "ErrorKind",
    "ExecutionMode",
    "FailurePolicy",
    "WorkflowError",
    "WorkflowManager",
    "WorkflowSettings",
]
