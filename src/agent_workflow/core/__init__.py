"""Core package initialization."""

from agent_workflow.core.config import EngineConfig, LLMConfig, WorkflowSettings

__all__ = [
    "EngineConfig",
    "LLMConfig",
    "WorkflowSettings",
]
