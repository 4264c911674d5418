"""LLM package initialization."""

from agent_workflow.llm.factory import LLMFactory
from agent_workflow.llm.provider import LLMProvider

__all__ = [
    "LLMFactory",
    "LLMProvider",
]
