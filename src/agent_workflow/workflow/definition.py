"""Declarative workflow definitions loaded from JSON."""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from agent_workflow.workflow.task import InputBinding

_ENV_REF = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)\}$")


def _expand_env(value: Any) -> Any:
    """Replace "${NAME}" strings with the environment value (nested)."""
    if isinstance(value, str):
        match = _ENV_REF.match(value)
        if match:
            return os.environ.get(match.group(1), "")
        return value
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    return value


class TaskDefinition(BaseModel):
    id: str
    name: str
    tool_id: str
    inputs: dict[str, Any] = Field(default_factory=dict)
    bindings: list[InputBinding] = Field(default_factory=list)


class AgentDefinition(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    depends_on: list[str] = Field(default_factory=list)
    task_ids: list[str] = Field(default_factory=list, alias="tasks")
    concurrent: bool = Field(default=False, description="Run this agent's tasks concurrently")


class WorkflowDefinition(BaseModel):
    """Tasks and agents making up one workflow."""

    tasks: list[TaskDefinition] = Field(default_factory=list)
    agents: list[AgentDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self) -> WorkflowDefinition:
        for kind, ids in (
            ("task", [t.id for t in self.tasks]),
            ("agent", [a.id for a in self.agents]),
        ):
            seen: set[str] = set()
            for item_id in ids:
                if item_id in seen:
                    raise ValueError(f"Duplicate {kind} id: {item_id!r}")
                seen.add(item_id)
        return self

    @classmethod
    def from_file(cls, path: Path) -> WorkflowDefinition:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return cls.model_validate(_expand_env(raw))
