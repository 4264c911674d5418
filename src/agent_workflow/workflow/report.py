"""Run summaries for inspecting a finished (or aborted) workflow run."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

AgentStatus = Literal["executed", "failed", "pending"]


class AgentReport(BaseModel):
    agent_id: str
    name: str
    status: AgentStatus
    output_keys: list[str] = Field(default_factory=list)
    stream_task_ids: list[str] = Field(default_factory=list)
    error: str | None = None
    error_kind: str | None = None


class RunReport(BaseModel):
    """Per-agent outcome of a run.

    In best-effort mode failed agents are still marked executed; their
    `status` is "failed" and `output_keys` lists the tasks that did succeed.
    """

    mode: str | None = None
    policy: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    execution_order: list[str] = Field(default_factory=list)
    agents: list[AgentReport] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(agent.status == "executed" for agent in self.agents)

    @property
    def failed_agents(self) -> list[str]:
        return [agent.agent_id for agent in self.agents if agent.status == "failed"]

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(self.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        logger.info(f"Run report saved to: {path}")
