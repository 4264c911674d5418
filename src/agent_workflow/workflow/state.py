"""Synchronised scheduling state shared by concurrently running agents."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TypeVar

from agent_workflow.workflow.agent import Agent

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class AgentFailure:
    agent_id: str
    error: BaseException

    @property
    def kind(self) -> str:
        kind = getattr(self.error, "kind", None)
        return kind.value if kind is not None else type(self.error).__name__


class SchedulingState:
    """The executed set and failure record behind a single lock.

    Every scheduling decision (dependency check, claim, mark executed) goes
    through this object, so no caller touches the underlying sets directly.
    `executed` only ever grows.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._executed: list[str] = []
        self._running: set[str] = set()
        self._failures: dict[str, AgentFailure] = {}

    @property
    def executed(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._executed)

    @property
    def execution_order(self) -> list[str]:
        with self._lock:
            return list(self._executed)

    @property
    def failures(self) -> dict[str, AgentFailure]:
        with self._lock:
            return dict(self._failures)

    def is_executed(self, agent_id: str) -> bool:
        with self._lock:
            return agent_id in self._executed

    def is_complete(self, agent_ids: Iterable[str]) -> bool:
        with self._lock:
            return set(agent_ids) <= set(self._executed)

    def _deps_done(self, agent: Agent) -> bool:
        executed = set(self._executed)
        return all(dep in executed for dep in agent.depends_on)

    def ready(self, agents: Iterable[Agent]) -> list[Agent]:
        """Agents not yet executed or running whose dependencies have all executed."""
        with self._lock:
            executed = set(self._executed)
            return [
                agent
                for agent in agents
                if agent.id not in executed
                and agent.id not in self._running
                and self._deps_done(agent)
            ]

    def claim(self, agent: Agent) -> bool:
        """Atomically check eligibility and mark `agent` as running.

        Returns False if the agent already ran, is running, or is not ready.
        """
        with self._lock:
            if agent.id in self._executed or agent.id in self._running:
                return False
            if not self._deps_done(agent):
                return False
            self._running.add(agent.id)
            return True

    def mark_executed(self, agent: Agent) -> None:
        with self._lock:
            if not self._deps_done(agent):
                raise RuntimeError(f"Agent {agent.id} marked executed before its dependencies")
            self._running.discard(agent.id)
            if agent.id not in self._executed:
                self._executed.append(agent.id)

    def release(self, agent: Agent) -> None:
        """Drop a claim without marking the agent executed."""
        with self._lock:
            self._running.discard(agent.id)

    def record_failure(self, agent_id: str, error: BaseException) -> None:
        with self._lock:
            self._failures[agent_id] = AgentFailure(agent_id=agent_id, error=error)

    def locked(self, fn: Callable[[], T]) -> T:
        """Run `fn` while holding the scheduling lock."""
        with self._lock:
            return fn()
