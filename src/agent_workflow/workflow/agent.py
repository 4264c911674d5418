"""Agent: a named, ordered group of tasks with dependencies on other agents."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from agent_workflow.tools.stream import ResultStream
from agent_workflow.workflow.task import Task

logger = logging.getLogger(__name__)


class Agent:
    """Owns tasks and accumulates their results in `output`, keyed by task id.

    `output` is the only channel through which dependent agents observe this
    agent's results. Streams are kept per task in `streams`.
    """

    def __init__(
        self,
        id: str,
        name: str,
        depends_on: list[str] | None = None,
        concurrent: bool = False,
    ) -> None:
        self.id = id
        self.name = name
        self.depends_on: list[str] = list(dict.fromkeys(depends_on or []))
        self.concurrent = concurrent
        self.tasks: list[Task] = []
        self.output: dict[str, Any] = {}
        self.streams: dict[str, ResultStream] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"Agent(id={self.id!r}, depends_on={self.depends_on!r}, tasks={len(self.tasks)})"

    @property
    def stream(self) -> ResultStream | None:
        """Stream of the last task (in task order) that produced one."""
        with self._lock:
            for task in reversed(self.tasks):
                if task.id in self.streams:
                    return self.streams[task.id]
        return None

    def add_task(self, task: Task) -> None:
        self.tasks.append(task)

    def output_snapshot(self) -> dict[str, Any]:
        with self._lock:
            return dict(self.output)

    def _record(self, task: Task) -> None:
        with self._lock:
            self.output[task.id] = task.result
            if task.stream is not None:
                self.streams[task.id] = task.stream

    def execute(self, *, timeout: float | None = None, max_workers: int | None = None) -> None:
        """Run owned tasks using this agent's configured mode."""
        if self.concurrent:
            self.execute_concurrent(timeout=timeout, max_workers=max_workers)
        else:
            self.execute_sequential(timeout=timeout)

    def execute_sequential(self, *, timeout: float | None = None) -> None:
        """Run tasks in insertion order, stopping at the first failure.

        Results of tasks that finished before the failure stay in `output`;
        later tasks are never attempted.
        """
        for task in self.tasks:
            task.execute(timeout=timeout)
            self._record(task)
            logger.debug(f"Agent {self.id} recorded task {task.id}")

    def execute_concurrent(
        self, *, timeout: float | None = None, max_workers: int | None = None
    ) -> None:
        """Run all tasks at once and wait for every one of them.

        Successful results are recorded even when other tasks fail. If any
        task failed, one of the failures is raised; the rest are logged.
        """
        if not self.tasks:
            return

        def _run(task: Task) -> None:
            task.execute(timeout=timeout)
            self._record(task)

        workers = min(len(self.tasks), max_workers or len(self.tasks))
        errors: list[BaseException] = []
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"agent-{self.id}") as pool:
            futures = {pool.submit(_run, task): task for task in self.tasks}
            for future in as_completed(futures):
                error = future.exception()
                if error is not None:
                    logger.warning(
                        f"Task {futures[future].id} of agent {self.id} failed: {error}",
                        extra={"agent_id": self.id, "task_id": futures[future].id},
                    )
                    errors.append(error)

        if errors:
            if len(errors) > 1:
                logger.debug(f"Agent {self.id}: {len(errors) - 1} additional task failures dropped")
            raise errors[0]

    def reset(self) -> None:
        """Clear outputs and return every task to `pending`."""
        with self._lock:
            self.output.clear()
            self.streams.clear()
        for task in self.tasks:
            task.reset()
