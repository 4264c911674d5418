"""Workflow engine: owns agents, tasks and tools and schedules agents to completion.

Scheduling runs in barrier passes. Each pass finds every agent whose
dependencies have all executed, runs it, and marks it executed. Two
strategies are available:

- sequential (`execute_workflow`): eligible agents run one after another and
  the first failure aborts the run.
- concurrent (`execute_all_workflows`): all eligible agents of a pass run in
  parallel and the pass joins them before the next one starts. Failures are
  logged, recorded in `state.failures`, and the agent is still marked
  executed so downstream agents run on partial output.

Both failure policies can be combined with either strategy through `run`.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator, Mapping
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from enum import Enum
from typing import Any

from agent_workflow.core.config import EngineConfig
from agent_workflow.errors import UnresolvedReference, WorkflowStalledError
from agent_workflow.tools.registry import Tool, ToolCallable, ToolRegistry
from agent_workflow.workflow.agent import Agent
from agent_workflow.workflow.definition import WorkflowDefinition
from agent_workflow.workflow.graph import (
    build_dependency_graph,
    execution_layers,
    upstream_agents,
    validate_acyclic,
)
from agent_workflow.workflow.report import AgentReport, RunReport
from agent_workflow.workflow.state import SchedulingState
from agent_workflow.workflow.task import InputBinding, Task

logger = logging.getLogger(__name__)


class ExecutionMode(str, Enum):
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class FailurePolicy(str, Enum):
    ABORT = "abort"
    BEST_EFFORT = "best-effort"


DEFAULT_POLICIES: dict[ExecutionMode, FailurePolicy] = {
    ExecutionMode.SEQUENTIAL: FailurePolicy.ABORT,
    ExecutionMode.CONCURRENT: FailurePolicy.BEST_EFFORT,
}

_MISSING = object()


def _select(value: Any, key: str) -> Any:
    """Return `value[key]` for mappings, `value.key` otherwise, or `_MISSING`."""
    if isinstance(value, Mapping):
        return value.get(key, _MISSING)
    return getattr(value, key, _MISSING)


class WorkflowManager:
    """Owns all agents, tasks and tools of one workflow and drives its runs."""

    def __init__(
        self,
        registry: ToolRegistry | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.tools = registry if registry is not None else ToolRegistry()
        self.config = config or EngineConfig()
        self.agents: dict[str, Agent] = {}
        self.tasks: dict[str, Task] = {}
        self.state = SchedulingState()

        self._run_lock = threading.Lock()
        self._last_mode: ExecutionMode | None = None
        self._last_policy: FailurePolicy | None = None

    @classmethod
    def from_definition(
        cls,
        definition: WorkflowDefinition,
        registry: ToolRegistry,
        config: EngineConfig | None = None,
    ) -> WorkflowManager:
        manager = cls(registry=registry, config=config)
        manager.initialize_workflow(definition)
        return manager

    # Construction

    def _ensure_idle(self) -> None:
        if self._run_lock.locked():
            raise RuntimeError("Workflow cannot be modified while it is running")

    def register_tool(self, tool: Tool) -> Tool:
        self._ensure_idle()
        return self.tools.register(tool)

    def create_tool(self, id: str, name: str, execute: ToolCallable) -> Tool:
        return self.register_tool(Tool(id=id, name=name, execute=execute))

    def create_task(
        self,
        id: str,
        name: str,
        tool_id: str,
        inputs: Mapping[str, Any] | None = None,
        bindings: Iterable[InputBinding] = (),
    ) -> Task:
        """Create a task bound to a registered tool.

        Raises:
            UnresolvedReference: If `tool_id` is not registered.
        """
        self._ensure_idle()
        tool = self.tools.get(tool_id)
        task = Task(id, name, tool, dict(inputs or {}), list(bindings))
        self.tasks[id] = task
        return task

    def create_agent(
        self,
        id: str,
        name: str,
        depends_on: Iterable[str] = (),
        concurrent: bool = False,
    ) -> Agent:
        self._ensure_idle()
        agent = Agent(id, name, list(depends_on), concurrent=concurrent)
        self.agents[id] = agent
        return agent

    def assign_task_to_agent(self, agent_id: str, task_id: str) -> None:
        """Append a task to an agent.

        Raises:
            UnresolvedReference: If either id is unknown.
        """
        self._ensure_idle()
        agent = self.agents.get(agent_id)
        if agent is None:
            raise UnresolvedReference(f"Unknown agent id: {agent_id!r}")
        task = self.tasks.get(task_id)
        if task is None:
            raise UnresolvedReference(f"Unknown task id: {task_id!r}")
        agent.add_task(task)

    def initialize_workflow(self, definition: WorkflowDefinition) -> None:
        """Build tasks and agents from a definition and validate the result."""
        for task_def in definition.tasks:
            self.create_task(
                task_def.id,
                task_def.name,
                task_def.tool_id,
                task_def.inputs,
                task_def.bindings,
            )
        for agent_def in definition.agents:
            self.create_agent(
                agent_def.id,
                agent_def.name,
                agent_def.depends_on,
                concurrent=agent_def.concurrent,
            )
            for task_id in agent_def.task_ids:
                self.assign_task_to_agent(agent_def.id, task_id)

        self.validate()
        logger.info(
            f"Workflow initialized: {len(self.agents)} agents, {len(self.tasks)} tasks",
        )

    def _owner_of(self, task_id: str) -> Agent | None:
        for agent in self.agents.values():
            if any(task.id == task_id for task in agent.tasks):
                return agent
        return None

    def validate(self) -> list[list[str]]:
        """Check the workflow can run to completion and return its execution layers.

        Raises:
            UnresolvedReference: On unknown dependency ids, or bindings that
                read from an agent which is not upstream of the bound task.
            WorkflowCycleError: If agent dependencies form a cycle.
        """
        graph = build_dependency_graph(self.agents.values())
        validate_acyclic(graph)

        for agent in self.agents.values():
            upstream: set[str] | None = None
            for task in agent.tasks:
                for binding in task.bindings:
                    if upstream is None:
                        upstream = upstream_agents(graph, agent.id)
                    self._validate_binding(agent, task, binding, upstream)

        return execution_layers(graph)

    def _validate_binding(
        self, agent: Agent, task: Task, binding: InputBinding, upstream: set[str]
    ) -> None:
        source = self.agents.get(binding.source_agent)
        if source is None:
            raise UnresolvedReference(
                f"Task {task.id!r} binds from unknown agent {binding.source_agent!r}"
            )
        if not any(t.id == binding.source_task for t in source.tasks):
            raise UnresolvedReference(
                f"Task {task.id!r} binds from task {binding.source_task!r}, "
                f"which agent {source.id!r} does not own"
            )
        if source.id not in upstream:
            raise UnresolvedReference(
                f"Task {task.id!r} binds from agent {source.id!r}, "
                f"which agent {agent.id!r} does not depend on"
            )

    # Execution

    def execute_workflow(self) -> None:
        """Sequential-safe scheduling; the first agent failure aborts the run."""
        self.run(ExecutionMode.SEQUENTIAL, FailurePolicy.ABORT)

    def execute_all_workflows(self) -> None:
        """Concurrent scheduling; failures are logged and the run continues."""
        self.run(ExecutionMode.CONCURRENT, FailurePolicy.BEST_EFFORT)

    @contextmanager
    def _running(self) -> Iterator[None]:
        if not self._run_lock.acquire(blocking=False):
            raise RuntimeError("Workflow is already running")
        try:
            yield
        finally:
            self._run_lock.release()

    def run(
        self,
        mode: ExecutionMode = ExecutionMode.SEQUENTIAL,
        policy: FailurePolicy | None = None,
    ) -> None:
        """Run every agent not yet executed.

        Agents already executed by an earlier call keep their results and are
        not run again, so agents added between calls run on the next call.

        Raises:
            WorkflowError: Validation failures, and under `FailurePolicy.ABORT`
                the first agent failure.
        """
        mode = ExecutionMode(mode)
        policy = FailurePolicy(policy) if policy is not None else DEFAULT_POLICIES[mode]
        layers = self.validate()

        self._last_mode, self._last_policy = mode, policy
        logger.info(
            f"Starting workflow run ({mode.value}, {policy.value})",
            extra={"layers": layers},
        )

        with self._running():
            pass_number = 0
            while not self.state.is_complete(self.agents):
                pass_number += 1
                if mode is ExecutionMode.SEQUENTIAL:
                    launched = self._sequential_pass(policy)
                else:
                    launched = self._concurrent_pass(policy)

                if launched == 0:
                    pending = sorted(set(self.agents) - self.state.executed)
                    raise WorkflowStalledError(pending)
                logger.debug(f"Pass {pass_number} ran {launched} agents")

        logger.info(
            f"Workflow run completed after {pass_number} passes",
            extra={"failed_agents": sorted(self.state.failures)},
        )

    def _sequential_pass(self, policy: FailurePolicy) -> int:
        launched = 0
        for agent in list(self.agents.values()):
            if not self.state.claim(agent):
                continue
            launched += 1
            self._run_agent(agent, policy)
        return launched

    def _concurrent_pass(self, policy: FailurePolicy) -> int:
        candidates = self.state.ready(self.agents.values())
        ready = [agent for agent in candidates if self.state.claim(agent)]
        if not ready:
            return 0

        workers = min(len(ready), self.config.max_workers)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="workflow") as pool:
            futures: list[Future[None]] = [
                pool.submit(self._run_agent, agent, policy) for agent in ready
            ]

        # Every agent of the pass has finished here; surface the first abort.
        for future in futures:
            error = future.exception()
            if error is not None:
                raise error
        return len(ready)

    def _run_agent(self, agent: Agent, policy: FailurePolicy) -> None:
        log_extra = {"agent_id": agent.id, "agent_name": agent.name}
        logger.info(f"Executing agent {agent.id}", extra=log_extra)
        try:
            self.state.locked(lambda: self._apply_bindings(agent))
            agent.execute(
                timeout=self.config.task_timeout_seconds,
                max_workers=self.config.max_workers,
            )
        except Exception as e:
            self.state.record_failure(agent.id, e)
            if policy is FailurePolicy.ABORT:
                self.state.release(agent)
                logger.error(f"Agent {agent.id} failed, aborting workflow: {e}", extra=log_extra)
                raise
            logger.error(
                f"Agent {agent.id} failed, continuing with partial output: {e}",
                extra=log_extra,
            )

        self.state.mark_executed(agent)
        logger.info(f"Agent {agent.id} executed", extra=log_extra)

    def _apply_bindings(self, agent: Agent) -> None:
        """Copy bound upstream results into this agent's task inputs.

        Runs under the scheduling lock. A missing upstream result (its task
        failed under best-effort, or it only produced a stream) or a missing
        `output_key` leaves the input untouched, so the tool reports the
        missing input itself.
        """
        for task in agent.tasks:
            for binding in task.bindings:
                log_extra = {"agent_id": agent.id, "task_id": task.id}
                source_output = self.agents[binding.source_agent].output_snapshot()
                if binding.source_task not in source_output:
                    logger.warning(
                        f"Binding {binding.source_agent}.{binding.source_task} has no result; "
                        f"input {binding.target_input!r} of task {task.id} left unset",
                        extra=log_extra,
                    )
                    continue

                value = source_output[binding.source_task]
                if binding.output_key is not None:
                    value = _select(value, binding.output_key)
                    if value is _MISSING:
                        logger.warning(
                            f"Result of {binding.source_task} has no key "
                            f"{binding.output_key!r}; input {binding.target_input!r} "
                            f"of task {task.id} left unset",
                            extra=log_extra,
                        )
                        continue
                task.inputs[binding.target_input] = value

    # Inspection

    def report(self) -> RunReport:
        """Summarise the current state of every agent."""
        failures = self.state.failures
        executed = self.state.executed
        agents: list[AgentReport] = []
        for agent in self.agents.values():
            failure = failures.get(agent.id)
            if failure is not None:
                status = "failed"
            elif agent.id in executed:
                status = "executed"
            else:
                status = "pending"
            agents.append(
                AgentReport(
                    agent_id=agent.id,
                    name=agent.name,
                    status=status,
                    output_keys=sorted(agent.output_snapshot()),
                    stream_task_ids=sorted(agent.streams),
                    error=str(failure.error) if failure else None,
                    error_kind=failure.kind if failure else None,
                )
            )
        return RunReport(
            mode=self._last_mode.value if self._last_mode else None,
            policy=self._last_policy.value if self._last_policy else None,
            execution_order=self.state.execution_order,
            agents=agents,
        )

    def reset(self) -> None:
        """Forget all run state so the same workflow can run again from scratch."""
        self._ensure_idle()
        self.state = SchedulingState()
        for agent in self.agents.values():
            agent.reset()
        logger.info("Workflow state reset")
