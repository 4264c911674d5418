"""Workflow engine: tasks, agents, scheduling state and the manager."""

from agent_workflow.workflow.agent import Agent
from agent_workflow.workflow.definition import AgentDefinition, TaskDefinition, WorkflowDefinition
from agent_workflow.workflow.manager import ExecutionMode, FailurePolicy, WorkflowManager
from agent_workflow.workflow.report import AgentReport, RunReport
from agent_workflow.workflow.state import SchedulingState
from agent_workflow.workflow.task import InputBinding, Task, TaskState

__all__ = [
    "Agent",
    "AgentDefinition",
    "AgentReport",
    "ExecutionMode",
    "FailurePolicy",
    "InputBinding",
    "RunReport",
    "SchedulingState",
    "Task",
    "TaskDefinition",
    "TaskState",
    "WorkflowDefinition",
    "WorkflowManager",
]
