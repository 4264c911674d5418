"""Unit tests for dependency graph validation."""

from __future__ import annotations

import pytest

from agent_workflow.errors import UnresolvedReference, WorkflowCycleError
from agent_workflow.workflow.agent import Agent
from agent_workflow.workflow.graph import (
    build_dependency_graph,
    execution_layers,
    upstream_agents,
    validate_acyclic,
)


def test_layers_follow_dependency_depth() -> None:
    graph = build_dependency_graph(
        [
            Agent("extract", "Extract"),
            Agent("embed", "Embed", depends_on=["extract"]),
            Agent("query", "Query", depends_on=["embed"]),
            Agent("image", "Image", depends_on=["query"]),
            Agent("answer", "Answer", depends_on=["query"]),
        ]
    )

    assert execution_layers(graph) == [["extract"], ["embed"], ["query"], ["answer", "image"]]


def test_unknown_dependency_is_rejected() -> None:
    with pytest.raises(UnresolvedReference, match="ghost"):
        build_dependency_graph([Agent("a", "A", depends_on=["ghost"])])


def test_cycle_is_rejected() -> None:
    graph = build_dependency_graph(
        [
            Agent("a", "A", depends_on=["c"]),
            Agent("b", "B", depends_on=["a"]),
            Agent("c", "C", depends_on=["b"]),
        ]
    )

    with pytest.raises(WorkflowCycleError) as exc_info:
        validate_acyclic(graph)

    assert set(exc_info.value.cycle) == {"a", "b", "c"}
    assert exc_info.value.cycle[0] == exc_info.value.cycle[-1]


def test_self_dependency_is_a_cycle() -> None:
    graph = build_dependency_graph([Agent("a", "A", depends_on=["a"])])

    with pytest.raises(WorkflowCycleError):
        validate_acyclic(graph)


def test_upstream_agents_is_transitive() -> None:
    graph = build_dependency_graph(
        [
            Agent("a", "A"),
            Agent("b", "B", depends_on=["a"]),
            Agent("c", "C", depends_on=["b"]),
        ]
    )

    assert upstream_agents(graph, "c") == {"a", "b"}
    assert upstream_agents(graph, "a") == set()
