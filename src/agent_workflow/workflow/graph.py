"""Agent dependency graph checks run before any execution starts."""

from __future__ import annotations

from collections.abc import Iterable

import networkx as nx

from agent_workflow.errors import UnresolvedReference, WorkflowCycleError
from agent_workflow.workflow.agent import Agent


def build_dependency_graph(agents: Iterable[Agent]) -> nx.DiGraph:
    """Build a graph with an edge from each dependency to its dependent.

    Raises:
        UnresolvedReference: If an agent depends on an unknown agent id.
    """
    agents = list(agents)
    known = {agent.id for agent in agents}

    graph = nx.DiGraph()
    for agent in agents:
        graph.add_node(agent.id)
        for dep in agent.depends_on:
            if dep not in known:
                raise UnresolvedReference(f"Agent {agent.id!r} depends on unknown agent {dep!r}")
            graph.add_edge(dep, agent.id)
    return graph


def validate_acyclic(graph: nx.DiGraph) -> None:
    """Raise `WorkflowCycleError` if the graph has a cycle."""
    if nx.is_directed_acyclic_graph(graph):
        return
    cycle = [edge[0] for edge in nx.find_cycle(graph)]
    raise WorkflowCycleError(cycle + cycle[:1])


def execution_layers(graph: nx.DiGraph) -> list[list[str]]:
    """Group agents by dependency depth; each layer can run in one pass."""
    return [sorted(layer) for layer in nx.topological_generations(graph)]


def upstream_agents(graph: nx.DiGraph, agent_id: str) -> set[str]:
    """All agents `agent_id` transitively depends on."""
    return set(nx.ancestors(graph, agent_id))
