"""Reverse dependency index backed by a networkx DiGraph."""

from __future__ import annotations

import networkx as nx


class DependencyIndex:
    """Maps each imported file to the files that import it.

    Edges in the underlying graph point referencer -> target, so the
    referencers of a target are its predecessors. Predecessors come back in
    the order the edges were recorded.
    """

    def __init__(self, graph: nx.DiGraph | None = None) -> None:
        self.graph = graph if graph is not None else nx.DiGraph()

    def add_edge(self, referencer: str, target: str | None) -> bool:
        """Record `referencer` -> `target`. Self-edges and null targets are dropped."""
        if not target or target == referencer:
            return False
        self.graph.add_edge(referencer, target)
        return True

    def merge(self, edges: list[tuple[str, str]]) -> int:
        """Add a batch of edges, returning how many were recorded."""
        return sum(1 for referencer, target in edges if self.add_edge(referencer, target))

    def dependents_of(self, path: str) -> list[str]:
        """Files that import `path` directly."""
        if not self.graph.has_node(path):
            return []
        return list(self.graph.predecessors(path))

    def imports_of(self, path: str) -> list[str]:
        """Files that `path` imports (forward edges)."""
        if not self.graph.has_node(path):
            return []
        return list(self.graph.successors(path))

    @property
    def targets(self) -> list[str]:
        return [n for n in self.graph.nodes if self.graph.in_degree(n) > 0]

    @property
    def edge_count(self) -> int:
        return self.graph.number_of_edges()

    def as_dict(self) -> dict[str, set[str]]:
        """target -> set of referencers."""
        return {target: set(self.graph.predecessors(target)) for target in self.targets}

    def __contains__(self, path: object) -> bool:
        return isinstance(path, str) and self.graph.has_node(path) and self.graph.in_degree(path) > 0

    def __len__(self) -> int:
        return len(self.targets)
