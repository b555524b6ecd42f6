"""Impact graph walker - direct and bounded-depth indirect dependents."""

from __future__ import annotations

from collections import deque

from impactlens.graph.index import DependencyIndex
from impactlens.models import ImpactResult


class ImpactWalker:
    """Walks reverse import edges outward from a batch of changed files.

    Depth 1 is a dependent of a direct dependent (two hops from the changed
    file); a branch stops once depth would exceed ``max_depth``. One
    ``visited`` set is shared across the batch, so a file is expanded at most
    once and cycles terminate on their own.
    """

    def __init__(self, index: DependencyIndex, max_depth: int = 2) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be >= 0, got {max_depth}")
        self.index = index
        self.max_depth = max_depth

    def walk(self, changed_paths: list[str]) -> ImpactResult:
        changed = list(dict.fromkeys(changed_paths))
        visited: set[str] = set(changed)

        direct: dict[str, list[str]] = {}
        for path in changed:
            direct[path] = self.index.dependents_of(path)
        for dependents in direct.values():
            visited.update(dependents)

        indirect: dict[str, list[str]] = {}
        depths: dict[str, int] = {}
        for path in changed:
            found: list[str] = []
            queue = deque((dep, 0) for dep in direct[path])
            while queue:
                node, depth = queue.popleft()
                next_depth = depth + 1
                if next_depth > self.max_depth:
                    continue
                for parent in self.index.dependents_of(node):
                    if parent in visited:
                        continue
                    visited.add(parent)
                    found.append(parent)
                    depths[parent] = next_depth
                    queue.append((parent, next_depth))
            indirect[path] = found

        affected = list(changed)
        for group in (direct, indirect):
            for dependents in group.values():
                affected.extend(dependents)

        return ImpactResult(
            changed=changed,
            direct_dependents=direct,
            indirect_dependents=indirect,
            indirect_depths=depths,
            all_affected=list(dict.fromkeys(affected)),
            max_depth=self.max_depth,
        )


def analyze_impact(
    index: DependencyIndex, changed_paths: list[str], max_depth: int = 2
) -> ImpactResult:
    return ImpactWalker(index, max_depth=max_depth).walk(changed_paths)
