"""Reverse dependency graph: index, builder and impact walker."""

from impactlens.graph.builder import DependencyIndexBuilder, build_index, collect_files
from impactlens.graph.index import DependencyIndex
from impactlens.graph.walker import ImpactWalker, analyze_impact

__all__ = [
    "DependencyIndex",
    "DependencyIndexBuilder",
    "ImpactWalker",
    "analyze_impact",
    "build_index",
    "collect_files",
]
