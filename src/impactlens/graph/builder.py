"""Build the reverse dependency index for a whole repository."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from impactlens.config import IndexerConfig
from impactlens.graph.index import DependencyIndex
from impactlens.parser.extractors import extract_imports
from impactlens.parser.models import SourceFile, detect_language
from impactlens.parser.resolver import ImportResolver

logger = logging.getLogger("impactlens.graph")

ProgressCallback = Callable[[str, int, int], None]


def collect_files(root: str | Path, ignore_dirs: list[str] | set[str]) -> list[str]:
    """List every file under `root` as sorted repository-relative POSIX paths.

    Walks with an explicit worklist instead of recursion. Ignored directory
    names are pruned wherever they appear. Symlinked directories are not
    followed, broken symlinks and unreadable directories are skipped.
    """
    root = Path(root).resolve()
    ignored = set(ignore_dirs)
    files: list[str] = []
    pending: list[Path] = [root]

    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as entries:
                for entry in entries:
                    try:
                        if entry.is_dir(follow_symlinks=False):
                            if entry.name not in ignored:
                                pending.append(Path(entry.path))
                        elif entry.is_file():
                            files.append(Path(entry.path).relative_to(root).as_posix())
                    except OSError as e:
                        logger.debug("Skipping %s: %s", entry.path, e)
        except OSError as e:
            logger.debug("Skipping unreadable directory %s: %s", current, e)

    return sorted(files)


class DependencyIndexBuilder:
    """Scans a repository and records a reverse edge for every resolvable import.

    The scan always covers the entire tree: multi-hop closure needs the full
    graph, whichever files changed. Per-file reads are capped by
    ``max_file_bytes``; the walk itself is not.
    """

    def __init__(self, config: IndexerConfig | None = None) -> None:
        self.config = config or IndexerConfig()
        self._stats: dict[str, int] = {}

    def build(
        self,
        root: str | Path,
        progress_callback: ProgressCallback | None = None,
    ) -> DependencyIndex:
        """Build a fresh index for `root`.

        Args:
            root: Repository root.
            progress_callback: Optional callback(file_path, current, total).
        """
        root = Path(root).resolve()
        all_files = collect_files(root, self.config.ignore_dirs)
        resolver = ImportResolver(
            root,
            known_files=frozenset(all_files),
            verify_exists=self.config.verify_imports_exist,
        )

        sources = [
            SourceFile(path=p, root=root, max_bytes=self.config.max_file_bytes)
            for p in all_files
            if detect_language(p) is not None
        ]
        total = len(sources)

        def scan(source: SourceFile) -> list[tuple[str, str]]:
            return self._edges_for(source, resolver)

        batches: list[list[tuple[str, str]]] = []
        if self.config.workers > 1 and total > 1:
            with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
                # map yields in submission order, so progress follows path order
                for i, (source, batch) in enumerate(zip(sources, pool.map(scan, sources))):
                    if progress_callback:
                        progress_callback(source.path, i + 1, total)
                    batches.append(batch)
        else:
            for i, source in enumerate(sources):
                if progress_callback:
                    progress_callback(source.path, i + 1, total)
                batches.append(scan(source))

        # Workers only return edge lists; the index is written from this thread.
        index = DependencyIndex()
        edges = 0
        for batch in batches:
            edges += index.merge(batch)

        skipped = sum(1 for s in sources if not s.readable)
        self._stats = {
            "files_found": len(all_files),
            "files_scanned": total - skipped,
            "files_skipped": skipped,
            "edges": edges,
            "targets": len(index),
        }
        logger.info(
            "Indexed %d source files (%d edges, %d skipped) under %s",
            total - skipped, edges, skipped, root,
        )
        return index

    @staticmethod
    def _edges_for(source: SourceFile, resolver: ImportResolver) -> list[tuple[str, str]]:
        edges = []
        for specifier in extract_imports(source.content, source.language):
            target = resolver.resolve(specifier, source.path)
            if target is not None:
                edges.append((source.path, target))
        return edges

    def get_stats(self) -> dict[str, int]:
        """Statistics for the last build."""
        return dict(self._stats)


def build_index(root: str | Path, config: IndexerConfig | None = None) -> DependencyIndex:
    """Convenience wrapper: build an index with a throwaway builder."""
    return DependencyIndexBuilder(config).build(root)
