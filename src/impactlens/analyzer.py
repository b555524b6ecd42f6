"""End-to-end change analysis.

This is the main entry point used by the CLI and the MCP server. It:
1. Builds the reverse dependency index for the whole repository
2. Walks it outward from the changed files
3. Looks up related tests and computes coverage
4. Runs the risk rules (and the diff scanner, when diff text is available)

Usage:
    report = analyze_pr(Path("."), branch="feature/login", base="main")
    report = analyze_changes(root, ChangeSet.from_paths(["src/auth/login.js"]))
"""

from __future__ import annotations

import logging
from pathlib import Path

from impactlens.config import AnalyzerConfig, load_config
from impactlens.exceptions import AnalysisError, RepositoryError
from impactlens.graph.builder import DependencyIndexBuilder, ProgressCallback
from impactlens.graph.index import DependencyIndex
from impactlens.graph.walker import ImpactWalker
from impactlens.models import AnalysisReport, AnalysisSummary, ChangeSet
from impactlens.parser.models import SourceFile
from impactlens.risk.engine import RiskEngine
from impactlens.risk.rules import DEFAULT_RULES, RuleTable, load_rule_table
from impactlens.testmap.finder import RelatedTestFinder
from impactlens.vcs.git import find_repo_root, get_changed_files, get_commit_messages, get_diff

logger = logging.getLogger("impactlens.analyzer")


def _require_root(root: str | Path) -> Path:
    path = Path(root).resolve()
    if not path.is_dir():
        raise RepositoryError(f"Repository root is not reachable: {path}")
    return path


def rules_for(root: Path, config: AnalyzerConfig) -> RuleTable:
    """The configured rule table, or the built-in one."""
    if config.risk.rules_file:
        return load_rule_table(root / config.risk.rules_file)
    return DEFAULT_RULES


def summarize(changeset: ChangeSet) -> AnalysisSummary:
    return AnalysisSummary(
        files_changed=len(changeset.paths),
        files_added=changeset.files_added,
        files_modified=changeset.files_modified,
        files_deleted=changeset.files_deleted,
        lines_added=changeset.lines_added,
        lines_deleted=changeset.lines_deleted,
    )


def analyze_changes(
    root: str | Path,
    changeset: ChangeSet,
    config: AnalyzerConfig | None = None,
    diff_text: str | None = None,
    progress_callback: ProgressCallback | None = None,
) -> AnalysisReport:
    """Run impact, test and risk analysis for an already-known change set."""
    root = _require_root(root)
    config = config or AnalyzerConfig()
    for path in changeset.paths:
        if path.startswith("/") or path == ".." or path.startswith("../"):
            raise AnalysisError(f"Changed path is not repository-relative: {path}")

    builder = DependencyIndexBuilder(config.indexer)
    if changeset:
        index = builder.build(root, progress_callback)
    else:
        index = DependencyIndex()

    paths = changeset.paths
    impact = ImpactWalker(index, max_depth=config.impact.max_depth).walk(paths)
    coverage = RelatedTestFinder(root, config).find(paths)
    engine = RiskEngine(rules_for(root, config))
    risk = engine.assess(
        changeset,
        impact,
        coverage,
        diff_text if config.risk.scan_diff else None,
    )

    logger.info(
        "Analysis done: %d changed, %d affected, coverage %d%%, risk %s",
        len(paths), impact.total_affected, coverage.coverage_percent, risk.level.value,
    )
    return AnalysisReport(
        root=str(root),
        summary=summarize(changeset),
        changeset=changeset,
        impact=impact,
        coverage=coverage,
        risk=risk,
        index_stats=builder.get_stats(),
    )


def read_changed_contents(
    root: Path, changeset: ChangeSet, max_files: int, max_bytes: int
) -> dict[str, str]:
    """Contents of the first `max_files` changed files that still exist."""
    contents: dict[str, str] = {}
    for path in changeset.paths:
        if len(contents) >= max_files:
            break
        if not (root / path).is_file():
            continue
        source = SourceFile(path=path, root=root, max_bytes=max_bytes)
        content = source.content
        if source.readable:
            contents[path] = content
    return contents


def analyze_pr(
    root: str | Path,
    branch: str,
    base: str | None = None,
    config: AnalyzerConfig | None = None,
    progress_callback: ProgressCallback | None = None,
) -> AnalysisReport:
    """Analyze `branch` against `base` using git for the inputs.

    Raises:
        RepositoryError: the root is not a directory.
        GitError: the changed-file list cannot be produced.
    """
    repo_root = find_repo_root(_require_root(root))
    config = config or load_config(repo_root)
    base = base or config.diff.default_base

    changeset = get_changed_files(repo_root, base, branch)
    diff_text = get_diff(repo_root, base, branch, max_bytes=config.diff.max_diff_bytes)

    report = analyze_changes(repo_root, changeset, config, diff_text, progress_callback)
    report.branch = branch
    report.base = base
    report.commit_messages = get_commit_messages(
        repo_root, base, branch, limit=config.diff.max_commit_messages
    )
    report.file_contents = read_changed_contents(
        repo_root, changeset, config.diff.max_content_files, config.diff.max_content_bytes
    )
    return report
