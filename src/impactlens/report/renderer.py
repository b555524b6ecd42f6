"""Markdown and plain-text rendering of an AnalysisReport.

The markdown form is meant for PR comments and MCP clients:
  - Risk level badge and summary table
  - Findings grouped by category
  - Direct and indirect dependents
  - Related tests and coverage
  - Affected file tree
"""

from __future__ import annotations

from impactlens.models import AnalysisReport, FindingCategory, RiskLevel

_MAX_LISTED = 15

_RISK_BADGES = {
    RiskLevel.LOW: "🟢",
    RiskLevel.MEDIUM: "🟡",
    RiskLevel.HIGH: "🔴",
    RiskLevel.CRITICAL: "⛔",
}


def render_markdown(report: AnalysisReport) -> str:
    """Render the full analysis as GitHub-flavored markdown."""
    sections: list[str] = []

    title = "## Change Impact Analysis"
    if report.branch:
        title += f": `{report.branch}`"
        if report.base:
            title += f" vs `{report.base}`"
    sections.append(title)
    sections.append("")

    if not report.changeset:
        sections.append("> No files changed.")
        sections.append("")
        return "\n".join(sections)

    risk = report.risk
    summary = report.summary
    badge = _RISK_BADGES.get(risk.level, "")
    sections.append("| Risk | Files Changed | Lines | Affected | Test Coverage |")
    sections.append("|:---:|:---:|:---:|:---:|:---:|")
    sections.append(
        f"| {badge} **{risk.level.value}** ({risk.score}) | "
        f"{summary.files_changed} | "
        f"+{summary.lines_added} / -{summary.lines_deleted} | "
        f"{report.impact.total_affected} | "
        f"{report.coverage.coverage_percent}% |"
    )
    sections.append("")

    if risk.areas_affected:
        sections.append("**Areas affected:** " + ", ".join(risk.areas_affected))
        sections.append("")

    # Findings
    if risk.has_findings:
        sections.append("### Findings")
        sections.append("")
        for category in FindingCategory:
            messages = risk.findings_for(category)
            if not messages:
                continue
            sections.append(f"**{category.label}**")
            for message in messages:
                sections.append(f"- {message}")
            sections.append("")

    if risk.diff_warnings:
        sections.append("### Diff Warnings")
        sections.append("")
        for warning in risk.diff_warnings:
            sections.append(f"- `{warning.path}:{warning.line}` {warning.message}")
        sections.append("")

    if risk.critical_files_to_test:
        sections.append("### Critical Files to Test")
        sections.append("")
        for path in risk.critical_files_to_test[:_MAX_LISTED]:
            sections.append(f"- `{path}`")
        if len(risk.critical_files_to_test) > _MAX_LISTED:
            sections.append(f"- ... and {len(risk.critical_files_to_test) - _MAX_LISTED} more")
        sections.append("")

    # Dependents per changed file
    impact = report.impact
    with_dependents = [p for p in impact.changed if impact.direct_dependents.get(p)]
    if with_dependents:
        sections.append("### Dependents")
        sections.append("")
        for path in with_dependents:
            direct = impact.direct_dependents.get(path, [])
            indirect = impact.indirect_dependents.get(path, [])
            sections.append("<details>")
            sections.append(
                f"<summary><code>{path}</code>: {len(direct)} direct, "
                f"{len(indirect)} indirect</summary>"
            )
            sections.append("")
            sections.append("**Direct:**")
            for dep in direct[:_MAX_LISTED]:
                sections.append(f"- `{dep}`")
            if len(direct) > _MAX_LISTED:
                sections.append(f"- ... and {len(direct) - _MAX_LISTED} more")
            if indirect:
                sections.append("")
                sections.append("**Indirect:**")
                for dep in indirect[:_MAX_LISTED]:
                    depth = impact.indirect_depths.get(dep, 0)
                    sections.append(f"- `{dep}` (depth {depth})")
                if len(indirect) > _MAX_LISTED:
                    sections.append(f"- ... and {len(indirect) - _MAX_LISTED} more")
            sections.append("")
            sections.append("</details>")
            sections.append("")

    # Tests
    coverage = report.coverage
    sections.append("### Related Tests")
    sections.append("")
    if coverage.related_tests:
        sections.append("| Test | Confidence | Covers |")
        sections.append("|:-----|:----------:|:-------|")
        for test in coverage.related_tests:
            covers = ", ".join(f"`{p}`" for p in test.related_files)
            sections.append(f"| `{test.path}` | {test.confidence.value} | {covers} |")
    else:
        sections.append("> No related tests found.")
    sections.append("")
    if coverage.missing_tests:
        sections.append("**Changed files without tests:**")
        for path in coverage.missing_tests:
            sections.append(f"- `{path}`")
        sections.append("")

    if len(impact.all_affected) > len(impact.changed):
        sections.append("### Affected Files")
        sections.append("```")
        sections.extend(_render_file_tree(impact.all_affected))
        sections.append("```")
        sections.append("")

    if report.index_stats:
        stats = report.index_stats
        sections.append(
            f"> Indexed {stats.get('files_scanned', 0)} files, "
            f"{stats.get('edges', 0)} import edges. Rules {risk.rules_version}."
        )
        sections.append("")

    return "\n".join(sections)


def render_text(report: AnalysisReport) -> str:
    """Render a compact plain-text summary."""
    lines: list[str] = []
    risk = report.risk
    summary = report.summary

    header = "Change impact"
    if report.branch:
        header += f" for {report.branch}"
        if report.base:
            header += f" vs {report.base}"
    lines.append(header)
    lines.append(
        f"Risk: {risk.level.value} (score {risk.score})  "
        f"Files: {summary.files_changed}  "
        f"Lines: +{summary.lines_added}/-{summary.lines_deleted}  "
        f"Coverage: {report.coverage.coverage_percent}%"
    )
    if risk.areas_affected:
        lines.append("Areas: " + ", ".join(risk.areas_affected))

    impact = report.impact
    lines.append(
        f"Affected: {impact.total_affected} "
        f"({impact.total_direct} direct, {impact.total_indirect} indirect)"
    )
    for path in impact.changed:
        direct = impact.direct_dependents.get(path, [])
        indirect = impact.indirect_dependents.get(path, [])
        lines.append(f"  {path}")
        for dep in direct:
            lines.append(f"    <- {dep}")
        for dep in indirect:
            lines.append(f"    <~ {dep} (depth {impact.indirect_depths.get(dep, 0)})")

    for category in FindingCategory:
        messages = risk.findings_for(category)
        if messages:
            lines.append(f"{category.label}:")
            lines.extend(f"  - {m}" for m in messages)

    for warning in risk.diff_warnings:
        lines.append(f"Warning {warning.path}:{warning.line}: {warning.message}")

    if report.coverage.related_tests:
        lines.append("Related tests:")
        for test in report.coverage.related_tests:
            lines.append(f"  [{test.confidence.value}] {test.path}")
    if report.coverage.missing_tests:
        lines.append("Missing tests: " + ", ".join(report.coverage.missing_tests))

    return "\n".join(lines)


def _render_file_tree(files: list[str]) -> list[str]:
    """Render a list of file paths as an ASCII tree."""
    tree: dict = {}
    for fp in sorted(files):
        node = tree
        for part in fp.split("/"):
            node = node.setdefault(part, {})

    lines: list[str] = []
    _render_tree_recursive(tree, "", lines, is_root=True)
    return lines


def _render_tree_recursive(node: dict, prefix: str, lines: list[str], is_root: bool = False) -> None:
    items = list(node.items())
    for i, (name, children) in enumerate(items):
        is_last = i == len(items) - 1
        if is_root:
            connector = ""
            next_prefix = ""
        else:
            connector = "└── " if is_last else "├── "
            next_prefix = prefix + ("    " if is_last else "│   ")

        if children:
            lines.append(f"{prefix}{connector}{name}/")
            _render_tree_recursive(children, next_prefix, lines)
        else:
            lines.append(f"{prefix}{connector}{name}")
