"""Risk heuristic engine.

Evaluates the rule table against a change set and produces a risk level,
categorized findings that name concrete files, and the list of files most
worth testing. Read-only over its inputs.
"""

from __future__ import annotations

import logging

from impactlens.exceptions import ConfigError
from impactlens.models import (
    ChangeSet,
    CoverageReport,
    FindingCategory,
    ImpactResult,
    RiskAssessment,
)
from impactlens.risk.diff_scan import scan_diff
from impactlens.risk.rules import DEFAULT_RULES, FindingTemplate, RuleTable

logger = logging.getLogger("impactlens.risk")


def preview(names: list[str], limit: int = 3) -> str:
    """First `limit` names, then "(+N more)" for the rest."""
    names = list(dict.fromkeys(names))
    if not names:
        return ""
    shown = ", ".join(names[:limit])
    if len(names) > limit:
        shown += f" (+{len(names) - limit} more)"
    return shown


class RiskEngine:
    """Scores a change against a RuleTable."""

    def __init__(self, rules: RuleTable = DEFAULT_RULES, preview_limit: int = 3) -> None:
        self.rules = rules
        self.preview_limit = preview_limit

    def assess(
        self,
        changeset: ChangeSet,
        impact: ImpactResult | None = None,
        coverage: CoverageReport | None = None,
        diff_text: str | None = None,
    ) -> RiskAssessment:
        impact = impact or ImpactResult(changed=changeset.paths)
        findings: dict[FindingCategory, list[str]] = {c: [] for c in FindingCategory}
        signals: list[str] = []
        areas: list[str] = []
        critical: list[str] = []
        score = 0

        for rule in self.rules.path_rules:
            matched = [path for path in changeset.paths if rule.matches(path)]
            if not matched:
                continue
            signals.append(rule.name)
            score += rule.weight
            if rule.area not in areas:
                areas.append(rule.area)
            for template in rule.findings:
                findings[template.category].extend(
                    self._path_findings(template, matched, impact)
                )
            if rule.critical:
                for path in matched:
                    critical.append(path)
                    critical.extend(impact.consumers_of(path))

        context = self._metrics(changeset, impact, coverage)
        for rule in self.rules.threshold_rules:
            value = context.get(rule.metric)
            if value is None:
                logger.warning("Unknown risk metric %r in rule %s", rule.metric, rule.name)
                continue
            if value <= rule.threshold:
                continue
            signals.append(rule.name)
            score += rule.weight
            if rule.area and rule.area not in areas:
                areas.append(rule.area)
            values = {**context, "value": value, "threshold": rule.threshold}
            for template in rule.findings:
                message = self._render(template, values, bool(values["consumers"]))
                if message:
                    findings[template.category].append(message)

        warnings = scan_diff(diff_text) if diff_text else []
        level = self.rules.level_for(score)
        logger.debug("Risk score %d -> %s (signals: %s)", score, level.value, signals)

        return RiskAssessment(
            level=level,
            score=score,
            signals=signals,
            areas_affected=areas,
            findings={c: msgs for c, msgs in findings.items() if msgs},
            diff_warnings=warnings,
            critical_files_to_test=list(dict.fromkeys(critical)),
            rules_version=self.rules.version,
        )

    def _path_findings(
        self, template: FindingTemplate, matched: list[str], impact: ImpactResult
    ) -> list[str]:
        if template.per_file:
            messages = []
            for path in matched:
                consumers = impact.consumers_of(path)
                values = {
                    "file": path,
                    "files": path,
                    "count": 1,
                    "consumers": preview(consumers, self.preview_limit),
                }
                message = self._render(template, values, bool(consumers))
                if message:
                    messages.append(message)
            return messages

        consumers = [c for path in matched for c in impact.consumers_of(path)]
        values = {
            "file": matched[0],
            "files": preview(matched, self.preview_limit),
            "count": len(matched),
            "consumers": preview(consumers, self.preview_limit),
        }
        message = self._render(template, values, bool(consumers))
        return [message] if message else []

    @staticmethod
    def _render(template: FindingTemplate, values: dict, has_consumers: bool) -> str | None:
        text = template.message
        if "{consumers}" in text and not has_consumers:
            if template.fallback is None:
                return None
            text = template.fallback
        try:
            return text.format(**values)
        except (KeyError, IndexError) as e:
            raise ConfigError(f"Unknown placeholder {e} in finding template: {text!r}") from e

    def _metrics(
        self, changeset: ChangeSet, impact: ImpactResult, coverage: CoverageReport | None
    ) -> dict:
        added = changeset.lines_added
        deleted = changeset.lines_deleted
        shrinking = [f.path for f in changeset.files if f.deletions > f.additions]
        deletion_consumers = [c for path in shrinking for c in impact.consumers_of(path)]

        if changeset and coverage is not None:
            uncovered = 100 - coverage.coverage_percent
            missing = coverage.missing_tests
        else:
            uncovered = 0
            missing = []

        return {
            "files_changed": len(changeset.paths),
            "lines_added": added,
            "lines_deleted": deleted,
            "total_lines": added + deleted,
            "net_deletions": deleted if deleted > 2 * added else 0,
            "affected_files": max(0, impact.total_affected - len(impact.changed)),
            "affected": impact.total_affected,
            "uncovered_percent": uncovered,
            "coverage": coverage.coverage_percent if coverage is not None else 100,
            "missing": preview(missing, self.preview_limit),
            "consumers": preview(deletion_consumers, self.preview_limit),
        }


def assess_risk(
    changeset: ChangeSet,
    impact: ImpactResult | None = None,
    coverage: CoverageReport | None = None,
    diff_text: str | None = None,
    rules: RuleTable = DEFAULT_RULES,
) -> RiskAssessment:
    return RiskEngine(rules).assess(changeset, impact, coverage, diff_text)

