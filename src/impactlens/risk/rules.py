"""Versioned risk rule table.

Weights, thresholds and finding templates live here as data, apart from the
engine that evaluates them. A table can also be loaded from JSON so rules can
be tuned per repository without code changes.

Finding templates are ``str.format`` strings. Path rules can use ``{files}``
(preview of matched changed files), ``{consumers}`` (preview of their direct
dependents) and ``{count}``; per-file templates get ``{file}`` and
``{consumers}`` for one file. Threshold rules get the metric context:
``{value}``, ``{threshold}``, ``{files_changed}``, ``{lines_added}``,
``{lines_deleted}``, ``{total_lines}``, ``{affected}``, ``{coverage}``,
``{missing}`` and ``{consumers}``.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from impactlens.exceptions import ConfigError
from impactlens.models import FindingCategory, RiskLevel

RULES_VERSION = "2024.1"


class FindingTemplate(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: FindingCategory
    message: str
    per_file: bool = False
    # Used instead of `message` when it needs {consumers} and there are none.
    # Without a fallback the finding is dropped in that case.
    fallback: str | None = None


class PathRule(BaseModel):
    """Fires when any changed path contains one of `fragments`."""

    model_config = ConfigDict(frozen=True)

    name: str
    area: str
    fragments: tuple[str, ...]
    weight: int
    critical: bool = False
    findings: tuple[FindingTemplate, ...] = ()

    def matches(self, path: str) -> bool:
        lowered = path.lower()
        return any(fragment in lowered for fragment in self.fragments)


class ThresholdRule(BaseModel):
    """Fires when a named change metric is strictly above `threshold`."""

    model_config = ConfigDict(frozen=True)

    name: str
    metric: str
    threshold: int
    weight: int
    area: str | None = None
    findings: tuple[FindingTemplate, ...] = ()


class LevelThreshold(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_score: int
    level: RiskLevel


class RuleTable(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str = RULES_VERSION
    path_rules: tuple[PathRule, ...] = ()
    threshold_rules: tuple[ThresholdRule, ...] = ()
    levels: tuple[LevelThreshold, ...] = Field(
        default=(
            LevelThreshold(min_score=10, level=RiskLevel.CRITICAL),
            LevelThreshold(min_score=6, level=RiskLevel.HIGH),
            LevelThreshold(min_score=3, level=RiskLevel.MEDIUM),
        )
    )

    def level_for(self, score: int) -> RiskLevel:
        for threshold in sorted(self.levels, key=lambda t: -t.min_score):
            if score >= threshold.min_score:
                return threshold.level
        return RiskLevel.LOW


def _t(category: FindingCategory, message: str, **kwargs) -> FindingTemplate:
    return FindingTemplate(category=category, message=message, **kwargs)


C = FindingCategory

DEFAULT_PATH_RULES: tuple[PathRule, ...] = (
    PathRule(
        name="schema",
        area="Data schema",
        fragments=("schema", ".prisma", ".graphql", ".gql", ".proto", ".avsc"),
        weight=3,
        critical=True,
        findings=(
            _t(C.BREAKING_CHANGE,
               "Schema changed in {files}: readers {consumers} may break on the new shape.",
               fallback="Schema changed in {files}: check every reader of the old shape."),
            _t(C.DATA_INTEGRITY,
               "Validate existing records against the updated schema in {files}."),
        ),
    ),
    PathRule(
        name="database",
        area="Database",
        fragments=("migration", "migrate", "/db/", "database", "/models/", "model.",
                   "models.", "repository", "/dao/", ".sql"),
        weight=3,
        critical=True,
        findings=(
            _t(C.DATA_INTEGRITY,
               "Database layer touched ({files}): confirm migrations are reversible "
               "and existing rows survive the change."),
            _t(C.PERFORMANCE,
               "Query or model changes in {files} can shift query plans; check indexes "
               "and N+1 access patterns."),
        ),
    ),
    PathRule(
        name="auth",
        area="Authorization",
        fragments=("auth", "permission", "role", "rbac", "acl", "policy", "policies",
                   "login", "session", "token", "guard"),
        weight=4,
        critical=True,
        findings=(
            _t(C.SECURITY,
               "Authorization logic changed in {files}: re-test role-based access for "
               "every role, including denied paths."),
            _t(C.REGRESSION,
               "Sign-in and session flows that go through {files} need regression "
               "testing; consumers: {consumers}.",
               fallback="Sign-in and session flows that go through {files} need "
                        "regression testing."),
        ),
    ),
    PathRule(
        name="api",
        area="API",
        fragments=("/api/", "api/", "graphql", "routes", "router", "controller",
                   "endpoint", "handler", "resolver"),
        weight=3,
        findings=(
            _t(C.BREAKING_CHANGE,
               "API surface changed in {files}: callers {consumers} and external "
               "clients may break.",
               fallback="API surface changed in {files}: external clients may break."),
            _t(C.POSSIBLY_MISSED,
               "Check contract tests and client code for {files}."),
        ),
    ),
    PathRule(
        name="ui",
        area="UI components",
        fragments=("components/", "/ui/", "pages/", "views/", "layouts/", ".vue",
                   ".svelte", ".jsx", ".tsx", ".css", ".scss"),
        weight=1,
        findings=(
            _t(C.REGRESSION,
               "UI changed in {files}: check rendering where it is used ({consumers}).",
               fallback="UI changed in {files}: check rendering and responsive layouts."),
        ),
    ),
    PathRule(
        name="state",
        area="State management",
        fragments=("store", "redux", "reducer", "slice", "/state/", "context/",
                   "zustand", "vuex", "pinia", "atoms"),
        weight=2,
        findings=(
            _t(C.REGRESSION,
               "Shared state changed in {files}: subscribers {consumers} may see "
               "different values.",
               fallback="Shared state changed in {files}: subscribers may see "
                        "different values."),
        ),
    ),
    PathRule(
        name="utility",
        area="Shared utilities",
        fragments=("util", "helper", "/lib/", "common/", "shared/"),
        weight=2,
        findings=(
            _t(C.REGRESSION,
               "{file} is imported by {consumers}: re-run their tests.",
               per_file=True,
               fallback="{file} changed and has no in-repo importers: check dynamic "
                        "or external usage."),
        ),
    ),
    PathRule(
        name="config",
        area="Configuration",
        fragments=("config", "settings", ".env", ".yml", ".yaml", ".toml", ".ini",
                   "package.json", "tsconfig", "dockerfile", "docker-compose"),
        weight=2,
        findings=(
            _t(C.POSSIBLY_MISSED,
               "Configuration changed ({files}): confirm every environment has "
               "matching values."),
            _t(C.PERFORMANCE,
               "Build or runtime settings in {files} may change startup and bundle "
               "behaviour."),
        ),
    ),
)

DEFAULT_THRESHOLD_RULES: tuple[ThresholdRule, ...] = (
    ThresholdRule(
        name="large_change",
        metric="total_lines",
        threshold=500,
        weight=3,
        findings=(
            _t(C.REGRESSION,
               "Large change: {total_lines} lines across {files_changed} files. "
               "Consider splitting it for review."),
        ),
    ),
    ThresholdRule(
        name="many_files",
        metric="files_changed",
        threshold=20,
        weight=2,
        findings=(
            _t(C.POSSIBLY_MISSED,
               "{files_changed} files changed: cross-cutting edits are easy to miss "
               "in review."),
        ),
    ),
    ThresholdRule(
        name="large_deletions",
        metric="net_deletions",
        threshold=50,
        weight=2,
        findings=(
            _t(C.BREAKING_CHANGE,
               "{lines_deleted} lines deleted against {lines_added} added: removed "
               "code may still be used by {consumers}.",
               fallback="{lines_deleted} lines deleted against {lines_added} added: "
                        "check for remaining references to removed code."),
        ),
    ),
    ThresholdRule(
        name="wide_impact",
        metric="affected_files",
        threshold=15,
        weight=2,
        findings=(
            _t(C.REGRESSION,
               "The change reaches {value} files beyond the changed ones through imports."),
        ),
    ),
    ThresholdRule(
        name="untested_change",
        metric="uncovered_percent",
        threshold=50,
        weight=1,
        findings=(
            _t(C.POSSIBLY_MISSED,
               "No related tests found for {missing}."),
        ),
    ),
)

DEFAULT_RULES = RuleTable(
    path_rules=DEFAULT_PATH_RULES,
    threshold_rules=DEFAULT_THRESHOLD_RULES,
)


def load_rule_table(path: str | Path) -> RuleTable:
    """Load a rule table from a JSON file."""
    path = Path(path)
    try:
        return RuleTable.model_validate_json(path.read_text())
    except (OSError, ValidationError) as e:
        raise ConfigError(f"Invalid risk rule table {path}: {e}") from e


def dump_rule_table(table: RuleTable) -> str:
    return json.dumps(table.model_dump(mode="json"), indent=2)
