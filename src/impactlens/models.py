"""Data models shared by the analysis stages."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ChangeStatus(str, Enum):
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    BINARY = "binary"


class ChangedFile(BaseModel):
    """One changed path with its line counts."""

    model_config = ConfigDict(frozen=True)

    path: str
    additions: int = 0
    deletions: int = 0
    status: ChangeStatus = ChangeStatus.MODIFIED

    @property
    def total_lines(self) -> int:
        return self.additions + self.deletions


class ChangeSet(BaseModel):
    """Ordered, immutable list of changed files between two revisions."""

    model_config = ConfigDict(frozen=True)

    files: tuple[ChangedFile, ...] = ()

    @classmethod
    def from_paths(cls, paths: list[str]) -> ChangeSet:
        return cls(files=tuple(ChangedFile(path=p) for p in paths))

    @property
    def paths(self) -> list[str]:
        return list(dict.fromkeys(f.path for f in self.files))

    @property
    def lines_added(self) -> int:
        return sum(f.additions for f in self.files)

    @property
    def lines_deleted(self) -> int:
        return sum(f.deletions for f in self.files)

    @property
    def files_added(self) -> int:
        return sum(1 for f in self.files if f.status == ChangeStatus.ADDED)

    @property
    def files_modified(self) -> int:
        return sum(
            1 for f in self.files
            if f.status in (ChangeStatus.MODIFIED, ChangeStatus.RENAMED, ChangeStatus.BINARY)
        )

    @property
    def files_deleted(self) -> int:
        return sum(1 for f in self.files if f.status == ChangeStatus.DELETED)

    def __len__(self) -> int:
        return len(self.files)

    def __bool__(self) -> bool:
        return bool(self.files)


class ImpactResult(BaseModel):
    """Files reached by walking reverse import edges from the changed files."""

    changed: list[str] = Field(default_factory=list)
    direct_dependents: dict[str, list[str]] = Field(default_factory=dict)
    indirect_dependents: dict[str, list[str]] = Field(default_factory=dict)
    indirect_depths: dict[str, int] = Field(default_factory=dict)
    all_affected: list[str] = Field(default_factory=list)
    max_depth: int = 2

    @property
    def total_direct(self) -> int:
        return len({d for deps in self.direct_dependents.values() for d in deps})

    @property
    def total_indirect(self) -> int:
        return len({d for deps in self.indirect_dependents.values() for d in deps})

    @property
    def total_affected(self) -> int:
        return len(self.all_affected)

    def consumers_of(self, path: str) -> list[str]:
        return self.direct_dependents.get(path, [])

    def summary(self) -> dict:
        return {
            "changed": len(self.changed),
            "direct": self.total_direct,
            "indirect": self.total_indirect,
            "total_affected": self.total_affected,
            "max_depth": self.max_depth,
        }


class Confidence(str, Enum):
    """Strength of the evidence linking a test to a changed file."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _CONFIDENCE_RANK[self]


_CONFIDENCE_RANK = {Confidence.LOW: 1, Confidence.MEDIUM: 2, Confidence.HIGH: 3}


class RelatedTest(BaseModel):
    """A test file and the changed files it plausibly covers."""

    path: str
    confidence: Confidence
    related_files: list[str] = Field(default_factory=list)
    evidence: dict[str, Confidence] = Field(default_factory=dict)


class CoverageReport(BaseModel):
    """Related tests for a change set, plus what is left uncovered."""

    related_tests: list[RelatedTest] = Field(default_factory=list)
    coverage_percent: int = 100
    missing_tests: list[str] = Field(default_factory=list)
    candidates_scanned: int = 0

    def tests_for(self, path: str) -> list[RelatedTest]:
        return [t for t in self.related_tests if path in t.related_files]


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class FindingCategory(str, Enum):
    BREAKING_CHANGE = "breaking_change"
    REGRESSION = "regression"
    PERFORMANCE = "performance"
    SECURITY = "security"
    DATA_INTEGRITY = "data_integrity"
    POSSIBLY_MISSED = "possibly_missed"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()


class DiffWarning(BaseModel):
    """A latent-bug indicator spotted in the raw diff text."""

    kind: str
    path: str
    line: int = 0
    message: str


class RiskAssessment(BaseModel):
    """Risk level, findings and the files most worth testing."""

    level: RiskLevel = RiskLevel.LOW
    score: int = 0
    signals: list[str] = Field(default_factory=list)
    areas_affected: list[str] = Field(default_factory=list)
    findings: dict[FindingCategory, list[str]] = Field(default_factory=dict)
    diff_warnings: list[DiffWarning] = Field(default_factory=list)
    critical_files_to_test: list[str] = Field(default_factory=list)
    rules_version: str = ""

    def findings_for(self, category: FindingCategory) -> list[str]:
        return self.findings.get(category, [])

    @property
    def has_findings(self) -> bool:
        return any(self.findings.values())


class AnalysisSummary(BaseModel):
    files_changed: int = 0
    files_added: int = 0
    files_modified: int = 0
    files_deleted: int = 0
    lines_added: int = 0
    lines_deleted: int = 0


class AnalysisReport(BaseModel):
    """Everything one analysis run produces."""

    root: str
    branch: str = ""
    base: str = ""
    summary: AnalysisSummary = Field(default_factory=AnalysisSummary)
    changeset: ChangeSet = Field(default_factory=ChangeSet)
    impact: ImpactResult = Field(default_factory=ImpactResult)
    coverage: CoverageReport = Field(default_factory=CoverageReport)
    risk: RiskAssessment = Field(default_factory=RiskAssessment)
    commit_messages: list[str] = Field(default_factory=list)
    file_contents: dict[str, str] = Field(default_factory=dict)
    index_stats: dict = Field(default_factory=dict)
