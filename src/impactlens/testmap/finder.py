"""Related-test discovery with three tiers of confidence.

Candidate tests come from two places: a bounded listing of the configured
test directories, and naming-convention probes next to each changed file
(``foo.test.js``, ``__tests__/foo.spec.ts``, ``tests/test_foo.py``, ...),
which are kept only if they exist.

Each candidate is scored against every changed file and keeps the strongest
signal it has:

  1. import evidence   -> high    (one of its imports resolves to the file)
  2. name similarity   -> medium  (base names, minus test affixes, contain
                                    one another)
  3. textual mention   -> low     (the bare filename appears in its text)

Mentions are gated: the filename must be long enough, not a generic name
like ``index.js``, and must match on word boundaries.
"""

from __future__ import annotations

import logging
import math
import os
import re
from pathlib import Path, PurePosixPath

from impactlens.config import AnalyzerConfig
from impactlens.models import Confidence, CoverageReport, RelatedTest
from impactlens.parser.extractors import extract_imports
from impactlens.parser.models import LanguageKind, SourceFile, detect_language
from impactlens.parser.resolver import ImportResolver

logger = logging.getLogger("impactlens.tests")

_TEST_NAME_PATTERNS = [
    re.compile(r"\.(test|spec)\.[^.]+$"),
    re.compile(r"^test_.+\.py$"),
    re.compile(r".+_test\.(py|go)$"),
]

_GENERIC_STEMS = {"index", "__init__", "main", "types"}

_JS_EXTENSIONS = (".js", ".jsx", ".ts", ".tsx")


def is_test_file(path: str) -> bool:
    """Whether `path` looks like a test by name or by living in __tests__."""
    p = PurePosixPath(path)
    if "__tests__" in p.parts[:-1]:
        return True
    return any(pattern.search(p.name) for pattern in _TEST_NAME_PATTERNS)


def _strip_extension(name: str) -> str:
    return PurePosixPath(name).stem.lower()


def strip_test_affixes(name: str) -> str:
    """Lowercased stem of a test file with its test affix removed."""
    base = _strip_extension(name)
    for suffix in (".test", ".spec", "_test"):
        if base.endswith(suffix):
            return base[: -len(suffix)]
    if base.startswith("test_"):
        return base[len("test_"):]
    return base


def convention_probes(changed_path: str) -> list[str]:
    """Test paths that naming conventions would put next to `changed_path`."""
    p = PurePosixPath(changed_path)
    directory, stem, ext = p.parent, p.stem, p.suffix
    language = detect_language(changed_path)

    probes: list[str] = []
    if language == LanguageKind.ECMASCRIPT:
        extensions = [ext] + [e for e in _JS_EXTENSIONS if e != ext]
        for marker in (".test", ".spec"):
            for e in extensions:
                name = f"{stem}{marker}{e}"
                probes.append(str(directory / name))
                for sub in ("__tests__", "test", "tests"):
                    probes.append(str(directory / sub / name))
        for e in extensions:
            probes.append(str(directory / "__tests__" / f"{stem}{e}"))
    elif language == LanguageKind.PYTHON:
        for name in (f"test_{stem}.py", f"{stem}_test.py"):
            probes.append(str(directory / name))
            for sub in ("test", "tests"):
                probes.append(str(directory / sub / name))
    elif language == LanguageKind.GO:
        probes.append(str(directory / f"{stem}_test.go"))
    else:
        for marker in (".test", ".spec"):
            probes.append(str(directory / f"{stem}{marker}{ext}"))

    return list(dict.fromkeys(probes))


class RelatedTestFinder:
    """Find tests related to a set of changed files."""

    def __init__(self, root: str | Path, config: AnalyzerConfig | None = None) -> None:
        self.root = Path(root).resolve()
        self.config = config or AnalyzerConfig()
        self.resolver = ImportResolver(
            self.root, verify_exists=self.config.indexer.verify_imports_exist
        )

    def list_test_dirs(self) -> list[str]:
        """Test files under the configured test directories, depth-bounded."""
        ignored = set(self.config.indexer.ignore_dirs)
        max_depth = self.config.tests.max_listing_depth
        found: list[str] = []

        for test_dir in self.config.tests.test_dirs:
            start = self.root / test_dir
            if not start.is_dir():
                continue
            pending: list[tuple[Path, int]] = [(start, 0)]
            while pending:
                current, depth = pending.pop()
                try:
                    with os.scandir(current) as entries:
                        for entry in entries:
                            if entry.is_dir(follow_symlinks=False):
                                if entry.name not in ignored and depth < max_depth:
                                    pending.append((Path(entry.path), depth + 1))
                            elif entry.is_file():
                                rel = Path(entry.path).relative_to(self.root).as_posix()
                                if detect_language(rel) is not None and is_test_file(rel):
                                    found.append(rel)
                except OSError as e:
                    logger.debug("Skipping unreadable test directory %s: %s", current, e)

        return sorted(set(found))

    def candidates(self, changed_paths: list[str]) -> list[str]:
        """The test corpus: listed test dirs plus existing convention probes."""
        corpus = dict.fromkeys(self.list_test_dirs())
        for path in changed_paths:
            for probe in convention_probes(path):
                if probe not in corpus and (self.root / probe).is_file():
                    corpus[probe] = None
        return list(corpus)

    def find(self, changed_paths: list[str]) -> CoverageReport:
        changed = list(dict.fromkeys(changed_paths))
        if not changed:
            return CoverageReport(coverage_percent=100)

        candidates = self.candidates(changed)
        related: list[RelatedTest] = []
        for test_path in candidates:
            match = self.classify(test_path, changed)
            if match is not None:
                related.append(match)

        covered = {path for test in related for path in test.related_files}
        missing = [path for path in changed if path not in covered]
        coverage = math.floor(len(covered) / len(changed) * 100 + 0.5)

        return CoverageReport(
            related_tests=related,
            coverage_percent=min(100, max(0, coverage)),
            missing_tests=missing,
            candidates_scanned=len(candidates),
        )

    def classify(self, test_path: str, changed: list[str]) -> RelatedTest | None:
        """Score one test file against every changed file."""
        source = SourceFile(
            path=test_path, root=self.root, max_bytes=self.config.indexer.max_file_bytes
        )
        content = source.content
        imported = {
            self.resolver.resolve(spec, test_path)
            for spec in extract_imports(content, source.language)
        }
        imported.discard(None)
        test_base = strip_test_affixes(source.name)

        evidence: dict[str, Confidence] = {}

        def record(path: str, confidence: Confidence) -> None:
            current = evidence.get(path)
            if current is None or confidence.rank > current.rank:
                evidence[path] = confidence

        for path in changed:
            if path == test_path:
                continue
            if path in imported:
                record(path, Confidence.HIGH)
                continue
            changed_name = PurePosixPath(path).name
            changed_base = _strip_extension(changed_name)
            if changed_base and test_base and (
                changed_base in test_base or test_base in changed_base
            ):
                record(path, Confidence.MEDIUM)
                continue
            if self._mentions(content, changed_name):
                record(path, Confidence.LOW)

        if not evidence:
            return None

        strongest = max(evidence.values(), key=lambda c: c.rank)
        return RelatedTest(
            path=test_path,
            confidence=strongest,
            related_files=[p for p in changed if p in evidence],
            evidence=evidence,
        )

    def _mentions(self, content: str, filename: str) -> bool:
        if len(filename) < self.config.tests.min_mention_length:
            return False
        if _strip_extension(filename) in _GENERIC_STEMS:
            return False
        pattern = re.compile(rf"(?<![\w]){re.escape(filename)}(?![\w])")
        return pattern.search(content) is not None


def find_related_tests(
    root: str | Path, changed_paths: list[str], config: AnalyzerConfig | None = None
) -> CoverageReport:
    return RelatedTestFinder(root, config).find(changed_paths)
