"""Tests for related-test discovery and coverage."""

from __future__ import annotations

from pathlib import Path

from impactlens.config import AnalyzerConfig, DiscoveryConfig
from impactlens.models import Confidence
from impactlens.testmap.finder import (
    RelatedTestFinder,
    convention_probes,
    find_related_tests,
    is_test_file,
    strip_test_affixes,
)


class TestNamingConventions:
    def test_is_test_file(self):
        assert is_test_file("src/a.test.ts")
        assert is_test_file("src/a.spec.jsx")
        assert is_test_file("src/__tests__/a.js")
        assert is_test_file("tests/test_models.py")
        assert is_test_file("pkg/models_test.go")
        assert not is_test_file("src/contest.js")
        assert not is_test_file("src/testing.py")

    def test_js_probes(self):
        probes = convention_probes("src/utils/format.js")
        assert probes[0] == "src/utils/format.test.js"
        assert "src/utils/__tests__/format.spec.ts" in probes
        assert "src/utils/__tests__/format.js" in probes
        assert len(probes) == len(set(probes))

    def test_python_probes(self):
        probes = convention_probes("pkg/models.py")
        assert "pkg/test_models.py" in probes
        assert "pkg/tests/test_models.py" in probes
        assert "pkg/models_test.py" in probes

    def test_strip_test_affixes(self):
        assert strip_test_affixes("login.test.js") == "login"
        assert strip_test_affixes("Format.spec.ts") == "format"
        assert strip_test_affixes("test_models.py") == "models"
        assert strip_test_affixes("strings_test.go") == "strings"
        assert strip_test_affixes("helpers.js") == "helpers"

    def test_go_probe(self):
        assert convention_probes("pkg/util/strings.go") == ["pkg/util/strings_test.go"]


class TestRelatedTestFinder:
    def test_import_evidence_is_high(self, js_repo: Path):
        report = find_related_tests(js_repo, ["src/auth/login.js"])
        tests = report.tests_for("src/auth/login.js")
        assert [t.path for t in tests] == ["tests/login.test.js"]
        assert tests[0].confidence == Confidence.HIGH
        assert report.coverage_percent == 100

    def test_name_similarity_is_medium(self, js_repo: Path):
        report = find_related_tests(js_repo, ["src/utils/format.js"])
        tests = report.tests_for("src/utils/format.js")
        assert [t.path for t in tests] == ["tests/format.spec.js"]
        assert tests[0].confidence == Confidence.MEDIUM

    def test_textual_mention_is_low(self, js_repo: Path):
        report = find_related_tests(js_repo, ["src/components/Header.jsx"])
        tests = report.tests_for("src/components/Header.jsx")
        assert [t.path for t in tests] == ["tests/misc.test.js"]
        assert tests[0].confidence == Confidence.LOW

    def test_import_wins_over_name(self, tmp_path: Path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "cart.js").write_text("export const cart = [];\n")
        (tmp_path / "tests").mkdir()
        (tmp_path / "tests" / "cart.test.js").write_text(
            'import { cart } from "../src/cart";\n// cart.js\n'
        )
        report = find_related_tests(tmp_path, ["src/cart.js"])
        assert report.related_tests[0].confidence == Confidence.HIGH
        assert report.related_tests[0].evidence == {"src/cart.js": Confidence.HIGH}

    def test_coverage_rounds_half_up(self, js_repo: Path):
        changed = ["src/utils/format.js", "src/auth/login.js", "src/services/report.ts"]
        report = find_related_tests(js_repo, changed)
        assert report.coverage_percent == 67
        assert report.missing_tests == ["src/services/report.ts"]

    def test_no_changes_is_full_coverage(self, js_repo: Path):
        report = find_related_tests(js_repo, [])
        assert report.coverage_percent == 100
        assert report.related_tests == []
        assert report.missing_tests == []

    def test_generic_names_not_matched_by_mention(self, tmp_path: Path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "index.js").write_text("export default 1;\n")
        (tmp_path / "tests").mkdir()
        (tmp_path / "tests" / "app.test.js").write_text("// loads index.js first\n")
        report = find_related_tests(tmp_path, ["src/index.js"])
        assert report.related_tests == []
        assert report.coverage_percent == 0

    def test_mention_needs_word_boundaries(self, tmp_path: Path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "cart.js").write_text("export const cart = [];\n")
        (tmp_path / "tests").mkdir()
        (tmp_path / "tests" / "checkout.test.js").write_text("// see minicart.jsx\n")
        assert find_related_tests(tmp_path, ["src/cart.js"]).related_tests == []

    def test_short_names_not_matched_by_mention(self, tmp_path: Path):
        (tmp_path / "tests").mkdir()
        (tmp_path / "tests" / "checkout.test.js").write_text("// a.js\n")
        config = AnalyzerConfig(tests=DiscoveryConfig(min_mention_length=5))
        report = find_related_tests(tmp_path, ["a.js"], config)
        assert report.related_tests == []

    def test_colocated_convention_probe(self, tmp_path: Path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "cart.js").write_text("export const cart = [];\n")
        (tmp_path / "src" / "cart.test.js").write_text('import { cart } from "./cart";\n')
        report = find_related_tests(tmp_path, ["src/cart.js"])
        assert [t.path for t in report.related_tests] == ["src/cart.test.js"]
        assert report.related_tests[0].confidence == Confidence.HIGH

    def test_go_test_by_name(self, tmp_path: Path):
        (tmp_path / "pkg" / "util").mkdir(parents=True)
        (tmp_path / "pkg" / "util" / "strings.go").write_text("package util\n")
        (tmp_path / "pkg" / "util" / "strings_test.go").write_text('package util\n\nimport "testing"\n')
        report = find_related_tests(tmp_path, ["pkg/util/strings.go"])
        assert report.related_tests[0].path == "pkg/util/strings_test.go"
        assert report.related_tests[0].confidence == Confidence.MEDIUM

    def test_python_test_by_name(self, py_repo: Path):
        report = find_related_tests(py_repo, ["pkg/service.py", "pkg/helpers.py"])
        assert report.tests_for("pkg/service.py")[0].path == "tests/test_service.py"
        assert report.missing_tests == ["pkg/helpers.py"]
        assert report.coverage_percent == 50

    def test_changed_test_not_paired_with_itself(self, js_repo: Path):
        report = find_related_tests(js_repo, ["tests/login.test.js"])
        assert all(t.path != "tests/login.test.js" for t in report.related_tests)

    def test_listing_depth_bound(self, tmp_path: Path):
        deep = tmp_path / "tests" / "a" / "b"
        deep.mkdir(parents=True)
        (deep / "cart.test.js").write_text("// cart\n")
        config = AnalyzerConfig(tests=DiscoveryConfig(max_listing_depth=1))
        finder = RelatedTestFinder(tmp_path, config)
        assert finder.list_test_dirs() == []
        assert RelatedTestFinder(tmp_path).list_test_dirs() == ["tests/a/b/cart.test.js"]

    def test_helpers_under_test_dirs_are_not_tests(self, tmp_path: Path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "format.js").write_text("export const fmt = 1;\n")
        (tmp_path / "tests" / "helpers").mkdir(parents=True)
        (tmp_path / "tests" / "helpers" / "format.js").write_text(
            'import { fmt } from "../../src/format";\n'
        )
        assert RelatedTestFinder(tmp_path).list_test_dirs() == []
        report = find_related_tests(tmp_path, ["src/format.js"])
        assert report.related_tests == []
        assert report.coverage_percent == 0
        assert report.missing_tests == ["src/format.js"]

    def test_test_affix_does_not_count_as_name_match(self, tmp_path: Path):
        (tmp_path / "src").mkdir()
        (tmp_path / "src" / "spec.js").write_text("export const spec = 1;\n")
        (tmp_path / "tests").mkdir()
        (tmp_path / "tests" / "cart.spec.js").write_text("// cart\n")
        assert find_related_tests(tmp_path, ["src/spec.js"]).related_tests == []
