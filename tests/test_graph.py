"""Tests for the dependency index, its builder and the impact walker."""

from __future__ import annotations

from pathlib import Path

import pytest

from impactlens.config import IndexerConfig
from impactlens.graph.builder import DependencyIndexBuilder, build_index, collect_files
from impactlens.graph.index import DependencyIndex
from impactlens.graph.walker import ImpactWalker, analyze_impact

FORMAT_DEPENDENTS = [
    "src/auth/login.js",
    "src/components/Footer.jsx",
    "src/components/Header.jsx",
    "src/pages/Home.js",
    "src/services/report.ts",
]


class TestDependencyIndex:
    def test_add_edge(self):
        index = DependencyIndex()
        assert index.add_edge("a.js", "b.js")
        assert index.dependents_of("b.js") == ["a.js"]
        assert index.imports_of("a.js") == ["b.js"]
        assert "b.js" in index
        assert "a.js" not in index

    def test_self_and_null_edges_dropped(self):
        index = DependencyIndex()
        assert not index.add_edge("a.js", "a.js")
        assert not index.add_edge("a.js", None)
        assert index.edge_count == 0
        assert len(index) == 0

    def test_merge_deduplicates(self):
        index = DependencyIndex()
        index.merge([("a.js", "c.js"), ("b.js", "c.js"), ("a.js", "c.js")])
        assert index.edge_count == 2
        assert index.as_dict() == {"c.js": {"a.js", "b.js"}}

    def test_unknown_path(self):
        assert DependencyIndex().dependents_of("nope.js") == []


class TestCollectFiles:
    def test_ignored_dirs_pruned(self, js_repo: Path):
        files = collect_files(js_repo, IndexerConfig().ignore_dirs)
        assert "src/app.js" in files
        assert "README.md" in files
        assert not any(f.startswith("node_modules/") for f in files)
        assert files == sorted(files)


class TestDependencyIndexBuilder:
    def test_direct_dependents(self, js_repo: Path):
        index = build_index(js_repo)
        assert index.dependents_of("src/utils/format.js") == FORMAT_DEPENDENTS

    def test_all_import_forms_become_edges(self, js_repo: Path):
        index = build_index(js_repo)
        assert index.dependents_of("src/components/Footer.jsx") == ["src/pages/About.js"]
        assert index.dependents_of("src/auth/login.js") == ["tests/login.test.js"]
        assert index.dependents_of("src/app.js") == ["src/index.js"]

    def test_ignored_directory_not_indexed(self, js_repo: Path):
        index = build_index(js_repo)
        assert "node_modules/lib/index.js" not in index.graph

    def test_python_relative_imports(self, py_repo: Path):
        index = build_index(py_repo)
        assert index.dependents_of("pkg/models.py") == ["pkg/api/routes.py", "pkg/service.py"]
        assert index.dependents_of("pkg/helpers.py") == ["pkg/service.py"]
        assert index.dependents_of("pkg/service.py") == ["pkg/api/routes.py"]

    def test_stats(self, js_repo: Path):
        builder = DependencyIndexBuilder()
        builder.build(js_repo)
        stats = builder.get_stats()
        assert stats["files_scanned"] == 12
        assert stats["files_skipped"] == 0
        assert stats["edges"] > 0

    def test_progress_callback(self, js_repo: Path):
        calls = []
        DependencyIndexBuilder().build(js_repo, lambda path, i, total: calls.append((i, total)))
        assert calls[-1] == (12, 12)

    def test_progress_callback_with_thread_pool(self, js_repo: Path):
        calls = []
        builder = DependencyIndexBuilder(IndexerConfig(workers=4))
        builder.build(js_repo, lambda path, i, total: calls.append((path, i, total)))
        assert [i for _, i, _ in calls] == list(range(1, 13))
        assert [path for path, _, _ in calls] == sorted(path for path, _, _ in calls)

    def test_rebuild_is_stable(self, js_repo: Path):
        assert build_index(js_repo).as_dict() == build_index(js_repo).as_dict()

    def test_thread_pool_matches_sequential(self, js_repo: Path):
        sequential = build_index(js_repo)
        parallel = build_index(js_repo, IndexerConfig(workers=4))
        assert parallel.as_dict() == sequential.as_dict()
        assert parallel.dependents_of("src/utils/format.js") == FORMAT_DEPENDENTS

    def test_max_file_bytes_truncates(self, js_repo: Path):
        index = build_index(js_repo, IndexerConfig(max_file_bytes=5))
        assert index.edge_count == 0

    def test_unverified_imports(self, js_repo: Path):
        index = build_index(js_repo, IndexerConfig(verify_imports_exist=False))
        assert index.dependents_of("src/services/types") == ["src/services/report.ts"]


class TestImpactWalker:
    def test_direct_and_indirect(self, js_repo: Path):
        impact = analyze_impact(build_index(js_repo), ["src/utils/format.js"])
        assert impact.direct_dependents["src/utils/format.js"] == FORMAT_DEPENDENTS
        assert impact.indirect_dependents["src/utils/format.js"] == [
            "tests/login.test.js",
            "src/pages/About.js",
            "src/app.js",
            "src/index.js",
        ]
        assert impact.indirect_depths["src/app.js"] == 1
        assert impact.indirect_depths["src/index.js"] == 2

    def test_depth_bound(self, js_repo: Path):
        impact = analyze_impact(build_index(js_repo), ["src/utils/format.js"], max_depth=1)
        indirect = impact.indirect_dependents["src/utils/format.js"]
        assert "src/app.js" in indirect
        assert "src/index.js" not in indirect

    def test_depth_zero_is_direct_only(self, js_repo: Path):
        impact = analyze_impact(build_index(js_repo), ["src/utils/format.js"], max_depth=0)
        assert impact.indirect_dependents["src/utils/format.js"] == []
        assert impact.total_direct == 5

    def test_all_affected_contains_changed(self, js_repo: Path):
        changed = ["src/index.js", "src/utils/format.js"]
        impact = analyze_impact(build_index(js_repo), changed)
        assert impact.all_affected[:2] == changed
        assert set(changed) <= set(impact.all_affected)
        assert len(impact.all_affected) == len(set(impact.all_affected))

    def test_changed_file_never_reported_as_indirect(self, js_repo: Path):
        impact = analyze_impact(build_index(js_repo), ["src/utils/format.js", "src/app.js"])
        indirect = impact.indirect_dependents["src/utils/format.js"]
        assert "src/app.js" not in indirect
        assert impact.direct_dependents["src/app.js"] == ["src/index.js"]
        # Already a direct dependent of app.js
        assert "src/index.js" not in indirect

    def test_cycle_terminates(self):
        index = DependencyIndex()
        index.merge([("a.js", "b.js"), ("b.js", "c.js"), ("c.js", "a.js")])
        impact = ImpactWalker(index, max_depth=10).walk(["a.js"])
        assert impact.direct_dependents["a.js"] == ["c.js"]
        assert impact.indirect_dependents["a.js"] == ["b.js"]
        assert impact.all_affected == ["a.js", "c.js", "b.js"]

    def test_empty_change(self):
        impact = ImpactWalker(DependencyIndex()).walk([])
        assert impact.all_affected == []
        assert impact.summary()["total_affected"] == 0

    def test_negative_depth_rejected(self):
        with pytest.raises(ValueError):
            ImpactWalker(DependencyIndex(), max_depth=-1)
