"""Tests for the unified diff parser."""

from __future__ import annotations

from impactlens.models import ChangeStatus
from impactlens.vcs.diff_parser import DiffHunk, changeset_from_diffs, parse_diff

SAMPLE_DIFF = """\
diff --git a/src/utils/format.js b/src/utils/format.js
index abc1234..def5678 100644
--- a/src/utils/format.js
+++ b/src/utils/format.js
@@ -1,4 +1,4 @@
 export function formatDate(d) {
-  return d.toISOString();
+  return d.toISOString().slice(0, 10);
 }

@@ -10,2 +10,5 @@ export function formatMoney(n) {
   return n;
 }
+
+export const ZERO = 0;
+export const ONE = 1;
"""

SAMPLE_DIFF_NEW_FILE = """\
diff --git a/src/new.js b/src/new.js
new file mode 100644
index 0000000..abc1234
--- /dev/null
+++ b/src/new.js
@@ -0,0 +1,2 @@
+export const a = 1;
+export const b = 2;
"""

SAMPLE_DIFF_DELETED = """\
diff --git a/src/old.js b/src/old.js
deleted file mode 100644
index abc1234..0000000
--- a/src/old.js
+++ /dev/null
@@ -1,2 +0,0 @@
-export const old = 1;
-export default old;
"""

SAMPLE_DIFF_RENAMED = """\
diff --git a/src/a.js b/src/b.js
similarity index 90%
rename from src/a.js
rename to src/b.js
index abc1234..def5678 100644
--- a/src/a.js
+++ b/src/b.js
@@ -1 +1 @@
-export const x = 1;
+export const x = 2;
"""

SAMPLE_DIFF_BINARY = """\
diff --git a/assets/logo.png b/assets/logo.png
index abc1234..def5678 100644
Binary files a/assets/logo.png and b/assets/logo.png differ
"""


class TestDiffParser:
    def test_parse_modified_file(self):
        diffs = parse_diff(SAMPLE_DIFF)
        assert len(diffs) == 1
        assert diffs[0].path == "src/utils/format.js"
        assert diffs[0].status == "modified"
        assert len(diffs[0].hunks) == 2

    def test_line_counts(self):
        diff = parse_diff(SAMPLE_DIFF)[0]
        assert diff.added_lines == 4
        assert diff.deleted_lines == 1

    def test_changed_line_ranges(self):
        diff = parse_diff(SAMPLE_DIFF)[0]
        assert diff.changed_line_ranges == [(1, 5), (10, 15)]

    def test_new_file(self):
        diff = parse_diff(SAMPLE_DIFF_NEW_FILE)[0]
        assert diff.path == "src/new.js"
        assert diff.status == "added"
        assert diff.added_lines == 2

    def test_deleted_file(self):
        diff = parse_diff(SAMPLE_DIFF_DELETED)[0]
        assert diff.path == "src/old.js"
        assert diff.status == "deleted"
        assert diff.deleted_lines == 2

    def test_renamed_file(self):
        diff = parse_diff(SAMPLE_DIFF_RENAMED)[0]
        assert diff.status == "renamed"
        assert diff.old_path == "src/a.js"
        assert diff.path == "src/b.js"

    def test_binary_file(self):
        diff = parse_diff(SAMPLE_DIFF_BINARY)[0]
        assert diff.status == "binary"
        assert diff.hunks == []

    def test_multiple_files(self):
        diffs = parse_diff(SAMPLE_DIFF + SAMPLE_DIFF_NEW_FILE + SAMPLE_DIFF_DELETED)
        assert [d.path for d in diffs] == ["src/utils/format.js", "src/new.js", "src/old.js"]

    def test_header_like_content_inside_hunk(self):
        diff = (
            "diff --git a/notes.txt b/notes.txt\n--- a/notes.txt\n+++ b/notes.txt\n"
            "@@ -1 +1,2 @@\n line\n+new file mode is just text here\n"
        )
        parsed = parse_diff(diff)[0]
        assert parsed.status == "modified"
        assert parsed.added_lines == 1

    def test_empty(self):
        assert parse_diff("") == []


class TestDiffHunk:
    def test_added_with_numbers(self):
        hunk = DiffHunk(old_start=5, old_count=3, new_start=5, new_count=3,
                        lines=[" a", "-b", "+c", " d", "+e"])
        assert hunk.added_with_numbers() == [(6, "c"), (8, "e")]
        assert hunk.removed == ["b"]
        assert hunk.added == ["c", "e"]


class TestChangesetFromDiffs:
    def test_statuses_and_counts(self):
        diffs = parse_diff(SAMPLE_DIFF + SAMPLE_DIFF_NEW_FILE + SAMPLE_DIFF_DELETED)
        changes = changeset_from_diffs(diffs)
        assert changes.paths == ["src/utils/format.js", "src/new.js", "src/old.js"]
        assert changes.lines_added == 6
        assert changes.lines_deleted == 3
        assert changes.files_added == 1
        assert changes.files_modified == 1
        assert changes.files_deleted == 1
        assert changes.files[2].status == ChangeStatus.DELETED
