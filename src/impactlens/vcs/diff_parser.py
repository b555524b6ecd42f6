"""Unified diff parser.

Turns ``git diff`` output into per-file hunks with added/deleted line counts.
The risk engine's diff scanner reads hunks from here, and a diff alone is
enough to build a ChangeSet when git metadata is not available.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from impactlens.models import ChangedFile, ChangeSet, ChangeStatus

_HUNK_HEADER = re.compile(r"@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


@dataclass
class DiffHunk:
    """A single hunk from a unified diff."""
    old_start: int
    old_count: int
    new_start: int
    new_count: int
    lines: list[str] = field(default_factory=list)

    @property
    def removed(self) -> list[str]:
        return [line[1:] for line in self.lines if line.startswith("-")]

    @property
    def added(self) -> list[str]:
        return [line[1:] for line in self.lines if line.startswith("+")]

    def added_with_numbers(self) -> list[tuple[int, str]]:
        """Added lines paired with their line number in the new file."""
        result = []
        line_no = self.new_start
        for line in self.lines:
            if line.startswith("+"):
                result.append((line_no, line[1:]))
                line_no += 1
            elif line.startswith("-") or line.startswith("\\"):
                continue
            else:
                line_no += 1
        return result


@dataclass
class FileDiff:
    """Changes to a single file."""
    path: str
    status: str  # 'added', 'modified', 'deleted', 'renamed', 'binary'
    old_path: str | None = None  # For renames
    hunks: list[DiffHunk] = field(default_factory=list)
    added_lines: int = 0
    deleted_lines: int = 0

    @property
    def changed_line_ranges(self) -> list[tuple[int, int]]:
        """Half-open new-file line ranges touched by each hunk."""
        return [(h.new_start, h.new_start + h.new_count) for h in self.hunks]


def _file_blocks(diff_text: str) -> list[list[str]]:
    blocks: list[list[str]] = []
    for line in diff_text.splitlines():
        if line.startswith("diff --git "):
            blocks.append([line])
        elif blocks:
            blocks[-1].append(line)
    return blocks


def _apply_header(file_diff: FileDiff, line: str) -> None:
    if line.startswith("new file"):
        file_diff.status = "added"
    elif line.startswith("deleted file"):
        file_diff.status = "deleted"
    elif line.startswith("rename from "):
        file_diff.old_path = line[len("rename from "):]
        file_diff.status = "renamed"
    elif line.startswith("rename to "):
        file_diff.path = line[len("rename to "):]
    elif line.startswith("Binary files"):
        file_diff.status = "binary"
    elif line.startswith("+++ b/"):
        file_diff.path = line[len("+++ b/"):]


def _parse_block(block: list[str]) -> FileDiff:
    _, _, path = block[0].rpartition(" b/")
    file_diff = FileDiff(path=path, status="modified")
    hunk: DiffHunk | None = None

    for line in block[1:]:
        match = _HUNK_HEADER.match(line)
        if match:
            old_start, old_count, new_start, new_count = match.groups()
            hunk = DiffHunk(
                old_start=int(old_start),
                old_count=int(old_count or 1),
                new_start=int(new_start),
                new_count=int(new_count or 1),
            )
            file_diff.hunks.append(hunk)
        elif hunk is None:
            _apply_header(file_diff, line)
        else:
            hunk.lines.append(line)
            if line.startswith("+"):
                file_diff.added_lines += 1
            elif line.startswith("-"):
                file_diff.deleted_lines += 1
    return file_diff


def parse_diff(diff_text: str) -> list[FileDiff]:
    """Split unified diff text into one FileDiff per ``diff --git`` section."""
    return [_parse_block(block) for block in _file_blocks(diff_text)]


def changeset_from_diffs(file_diffs: list[FileDiff]) -> ChangeSet:
    """Build a ChangeSet from parsed diffs, keeping diff order."""
    return ChangeSet(
        files=tuple(
            ChangedFile(
                path=fd.path,
                additions=fd.added_lines,
                deletions=fd.deleted_lines,
                status=ChangeStatus(fd.status),
            )
            for fd in file_diffs
            if fd.path
        )
    )
