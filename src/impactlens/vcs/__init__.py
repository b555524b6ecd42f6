"""Version-control collaborators: git access and unified diff parsing."""

from impactlens.vcs.diff_parser import DiffHunk, FileDiff, changeset_from_diffs, parse_diff
from impactlens.vcs.git import find_repo_root, get_changed_files, get_commit_messages, get_diff

__all__ = [
    "DiffHunk",
    "FileDiff",
    "changeset_from_diffs",
    "find_repo_root",
    "get_changed_files",
    "get_commit_messages",
    "get_diff",
    "parse_diff",
]
