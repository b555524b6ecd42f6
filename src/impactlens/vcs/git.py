"""Git collaborator - changed files, diff text and commit messages.

Everything goes through the ``git`` executable. Failing to produce the
changed-file list is fatal for an analysis and raises GitError; the diff
text and commit messages are supplementary, so failures there are logged
and produce empty results.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from impactlens.exceptions import GitError, RepositoryError
from impactlens.models import ChangedFile, ChangeSet, ChangeStatus

logger = logging.getLogger("impactlens.git")

_NAME_STATUS = {
    "A": ChangeStatus.ADDED,
    "M": ChangeStatus.MODIFIED,
    "D": ChangeStatus.DELETED,
    "T": ChangeStatus.MODIFIED,
}


def _run_git(root: Path, *args: str, timeout: int = 30) -> str:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=root,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
        )
    except (subprocess.TimeoutExpired, FileNotFoundError, NotADirectoryError) as e:
        raise GitError(args[0], str(e)) from e
    if result.returncode != 0:
        raise GitError(args[0], result.stderr.strip())
    return result.stdout


def _revision_range(base: str, head: str) -> str:
    return f"{base}...{head}"


def find_repo_root(start: str | Path | None = None) -> Path:
    """Top level of the git work tree containing `start`.

    Falls back to `start` itself when it is not inside a git repository.
    """
    path = Path(start or Path.cwd()).resolve()
    if not path.is_dir():
        raise RepositoryError(f"Repository root is not a directory: {path}")
    try:
        return Path(_run_git(path, "rev-parse", "--show-toplevel").strip()).resolve()
    except GitError:
        return path


def get_changed_files(root: Path, base: str, head: str = "HEAD") -> ChangeSet:
    """Changed files between `base` and `head` with insertion/deletion counts."""
    rev = _revision_range(base, head)
    # -z keeps paths verbatim; without it git C-quotes non-ASCII names
    numstat = _run_git(root, "diff", "--numstat", "-z", "--no-renames", rev)
    name_status = _run_git(root, "diff", "--name-status", "-z", "--no-renames", rev)

    fields = name_status.split("\0")
    statuses: dict[str, ChangeStatus] = {}
    for code, path in zip(fields[0::2], fields[1::2]):
        statuses[path] = _NAME_STATUS.get(code[:1], ChangeStatus.MODIFIED)

    files = []
    for record in numstat.split("\0"):
        parts = record.split("\t", 2)
        if len(parts) < 3:
            continue
        added, deleted, path = parts[0], parts[1], parts[2]
        if added == "-" or deleted == "-":
            status = statuses.get(path, ChangeStatus.BINARY)
            if status == ChangeStatus.MODIFIED:
                status = ChangeStatus.BINARY
            files.append(ChangedFile(path=path, status=status))
            continue
        files.append(
            ChangedFile(
                path=path,
                additions=int(added),
                deletions=int(deleted),
                status=statuses.get(path, ChangeStatus.MODIFIED),
            )
        )

    logger.info("%d file(s) changed in %s", len(files), rev)
    return ChangeSet(files=tuple(files))


def get_diff(root: Path, base: str, head: str = "HEAD", max_bytes: int = 50_000) -> str:
    """Unified diff between `base` and `head`, truncated to `max_bytes` characters."""
    try:
        diff = _run_git(root, "diff", _revision_range(base, head))
    except GitError as e:
        logger.warning("Could not read diff: %s", e)
        return ""
    return diff[:max_bytes]


def get_commit_messages(root: Path, base: str, head: str = "HEAD", limit: int = 10) -> list[str]:
    """Subjects of the commits on `head` that are not on `base`, newest first."""
    if limit <= 0:
        return []
    try:
        out = _run_git(root, "log", "--format=%s", f"-n{limit}", f"{base}..{head}")
    except GitError as e:
        logger.warning("Could not read commit log: %s", e)
        return []
    return [line for line in out.splitlines() if line.strip()]
