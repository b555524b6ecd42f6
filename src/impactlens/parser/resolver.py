"""Import resolution - raw specifier + referencing file -> repository path.

Only relative (``./x``, ``../x``, Python ``.x``) and rooted (``/x``)
specifiers are resolved. Bare package names are external and resolve to
None. Candidates are tried in a fixed order: the literal path, the path with
each source extension appended, then the path as a directory holding an
``index.<ext>`` (or ``__init__.py``) file.

With ``verify_exists`` off, the first candidate that stays inside the
repository wins without touching the disk. With it on (the default), a
candidate must be a known file.
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Callable, Collection
from pathlib import Path

logger = logging.getLogger("impactlens.parser")

SOURCE_EXTENSIONS: tuple[str, ...] = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".vue",
    ".svelte",
    ".py",
    ".pyi",
    ".go",
)

_PY_RELATIVE = re.compile(r"^(\.+)([\w.]*)$")


def normalize_specifier(specifier: str) -> str:
    """Turn Python dotted-relative specifiers into path form.

    ``.models`` -> ``./models``, ``..pkg.mod`` -> ``../pkg/mod``, ``.`` -> ``./``.
    Path-style specifiers (``./x``, ``../x``, ``/x``) are returned unchanged.
    """
    if specifier.startswith(("./", "../", "/")):
        return specifier
    match = _PY_RELATIVE.match(specifier)
    if not match:
        return specifier
    dots, rest = match.groups()
    prefix = "./" if len(dots) == 1 else "../" * (len(dots) - 1)
    return prefix + rest.replace(".", "/")


def is_relative_specifier(specifier: str) -> bool:
    return specifier.startswith((".", "/"))


def candidate_paths(base: str) -> list[str]:
    """Ordered resolution candidates for a normalized, root-relative base path."""
    if base in (".", ""):
        # The repository root itself: only directory index files apply.
        return [f"index{ext}" for ext in SOURCE_EXTENSIONS] + ["__init__.py"]
    candidates = [base]
    candidates.extend(base + ext for ext in SOURCE_EXTENSIONS)
    candidates.extend(posixpath.join(base, f"index{ext}") for ext in SOURCE_EXTENSIONS)
    candidates.append(posixpath.join(base, "__init__.py"))
    return candidates


def _inside_root(path: str) -> bool:
    return bool(path) and path not in (".", "..") and not path.startswith("../")


class ImportResolver:
    """Resolves import specifiers for files of one repository.

    Args:
        root: Repository root.
        known_files: Repository-relative paths that exist. When given, it is
            used instead of stat calls to check candidates.
        verify_exists: Require a candidate to be an existing file.
    """

    def __init__(
        self,
        root: str | Path,
        known_files: Collection[str] | None = None,
        verify_exists: bool = True,
    ) -> None:
        self.root = Path(root).resolve()
        self.verify_exists = verify_exists
        self._exists: Callable[[str], bool]
        if known_files is not None:
            self._exists = known_files.__contains__
        else:
            self._exists = self._is_file

    def _is_file(self, path: str) -> bool:
        return (self.root / path).is_file()

    def resolve(self, specifier: str, referencer: str) -> str | None:
        """Resolve `specifier` imported from `referencer` (both repo-relative)."""
        if not specifier or not is_relative_specifier(specifier):
            return None

        spec = normalize_specifier(specifier.split("?", 1)[0])
        if spec.startswith("/"):
            base = posixpath.normpath(spec.lstrip("/"))
        else:
            ref_dir = posixpath.dirname(referencer)
            base = posixpath.normpath(posixpath.join(ref_dir, spec))

        for candidate in candidate_paths(base):
            candidate = posixpath.normpath(candidate)
            if not _inside_root(candidate):
                continue
            if self.verify_exists and not self._exists(candidate):
                continue
            if candidate == referencer:
                return None
            return candidate

        logger.debug("Unresolved import %r in %s", specifier, referencer)
        return None


def resolve_import(
    specifier: str,
    referencer: str,
    root: str | Path,
    verify_exists: bool = True,
) -> str | None:
    """Resolve a single specifier without keeping a resolver around."""
    return ImportResolver(root, verify_exists=verify_exists).resolve(specifier, referencer)
