"""Source file model and language detection."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath

logger = logging.getLogger("impactlens.parser")


class LanguageKind(str, Enum):
    """Language families with an import extractor."""

    ECMASCRIPT = "ecmascript"
    PYTHON = "python"
    GO = "go"


# Language detection by file extension
EXTENSION_LANGUAGE_MAP: dict[str, LanguageKind] = {
    ".js": LanguageKind.ECMASCRIPT,
    ".jsx": LanguageKind.ECMASCRIPT,
    ".mjs": LanguageKind.ECMASCRIPT,
    ".cjs": LanguageKind.ECMASCRIPT,
    ".ts": LanguageKind.ECMASCRIPT,
    ".tsx": LanguageKind.ECMASCRIPT,
    ".mts": LanguageKind.ECMASCRIPT,
    ".cts": LanguageKind.ECMASCRIPT,
    ".vue": LanguageKind.ECMASCRIPT,
    ".svelte": LanguageKind.ECMASCRIPT,
    ".py": LanguageKind.PYTHON,
    ".pyi": LanguageKind.PYTHON,
    ".go": LanguageKind.GO,
}


def detect_language(file_path: str) -> LanguageKind | None:
    """Detect the language family from the file extension."""
    ext = PurePosixPath(file_path).suffix.lower()
    return EXTENSION_LANGUAGE_MAP.get(ext)


def to_repo_path(path: Path, root: Path) -> str:
    """Repository-relative POSIX form of an absolute path under `root`."""
    return path.relative_to(root).as_posix()


def as_repo_path(value: str | Path, root: Path) -> str:
    """Normalize a user-supplied path (relative to `root`, or absolute) to repo form.

    Raises:
        ValueError: the path points outside `root`.
    """
    path = Path(value)
    if not path.is_absolute():
        path = root / path
    normalized = Path(os.path.normpath(path))
    try:
        return to_repo_path(normalized, Path(os.path.normpath(root)))
    except ValueError:
        raise ValueError(f"{value} is outside the repository root {root}") from None


@dataclass
class SourceFile:
    """A repository file, read lazily and at most once.

    Content is truncated to `max_bytes` and decoded leniently. A file that
    cannot be read yields an empty string and `readable` becomes False.
    """

    path: str
    root: Path
    max_bytes: int = 100_000
    language: LanguageKind | None = None
    readable: bool = True
    _content: str | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.language is None:
            self.language = detect_language(self.path)

    @property
    def name(self) -> str:
        return PurePosixPath(self.path).name

    @property
    def stem(self) -> str:
        return PurePosixPath(self.path).stem

    @property
    def content(self) -> str:
        if self._content is None:
            self._content = self._read()
        return self._content

    def _read(self) -> str:
        try:
            with open(self.root / self.path, "rb") as f:
                data = f.read(self.max_bytes)
        except OSError as e:
            logger.debug("Skipping unreadable file %s: %s", self.path, e)
            self.readable = False
            return ""
        return data.decode("utf-8", errors="replace")
