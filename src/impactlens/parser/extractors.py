"""Import extraction - pulls raw import specifiers out of source text.

This is pattern matching, not parsing. Each language family has its own
extractor behind the `ImportExtractor` interface so a real parser can be
registered for a language without touching resolution or indexing.

Specifiers come back in source order, duplicates included. Unsupported
languages produce an empty list.
"""

from __future__ import annotations

import re

from impactlens.parser.models import LanguageKind, detect_language


class ImportExtractor:
    """Base class for per-language import extractors."""

    language: LanguageKind

    def extract(self, content: str) -> list[str]:
        raise NotImplementedError


class EcmaScriptExtractor(ImportExtractor):
    """JavaScript / TypeScript: static, re-export, require() and dynamic import()."""

    language = LanguageKind.ECMASCRIPT

    _FROM = re.compile(
        r"""\b(?:import|export)\s+(?:type\s+)?[\w*{}\s,$]*?\bfrom\s*['"]([^'"\n]+)['"]"""
    )
    _SIDE_EFFECT = re.compile(r"""\bimport\s*['"]([^'"\n]+)['"]""")
    _REQUIRE = re.compile(r"""\brequire\s*\(\s*['"]([^'"\n]+)['"]\s*\)""")
    _DYNAMIC = re.compile(r"""\bimport\s*\(\s*['"]([^'"\n]+)['"]\s*\)""")

    def extract(self, content: str) -> list[str]:
        found: list[tuple[int, str]] = []
        for pattern in (self._FROM, self._SIDE_EFFECT, self._REQUIRE, self._DYNAMIC):
            for match in pattern.finditer(content):
                found.append((match.start(1), match.group(1)))
        found.sort()
        return [spec for _, spec in found]


class PythonExtractor(ImportExtractor):
    """Python `import x` and `from x import y` statements.

    Relative imports keep their leading dots. `from . import a, b` reports
    `.a` and `.b`, since each name may be a sibling module.
    """

    language = LanguageKind.PYTHON

    _IMPORT = re.compile(
        r"^[ \t]*import[ \t]+([\w.]+(?:[ \t]+as[ \t]+\w+)?(?:[ \t]*,[ \t]*[\w.]+(?:[ \t]+as[ \t]+\w+)?)*)",
        re.MULTILINE,
    )
    _FROM = re.compile(
        r"^[ \t]*from[ \t]+(\.+[\w.]*|[\w.]+)[ \t]+import[ \t]+(\([^)]*\)|[^\n]+)",
        re.MULTILINE,
    )
    _COMMENT = re.compile(r"#[^\n]*")

    def extract(self, content: str) -> list[str]:
        found: list[tuple[int, str]] = []

        for match in self._IMPORT.finditer(content):
            for part in match.group(1).split(","):
                module = part.split()[0] if part.split() else ""
                if module:
                    found.append((match.start(), module))

        for match in self._FROM.finditer(content):
            module = match.group(1)
            if module.strip("."):
                found.append((match.start(), module))
                continue
            # Dots only: the imported names are modules of that package.
            names = self._COMMENT.sub("", match.group(2)).strip("() \t\n")
            members = [n.split()[0] for n in names.split(",") if n.split()]
            members = [m for m in members if m != "*"]
            if not members:
                found.append((match.start(), module))
            for member in members:
                found.append((match.start(), f"{module}{member}"))

        found.sort(key=lambda item: item[0])
        return [spec for _, spec in found]


class GoExtractor(ImportExtractor):
    """Go single-line imports and parenthesized import blocks."""

    language = LanguageKind.GO

    _SINGLE = re.compile(r'^[ \t]*import[ \t]+(?:[\w.]+[ \t]+)?"([^"\n]+)"', re.MULTILINE)
    _BLOCK = re.compile(r"^[ \t]*import[ \t]*\(([^)]*)\)", re.MULTILINE)
    _BLOCK_ENTRY = re.compile(r'^[ \t]*(?:[\w.]+[ \t]+)?"([^"\n]+)"', re.MULTILINE)

    def extract(self, content: str) -> list[str]:
        found: list[tuple[int, str]] = []
        for match in self._SINGLE.finditer(content):
            found.append((match.start(1), match.group(1)))
        for block in self._BLOCK.finditer(content):
            offset = block.start(1)
            for entry in self._BLOCK_ENTRY.finditer(block.group(1)):
                found.append((offset + entry.start(1), entry.group(1)))
        found.sort()
        return [spec for _, spec in found]


_EXTRACTORS: dict[LanguageKind, ImportExtractor] = {
    LanguageKind.ECMASCRIPT: EcmaScriptExtractor(),
    LanguageKind.PYTHON: PythonExtractor(),
    LanguageKind.GO: GoExtractor(),
}


def register_extractor(extractor: ImportExtractor) -> None:
    """Install (or replace) the extractor for ``extractor.language``."""
    _EXTRACTORS[extractor.language] = extractor


def get_extractor(language: LanguageKind | None) -> ImportExtractor | None:
    if language is None:
        return None
    return _EXTRACTORS.get(language)


def extract_imports(content: str, language: LanguageKind | None) -> list[str]:
    """Extract raw import specifiers from `content`."""
    extractor = get_extractor(language)
    if extractor is None or not content:
        return []
    return extractor.extract(content)


def extract_file_imports(file_path: str, content: str) -> list[str]:
    """Extract imports, detecting the language from the file name."""
    return extract_imports(content, detect_language(file_path))
