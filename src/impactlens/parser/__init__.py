"""Regex-driven import extraction and resolution."""

from impactlens.parser.extractors import ImportExtractor, extract_imports, register_extractor
from impactlens.parser.models import LanguageKind, SourceFile, as_repo_path, detect_language
from impactlens.parser.resolver import ImportResolver, resolve_import

__all__ = [
    "ImportExtractor",
    "ImportResolver",
    "LanguageKind",
    "SourceFile",
    "as_repo_path",
    "detect_language",
    "extract_imports",
    "register_extractor",
    "resolve_import",
]
