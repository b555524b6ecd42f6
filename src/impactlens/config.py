"""Configuration management for ImpactLens."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from impactlens.exceptions import ConfigError

IMPACTLENS_DIR = ".impactlens"
CONFIG_FILE = "config.json"


class IndexerConfig(BaseModel):
    """Dependency index configuration."""

    ignore_dirs: list[str] = Field(
        default_factory=lambda: [
            ".git",
            ".hg",
            ".svn",
            "node_modules",
            "bower_components",
            "vendor",
            "dist",
            "build",
            "out",
            "coverage",
            ".nyc_output",
            ".next",
            ".nuxt",
            ".cache",
            "__pycache__",
            ".venv",
            "venv",
            ".tox",
            ".mypy_cache",
            ".pytest_cache",
            IMPACTLENS_DIR,
        ]
    )
    max_file_bytes: int = Field(default=100_000, gt=0)
    workers: int = Field(default=1, ge=1)
    verify_imports_exist: bool = True


class DiscoveryConfig(BaseModel):
    """Where and how related tests are looked up."""

    test_dirs: list[str] = Field(
        default_factory=lambda: [
            "tests",
            "test",
            "__tests__",
            "spec",
            "tests/e2e/specs",
            "tests/e2e/api/api-specs",
            "tests/unit/backend",
            "tests/integration/backend",
        ]
    )
    max_listing_depth: int = Field(default=8, ge=0)
    min_mention_length: int = Field(default=4, ge=1)


class ImpactConfig(BaseModel):
    """Reverse dependency traversal settings."""

    max_depth: int = Field(default=2, ge=0)


class DiffConfig(BaseModel):
    """Limits on what is pulled out of git."""

    default_base: str = "main"
    max_diff_bytes: int = Field(default=50_000, gt=0)
    max_content_files: int = Field(default=10, ge=0)
    max_content_bytes: int = Field(default=10_000, gt=0)
    max_commit_messages: int = Field(default=10, ge=0)


class RiskConfig(BaseModel):
    """Risk rule table selection."""

    rules_file: str | None = None  # JSON rule table, relative to the repo root
    scan_diff: bool = True


class AnalyzerConfig(BaseModel):
    """Full analyzer configuration."""

    indexer: IndexerConfig = Field(default_factory=IndexerConfig)
    tests: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    impact: ImpactConfig = Field(default_factory=ImpactConfig)
    diff: DiffConfig = Field(default_factory=DiffConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)


def find_project_root(start: Path | None = None) -> Path | None:
    """Walk up from `start` looking for a .impactlens or .git directory."""
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / IMPACTLENS_DIR).is_dir() or (candidate / ".git").exists():
            return candidate
    return None


def get_impactlens_dir(root: Path) -> Path:
    """Get the .impactlens directory for a project root."""
    return root / IMPACTLENS_DIR


def load_config(root: Path) -> AnalyzerConfig:
    """Load configuration from .impactlens/config.json, or return the defaults."""
    config_path = get_impactlens_dir(root) / CONFIG_FILE
    if not config_path.exists():
        return AnalyzerConfig()
    try:
        data = json.loads(config_path.read_text())
        return AnalyzerConfig(**data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        raise ConfigError(f"Invalid config file {config_path}: {e}") from e


def save_config(root: Path, config: AnalyzerConfig) -> Path:
    """Save configuration to .impactlens/config.json."""
    config_dir = get_impactlens_dir(root)
    config_dir.mkdir(parents=True, exist_ok=True)
    config_path = config_dir / CONFIG_FILE
    config_path.write_text(json.dumps(config.model_dump(), indent=2))
    return config_path


def set_config_value(config: AnalyzerConfig, key: str, value: Any) -> AnalyzerConfig:
    """Set a nested config value using dot notation (e.g., 'impact.max_depth')."""
    parts = key.split(".")
    data = config.model_dump()
    target = data
    for part in parts[:-1]:
        if part not in target or not isinstance(target[part], dict):
            raise KeyError(f"Invalid config key: {key}")
        target = target[part]
    if parts[-1] not in target:
        raise KeyError(f"Invalid config key: {key}")
    target[parts[-1]] = value
    try:
        return AnalyzerConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid value for {key}: {e}") from e
