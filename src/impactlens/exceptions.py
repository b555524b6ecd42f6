"""Custom exceptions for ImpactLens."""


class ImpactLensError(Exception):
    """Base exception for all ImpactLens errors."""


class ConfigError(ImpactLensError):
    """Configuration-related errors."""


class RepositoryError(ImpactLensError):
    """The repository root cannot be reached or is not a directory."""


class GitError(ImpactLensError):
    """A git command needed for the analysis failed."""

    def __init__(self, command: str, detail: str = ""):
        self.command = command
        self.detail = detail
        message = f"git {command} failed"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class AnalysisError(ImpactLensError):
    """The analysis pipeline could not complete."""
