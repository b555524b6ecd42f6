"""ImpactLens - change impact analysis for pull requests and branches."""

__version__ = "0.1.0"
