"""Report rendering for analysis results."""

from impactlens.report.renderer import render_markdown, render_text

__all__ = ["render_markdown", "render_text"]
