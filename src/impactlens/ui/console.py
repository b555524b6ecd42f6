"""Rich-powered console output for ImpactLens."""

from __future__ import annotations

import logging

from rich.console import Console as RichConsole
from rich.logging import RichHandler
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table
from rich.tree import Tree

from impactlens import __version__
from impactlens.models import AnalysisReport, CoverageReport, FindingCategory, ImpactResult, RiskLevel

_RISK_COLORS = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
    RiskLevel.CRITICAL: "bold red",
}

_CONFIDENCE_COLORS = {"high": "green", "medium": "yellow", "low": "dim"}


def configure_logging(verbose: bool = False) -> None:
    """Send `impactlens.*` log records to stderr through rich."""
    handler = RichHandler(console=RichConsole(stderr=True), show_path=False)
    logger = logging.getLogger("impactlens")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


class Console:
    """Terminal output for ImpactLens using Rich."""

    def __init__(self, stderr: bool = False) -> None:
        self.console = RichConsole(stderr=stderr)

    def banner(self) -> None:
        self.console.print(
            Panel(
                f"[bold cyan]ImpactLens[/bold cyan] [dim]v{__version__}[/dim]\n"
                "[dim]What does this change touch, and how risky is it?[/dim]",
                border_style="cyan",
                padding=(1, 2),
            )
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]![/yellow] {message}")

    def info(self, message: str) -> None:
        self.console.print(f"[blue]i[/blue] {message}")

    def markdown(self, text: str) -> None:
        self.console.print(Markdown(text))

    def indexing_progress(self) -> Progress:
        """Create a progress bar for indexing."""
        return Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        )

    def show_stats(self, stats: dict) -> None:
        """Display dependency index statistics."""
        table = Table(title="Dependency Index", border_style="cyan")
        table.add_column("Metric", style="bold")
        table.add_column("Count", justify="right", style="cyan")

        table.add_row("Files found", str(stats.get("files_found", 0)))
        table.add_row("Files scanned", str(stats.get("files_scanned", 0)))
        table.add_row("Files skipped", str(stats.get("files_skipped", 0)))
        table.add_row("Import edges", str(stats.get("edges", 0)))
        table.add_row("Imported files", str(stats.get("targets", 0)))

        self.console.print(table)

    def show_impact(self, impact: ImpactResult) -> None:
        """Display dependents of each changed file as a tree."""
        for path in impact.changed:
            tree = Tree(f"[bold cyan]{path}[/bold cyan]")
            direct = impact.direct_dependents.get(path, [])
            indirect = impact.indirect_dependents.get(path, [])
            if not direct:
                tree.add("[dim]no dependents[/dim]")
            for dep in direct:
                tree.add(f"[bold]{dep}[/bold] [dim](direct)[/dim]")
            for dep in indirect:
                depth = impact.indirect_depths.get(dep, 0)
                tree.add(f"{dep} [dim](depth {depth})[/dim]")
            self.console.print(tree)

        self.console.print(
            f"\n[bold]{impact.total_affected}[/bold] affected files "
            f"({impact.total_direct} direct, {impact.total_indirect} indirect, "
            f"max depth {impact.max_depth})"
        )

    def show_tests(self, coverage: CoverageReport) -> None:
        """Display related tests and coverage."""
        if coverage.related_tests:
            table = Table(title="Related Tests", border_style="cyan")
            table.add_column("Test", style="bold")
            table.add_column("Confidence", justify="center")
            table.add_column("Covers")
            for test in coverage.related_tests:
                color = _CONFIDENCE_COLORS.get(test.confidence.value, "white")
                table.add_row(
                    test.path,
                    f"[{color}]{test.confidence.value}[/{color}]",
                    "\n".join(test.related_files),
                )
            self.console.print(table)
        else:
            self.warning("No related tests found")

        pct = coverage.coverage_percent
        color = "green" if pct >= 80 else "yellow" if pct >= 50 else "red"
        self.console.print(f"Test coverage of changed files: [{color}]{pct}%[/{color}]")
        for path in coverage.missing_tests:
            self.console.print(f"  [red]missing[/red] {path}")

    def show_report(self, report: AnalysisReport) -> None:
        """Display a full analysis report."""
        risk = report.risk
        color = _RISK_COLORS.get(risk.level, "white")
        summary = report.summary
        self.console.print(
            Panel(
                f"[bold]Risk:[/bold] [{color}]{risk.level.value}[/{color}] (score {risk.score})\n"
                f"[bold]Files changed:[/bold] {summary.files_changed} "
                f"(+{summary.files_added} ~{summary.files_modified} -{summary.files_deleted})\n"
                f"[bold]Lines:[/bold] +{summary.lines_added} / -{summary.lines_deleted}\n"
                f"[bold]Affected files:[/bold] {report.impact.total_affected}\n"
                f"[bold]Areas:[/bold] {', '.join(risk.areas_affected) or 'none'}",
                title=f"[bold]Impact of {report.branch or 'changes'}[/bold]",
                border_style=color,
            )
        )

        for category in FindingCategory:
            messages = risk.findings_for(category)
            if not messages:
                continue
            self.console.print(f"\n[bold]{category.label}[/bold]")
            for message in messages:
                self.console.print(f"  • {message}")

        for warning in risk.diff_warnings:
            self.warning(f"{warning.path}:{warning.line} {warning.message}")

        if report.impact.changed:
            self.console.print()
            self.show_impact(report.impact)
        self.console.print()
        self.show_tests(report.coverage)

        if risk.critical_files_to_test:
            self.console.print("\n[bold]Critical files to test:[/bold]")
            for path in risk.critical_files_to_test:
                self.console.print(f"  [cyan]{path}[/cyan]")
