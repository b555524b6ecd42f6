"""Command-line interface for ImpactLens."""

from __future__ import annotations

import asyncio
import json
import sys
import time
from pathlib import Path

import click

from impactlens import __version__
from impactlens.config import (
    AnalyzerConfig,
    find_project_root,
    load_config,
    save_config,
    set_config_value,
)
from impactlens.exceptions import ConfigError, ImpactLensError
from impactlens.ui.console import Console, configure_logging

console = Console()
err_console = Console(stderr=True)


def _get_project_root(path: str | None = None) -> Path:
    """Resolve the repository root or exit with an error."""
    if path:
        root = Path(path).resolve()
        if not root.is_dir():
            err_console.error(f"Path does not exist: {path}")
            sys.exit(1)
        return root
    return find_project_root() or Path.cwd().resolve()


def _load_config(root: Path) -> AnalyzerConfig:
    try:
        return load_config(root)
    except ConfigError as e:
        err_console.error(str(e))
        sys.exit(1)


def _repo_paths(root: Path, files: tuple[str, ...]) -> list[str]:
    from impactlens.parser.models import as_repo_path

    try:
        return [as_repo_path(f, root) for f in files]
    except ValueError as e:
        err_console.error(str(e))
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="impactlens")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging on stderr.")
def main(verbose: bool):
    """ImpactLens - change impact and risk analysis for pull requests."""
    configure_logging(verbose)


@main.command()
@click.argument("branch")
@click.option("--base", "-b", default=None, help="Base branch to diff against (default: main).")
@click.option("--path", "-p", default=None, help="Path to the repository root.")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "plain", "markdown", "json"]),
    default="text",
    help="Output format.",
)
@click.option("--depth", "-d", default=None, type=click.IntRange(min=0),
              help="Max indirect dependent depth.")
def analyze(branch: str, base: str | None, path: str | None, output_format: str, depth: int | None):
    """Analyze the impact and risk of BRANCH against a base branch.

    Usage in CI:

        impactlens analyze "$HEAD_REF" --base main --format markdown

    Use --format plain for an uncolored summary in logs.
    """
    from impactlens.analyzer import analyze_pr
    from impactlens.report.renderer import render_markdown, render_text

    root = _get_project_root(path)
    config = _load_config(root)
    if depth is not None:
        config.impact.max_depth = depth

    start_time = time.time()
    try:
        if output_format == "text":
            with err_console.indexing_progress() as progress:
                task = progress.add_task("Indexing...", total=None)

                def on_progress(file_path: str, current: int, total: int):
                    progress.update(
                        task, total=total, completed=current,
                        description=f"Scanning {file_path}",
                    )

                report = analyze_pr(root, branch, base=base, config=config,
                                    progress_callback=on_progress)
        else:
            report = analyze_pr(root, branch, base=base, config=config)
    except ImpactLensError as e:
        err_console.error(str(e))
        sys.exit(1)

    if output_format == "json":
        click.echo(report.model_dump_json(indent=2))
    elif output_format == "markdown":
        click.echo(render_markdown(report))
    elif output_format == "plain":
        click.echo(render_text(report))
    else:
        console.show_report(report)
        console.success(f"Analyzed in {time.time() - start_time:.1f}s")


@main.command()
@click.argument("file")
@click.option("--path", "-p", default=None, help="Path to the repository root.")
@click.option("--depth", "-d", default=None, type=click.IntRange(min=0),
              help="Max indirect dependent depth.")
def deps(file: str, path: str | None, depth: int | None):
    """Show which files import FILE, directly and transitively."""
    from impactlens.graph.builder import DependencyIndexBuilder
    from impactlens.graph.walker import ImpactWalker

    root = _get_project_root(path)
    config = _load_config(root)
    repo_path = _repo_paths(root, (file,))[0]
    max_depth = config.impact.max_depth if depth is None else depth

    builder = DependencyIndexBuilder(config.indexer)
    index = builder.build(root)
    impact = ImpactWalker(index, max_depth=max_depth).walk([repo_path])
    console.show_impact(impact)


@main.command()
@click.argument("files", nargs=-1, required=True)
@click.option("--path", "-p", default=None, help="Path to the repository root.")
def tests(files: tuple[str, ...], path: str | None):
    """Find tests related to FILES and report test coverage of them."""
    from impactlens.testmap.finder import RelatedTestFinder

    root = _get_project_root(path)
    config = _load_config(root)
    coverage = RelatedTestFinder(root, config).find(_repo_paths(root, files))
    console.show_tests(coverage)


@main.command()
@click.option("--path", "-p", default=None, help="Path to the repository root.")
@click.option("--generate-config", is_flag=True, help="Print an MCP client config entry.")
def serve(path: str | None, generate_config: bool):
    """Start the MCP server on stdio.

    Exposes two tools to MCP clients:
      - analyze_pr: risk, findings and related tests for a branch
      - dependents_of: files importing a given file
    """
    from impactlens.mcp.server import MCPServer

    if generate_config:
        root_path = str(Path(path or ".").resolve())
        click.echo(json.dumps(MCPServer.generate_client_config(root_path), indent=2))
        return

    root = _get_project_root(path)
    server = MCPServer(root, _load_config(root))
    asyncio.run(server.run_stdio())


@main.command("config")
@click.argument("action", type=click.Choice(["set", "get", "show"]))
@click.argument("key", required=False)
@click.argument("value", required=False)
@click.option("--path", "-p", default=None, help="Path to the repository root.")
def config_cmd(action: str, key: str | None, value: str | None, path: str | None):
    """Manage ImpactLens configuration (.impactlens/config.json)."""
    root = _get_project_root(path)
    config = _load_config(root)

    if action == "show":
        console.console.print_json(config.model_dump_json())
    elif action == "get":
        if not key:
            err_console.error("Usage: impactlens config get <key>")
            sys.exit(1)
        data = config.model_dump()
        for part in key.split("."):
            if isinstance(data, dict) and part in data:
                data = data[part]
            else:
                err_console.error(f"Unknown key: {key}")
                sys.exit(1)
        click.echo(f"{key} = {data}")
    elif action == "set":
        if not key or value is None:
            err_console.error("Usage: impactlens config set <key> <value>")
            sys.exit(1)
        # Non-string values are given as JSON
        try:
            parsed_value = json.loads(value)
        except json.JSONDecodeError:
            parsed_value = value
        try:
            config = set_config_value(config, key, parsed_value)
        except KeyError:
            err_console.error(f"Unknown config key: {key}")
            sys.exit(1)
        except ConfigError as e:
            err_console.error(str(e))
            sys.exit(1)
        save_config(root, config)
        console.success(f"Set {key} = {parsed_value}")


if __name__ == "__main__":
    main()
