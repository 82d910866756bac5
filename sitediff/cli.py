"""CLI entry point for sitediff."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from sitediff.comparator.baseline_registry import VisualBaselineRegistryManager
from sitediff.errors import ReportWriteFailure
from sitediff.models.config import EnvironmentConfig, SiteDiffConfig
from sitediff.orchestrator import Orchestrator

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str) -> SiteDiffConfig:
    try:
        return SiteDiffConfig.load(config)
    except FileNotFoundError:
        console.print(f"[red]Config file not found: {config}[/red]")
        console.print("Run 'sitediff init' to create a default config.")
        sys.exit(1)
    except (ValidationError, ValueError) as e:
        console.print(f"[red]Invalid config {config}:[/red] {e}")
        sys.exit(1)


def _print_summary(results: dict) -> None:
    env_a, env_b = results["environments"]
    table = Table(title=f"{env_a} vs {env_b} ({results['strategy']})")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Run ID", results["run_id"])
    table.add_row("Pages tested", str(results["results"]["pages"]))
    table.add_row("Device types", str(results["results"]["device_types"]))
    table.add_row("Identical", f"[green]{results['results']['identical']}[/green]")
    table.add_row("Different", f"[red]{results['results']['different']}[/red]")
    table.add_row("Errors", f"[yellow]{results['results']['errors']}[/yellow]")
    if results["results"]["baselines"]:
        table.add_row("Baselines created", str(results["results"]["baselines"]))
    table.add_row("Total comparisons", str(results["results"]["total"]))
    console.print(table)

    for fmt, path in results["reports"].items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")
        if fmt == "html":
            console.print(f"  Open in browser: [blue]file://{Path(path).resolve()}[/blue]")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Multi-environment visual comparison of a website."""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default="sitediff.json", help="Config file path")
@click.option("--against", "-e", default=None, help="Candidate environment to compare with the reference")
@click.option("--strategy", "-s", type=click.Choice(["bytes", "perceptual"]), default=None,
              help="Comparison strategy (defaults to the config value)")
@click.option("--browser", "-b", type=click.Choice(["chromium", "firefox", "webkit"]), default=None,
              help="Browser engine (defaults to the config value)")
@click.option("--page", "-p", "pages", multiple=True, help="Only compare this page path (repeatable)")
@click.option("--viewport", "viewports", multiple=True, help="Only compare this viewport (repeatable)")
@click.option("--update-baselines", is_flag=True, help="Replace stored perceptual baselines")
@click.option("--fail-on-diff", is_flag=True, help="Exit non-zero on any difference, in any strategy")
def run(
    config: str,
    against: str | None,
    strategy: str | None,
    browser: str | None,
    pages: tuple[str, ...],
    viewports: tuple[str, ...],
    update_baselines: bool,
    fail_on_diff: bool,
) -> None:
    """Capture, compare and report every page x viewport pair."""
    cfg = _load_config(config)
    if browser:
        cfg = cfg.model_copy(update={"browser": browser})

    try:
        orchestrator = Orchestrator(
            cfg,
            candidate=against,
            strategy=strategy,
            pages=list(pages) or None,
            viewports=list(viewports) or None,
            update_baselines=update_baselines,
        )
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    try:
        results = orchestrator.run()
    except ReportWriteFailure as e:
        console.print(f"[red]Run aborted:[/red] {e}")
        sys.exit(2)

    console.print("\n[bold green]Comparison Complete[/bold green]")
    _print_summary(results)

    if results["results"]["different"] and (results["strategy"] == "perceptual" or fail_on_diff):
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", default="sitediff.json", help="Config file path")
@click.option("--strategy", "-s", type=click.Choice(["bytes", "perceptual"]), default=None,
              help="Which result records to rebuild from")
def report(config: str, strategy: str | None) -> None:
    """Rebuild the HTML/JSON report from stored result records."""
    cfg = _load_config(config)
    orchestrator = Orchestrator(cfg, strategy=strategy)
    try:
        results = orchestrator.rebuild_report()
    except FileNotFoundError as e:
        console.print(f"[yellow]{e}[/yellow]")
        sys.exit(1)
    except ReportWriteFailure as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)
    _print_summary(results)


@cli.command()
@click.option("--production", default="https://revelcommunities.com", help="Production base URL")
@click.option("--development", default="https://dev-revelcommunities.pantheonsite.io",
              help="Development base URL")
@click.option("--config", "-c", default="sitediff.json", help="Config file path")
def init(production: str, development: str, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    try:
        cfg = SiteDiffConfig(environments=[
            EnvironmentConfig(name="production", base_url=production),
            EnvironmentConfig(name="development", base_url=development),
        ])
    except ValidationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nAdd the pages to compare, then run:")
    console.print('  [blue]sitediff page add "/communities/"[/blue]')
    console.print("  [blue]sitediff run[/blue]")


@cli.group()
def page() -> None:
    """Manage the list of pages to compare."""
    pass


@page.command("add")
@click.argument("path")
@click.option("--config", "-c", default="sitediff.json", help="Config file path")
def page_add(path: str, config: str) -> None:
    """Add a site-relative page path."""
    cfg = _load_config(config)
    if path in cfg.pages:
        console.print(f"[yellow]Already configured:[/yellow] {path}")
        return
    try:
        cfg = SiteDiffConfig(**{**cfg.model_dump(), "pages": [*cfg.pages, path]})
    except ValidationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    cfg.save(config)
    console.print(f"[green]Added page:[/green] {path}")


@page.command("remove")
@click.argument("path")
@click.option("--config", "-c", default="sitediff.json", help="Config file path")
def page_remove(path: str, config: str) -> None:
    """Remove a page path."""
    cfg = _load_config(config)
    if path not in cfg.pages:
        console.print(f"[yellow]Not configured:[/yellow] {path}")
        return
    remaining = [p for p in cfg.pages if p != path]
    if not remaining:
        console.print("[red]At least one page must remain[/red]")
        sys.exit(1)
    cfg = cfg.model_copy(update={"pages": remaining})
    cfg.save(config)
    console.print(f"[green]Removed page:[/green] {path}")


@page.command("list")
@click.option("--config", "-c", default="sitediff.json", help="Config file path")
def page_list(config: str) -> None:
    """List configured pages."""
    cfg = _load_config(config)
    for i, p in enumerate(cfg.pages, 1):
        console.print(f"  {i}. {p}")


@cli.group()
def baseline() -> None:
    """Manage perceptual comparison baselines."""
    pass


def _baseline_manager(cfg: SiteDiffConfig) -> VisualBaselineRegistryManager:
    return VisualBaselineRegistryManager(Path(cfg.baselines_dir), cfg.environments[0].base_url)


@baseline.command("list")
@click.option("--config", "-c", default="sitediff.json", help="Config file path")
def baseline_list(config: str) -> None:
    """List stored baselines."""
    cfg = _load_config(config)
    registry = _baseline_manager(cfg).load()
    if not registry.baselines:
        console.print("[yellow]No baselines stored[/yellow]")
        return
    table = Table(title="Visual baselines")
    table.add_column("Page")
    table.add_column("Viewport")
    table.add_column("Environment")
    table.add_column("Captured")
    for entry in registry.baselines.values():
        table.add_row(entry.page_id, f"{entry.viewport_name} ({entry.viewport_width}x{entry.viewport_height})",
                      entry.environment, entry.captured_at)
    console.print(table)


@baseline.command("reset")
@click.option("--config", "-c", default="sitediff.json", help="Config file path")
@click.confirmation_option(prompt="Delete all stored baselines?")
def baseline_reset(config: str) -> None:
    """Delete all stored baselines."""
    cfg = _load_config(config)
    _baseline_manager(cfg).reset()
    console.print("[green]Baselines reset[/green]")


if __name__ == "__main__":
    cli()
