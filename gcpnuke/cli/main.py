"""Main CLI entry point using Typer."""

import logging
import signal
import sys
import threading
from datetime import datetime
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..gcp.client import create_compute_service
from ..gcp.locations import discover_regions, discover_zones
from ..models.teardown_run import RunMode, TeardownRun
from ..resources.compute import default_resource_types
from ..teardown.audit import AuditStorage
from ..teardown.dependency import DependencyResolver
from ..teardown.errors import (
    CredentialError,
    DependencyCycleError,
    ListingError,
    OrchestrationCancelledError,
    OrchestrationStallError,
)
from ..teardown.orchestrator import Orchestrator
from ..teardown.registry import Registry
from ..utils.logging import setup_logging
from .config import Config, parse_list

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="gcp-nuke",
    help="gcp-nuke - Delete every resource in a GCP project, in dependency order",
    add_completion=False,
)

# Create Rich console for output
console = Console()

# Global config
config: Optional[Config] = None

MAX_LISTED_IDS = 5


@app.callback()
def main(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Config file path (default: $GCP_NUKE_CONFIG or ~/.gcp-nuke/config.yaml)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress output except errors"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
):
    """gcp-nuke - Delete every resource in a GCP project, in dependency order."""
    global config

    try:
        config = Config.load(config_path)
    except ValueError as e:
        console.print(f"✗ Invalid configuration: {escape(str(e))}", style="bold red")
        raise typer.Exit(code=2)

    log_level = "ERROR" if quiet else ("DEBUG" if verbose else config.log_level)
    setup_logging(level=log_level, verbose=verbose)

    if no_color:
        console.no_color = True


@app.command()
def version():
    """Show version information."""
    from googleapiclient.version import __version__ as googleapiclient_version

    from .. import __version__

    console.print(f"gcp-nuke version {__version__}")
    console.print(f"Python {sys.version.split()[0]}")
    console.print(f"google-api-python-client {googleapiclient_version}")


def build_registry(service: Any) -> Registry:
    """Register every built-in resource type against a Compute Engine client."""
    return Registry(default_resource_types(service))


@app.command("types")
def list_types():
    """List the resource types gcp-nuke deletes, in deletion tiers."""
    registry = build_registry(service=None)

    try:
        tier_map = DependencyResolver.from_registry(registry).get_deletion_tiers()
    except DependencyCycleError as e:
        console.print(f"✗ {escape(str(e))}", style="bold red")
        raise typer.Exit(code=2)

    table = Table(title="Resource Types")
    table.add_column("Tier", justify="right", style="cyan")
    table.add_column("Resource Type", style="bold")
    table.add_column("Scope")
    table.add_column("Depends On")

    for tier, names in sorted(tier_map.items()):
        for name in names:
            resource_type = registry.get(name)
            table.add_row(
                str(tier),
                name,
                resource_type.scope.value,
                ", ".join(sorted(resource_type.dependencies)) or "-",
            )

    console.print(table)


@app.command("run")
def run(
    project: Optional[str] = typer.Option(None, "--project", "-p", help="GCP project ID"),
    regions: Optional[str] = typer.Option(None, "--regions", help="Comma separated regions (default: all)"),
    zones: Optional[str] = typer.Option(None, "--zones", help="Comma separated zones (default: all)"),
    keyfile: Optional[str] = typer.Option(None, "--keyfile", help="Service account JSON key file"),
    poll_interval: Optional[int] = typer.Option(None, "--poll-interval", help="Seconds between status checks"),
    timeout: Optional[int] = typer.Option(None, "--timeout", help="Seconds before a deletion times out"),
    workers: Optional[int] = typer.Option(None, "--workers", help="Max concurrent deletions per resource type"),
    max_stalled_passes: Optional[int] = typer.Option(
        None, "--max-stalled-passes", help="Passes without progress before giving up"
    ),
    no_dry_run: bool = typer.Option(False, "--no-dry-run", help="Actually delete resources"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
    strict: bool = typer.Option(False, "--strict", help="Fail before deleting if dependencies form a cycle"),
    audit: bool = typer.Option(True, "--audit/--no-audit", help="Write an audit log of execute runs"),
    audit_dir: Optional[str] = typer.Option(None, "--audit-dir", help="Audit log directory"),
):
    """List, and with --no-dry-run delete, every resource in a project.

    Resource types are drained in dependency order: a type is only deleted
    once every type it depends on is empty.

    Examples:
        # Show what would be deleted
        gcp-nuke run --project my-sandbox

        # Delete everything in two regions without prompting
        gcp-nuke run --project my-sandbox --regions us-central1,europe-west1 --no-dry-run --yes
    """
    cfg = config or Config.load()
    if project:
        cfg.project = project
    if regions:
        cfg.regions = parse_list(regions)
    if zones:
        cfg.zones = parse_list(zones)
    if keyfile:
        cfg.keyfile = keyfile
    if poll_interval is not None:
        cfg.poll_interval = poll_interval
    if timeout is not None:
        cfg.timeout = timeout
    if workers is not None:
        cfg.max_workers = workers
    if max_stalled_passes is not None:
        cfg.max_stalled_passes = max_stalled_passes
    if audit_dir:
        cfg.audit_dir = audit_dir

    orchestrator: Optional[Orchestrator] = None
    try:
        cancel_event = threading.Event()
        nuke_config = cfg.to_nuke_config(cancel_event, dry_run=not no_dry_run, fail_on_cycle=strict)
        nuke_config.validate()

        service = create_compute_service(cfg.keyfile)
        if not nuke_config.regions:
            nuke_config.regions = discover_regions(service, nuke_config.project)
        if not nuke_config.zones:
            nuke_config.zones = discover_zones(service, nuke_config.project)

        if no_dry_run and not yes:
            typer.confirm(
                f"Delete every resource in project '{nuke_config.project}'? This cannot be undone",
                abort=True,
            )

        mode = "[bold red]EXECUTE[/bold red]" if no_dry_run else "[bold yellow]DRY RUN[/bold yellow]"
        console.print(f"\n🧨 {mode} project: [bold cyan]{nuke_config.project}[/bold cyan]\n")

        orchestrator = Orchestrator(build_registry(service), nuke_config)
        previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel_event.set())
        try:
            result = orchestrator.run()
        finally:
            signal.signal(signal.SIGINT, previous_handler)

        if result.mode == RunMode.DRY_RUN:
            _print_discovered(result)
            console.print("\nDry run only. Re-run with [bold]--no-dry-run[/bold] to delete these resources.")
        else:
            console.print(
                f"✓ [bold green]Project {result.project} is empty[/bold green] "
                f"({result.deleted_count} deleted in {result.passes} passes)"
            )

    except (typer.Exit, typer.Abort):
        raise
    except OrchestrationStallError as e:
        console.print(f"✗ {escape(str(e))}", style="bold red")
        if e.run:
            _print_remaining(e.run)
        raise typer.Exit(code=1)
    except OrchestrationCancelledError as e:
        console.print("✗ Teardown cancelled", style="bold red")
        if e.run:
            _print_remaining(e.run)
        raise typer.Exit(code=1)
    except (ListingError, CredentialError, DependencyCycleError, ValueError) as e:
        console.print(f"✗ Error: {escape(str(e))}", style="bold red")
        _print_last_run_remaining(orchestrator)
        raise typer.Exit(code=2)
    except Exception as e:
        console.print(f"✗ Error during teardown: {escape(str(e))}", style="bold red")
        logger.exception("Error in run command")
        _print_last_run_remaining(orchestrator)
        raise typer.Exit(code=2)
    finally:
        if audit and orchestrator and orchestrator.last_run and orchestrator.last_run.mode == RunMode.EXECUTE:
            audit_file = AuditStorage(cfg.audit_dir).log_run(orchestrator.last_run)
            console.print(f"Audit log: [cyan]{audit_file}[/cyan]")


@app.command()
def history(
    since: Optional[str] = typer.Option(None, "--since", help="Only runs on or after this date (YYYY-MM-DD)"),
    until: Optional[str] = typer.Option(None, "--until", help="Only runs on or before this date (YYYY-MM-DD)"),
    audit_dir: Optional[str] = typer.Option(None, "--audit-dir", help="Audit log directory"),
):
    """Show past teardown runs from the audit log."""
    try:
        since_date = datetime.strptime(since, "%Y-%m-%d") if since else None
        until_date = datetime.strptime(until, "%Y-%m-%d").replace(hour=23, minute=59, second=59) if until else None
    except ValueError:
        console.print("✗ Dates must use YYYY-MM-DD format", style="bold red")
        raise typer.Exit(code=1)

    storage = AuditStorage(audit_dir or (config.audit_dir if config else None))
    runs = storage.list_runs(since=since_date, until=until_date)

    if not runs:
        console.print("No teardown runs found.")
        return

    table = Table(title="Teardown Runs")
    table.add_column("Run ID", style="cyan")
    table.add_column("Project")
    table.add_column("Started")
    table.add_column("Status")
    table.add_column("Deleted", justify="right")
    table.add_column("Remaining", justify="right")

    for data in runs:
        info = data["run"]
        remaining = sum(len(ids) for ids in (info.get("remaining") or {}).values())
        status_style = "green" if info["status"] == "completed" else "red"
        table.add_row(
            info["run_id"],
            info["project"],
            info["started_at"],
            f"[{status_style}]{info['status']}[/{status_style}]",
            str(info.get("deleted_count", 0)),
            str(remaining),
        )

    console.print(table)


def _format_ids(identifiers: list[str]) -> str:
    shown = ", ".join(identifiers[:MAX_LISTED_IDS])
    if len(identifiers) > MAX_LISTED_IDS:
        shown += f", … (+{len(identifiers) - MAX_LISTED_IDS} more)"
    return shown


def _print_discovered(run: TeardownRun) -> None:
    if not run.total_discovered:
        console.print("✓ [bold green]No resources found[/bold green]")
        return

    table = Table(title=f"Resources in {run.project}")
    table.add_column("Resource Type", style="bold")
    table.add_column("Count", justify="right", style="cyan")
    table.add_column("Resources")

    for name, identifiers in sorted(run.discovered.items()):
        if identifiers:
            table.add_row(name, str(len(identifiers)), _format_ids(identifiers))

    console.print(table)
    console.print(f"\nTotal: [bold]{run.total_discovered}[/bold] resources")


def _print_remaining(run: TeardownRun) -> None:
    table = Table(title="Remaining Resources")
    table.add_column("Resource Type", style="bold")
    table.add_column("Remaining", justify="right", style="red")
    table.add_column("Waiting On")
    table.add_column("Resources")

    names = sorted(set(run.remaining) | set(run.stuck))
    for name in names:
        identifiers = run.remaining.get(name, [])
        table.add_row(
            name,
            str(len(identifiers)),
            ", ".join(run.stuck.get(name, [])) or "-",
            _format_ids(identifiers),
        )

    console.print(table)
    for message in run.pass_errors[-MAX_LISTED_IDS:]:
        console.print(f"  • {escape(message)}", style="yellow")


def _print_last_run_remaining(orchestrator: Optional[Orchestrator]) -> None:
    if orchestrator and orchestrator.last_run and orchestrator.last_run.remaining:
        _print_remaining(orchestrator.last_run)


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    cli_main()
