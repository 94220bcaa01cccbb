"""
Command-line interface for dohprobe.

Resolves a hostname through several DoH providers and prints a
comparison table of the answers and their reachability.
"""

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .config import (
    DEFAULT_PROBE_COUNT,
    DEFAULT_PROBE_INTERVAL,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_RESOLVE_TIMEOUT,
    DEFAULT_TCP_PORT,
    QueryConfig,
)
from .coordinator import QueryCoordinator
from .models import ProbeMethod, RecordType, RequestKind
from .output import CSVOutput, JSONOutput, RichConsoleOutput
from .resolvers import (
    DEFAULT_RESOLVERS,
    RESOLVERS,
    create_custom_resolver,
    get_resolver,
    list_resolvers,
)


def create_progress_callback(console: Console):
    """Create a spinner and a callback that advances it."""
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )
    task_id = progress.add_task("Resolving...", total=None)

    def callback(provider_id: str, completed: int, total: int):
        progress.update(
            task_id,
            description=f"{provider_id} done ({completed}/{total})",
            completed=completed,
            total=total,
        )

    return progress, callback


def check_elevated_privileges() -> bool:
    """Check if running with the privileges raw ICMP sockets need."""
    if hasattr(os, "geteuid"):
        return os.geteuid() == 0
    return False


def configure_logging(verbose: int) -> None:
    """Send log records to stderr through rich, at a level set by -v."""
    if verbose <= 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


@click.group()
@click.version_option(__version__)
def main():
    """
    dohprobe - compare DNS-over-HTTPS answers and their reachability.

    Resolves a hostname through several DoH providers at once and pings
    the address each one returns.
    """
    pass


@main.command()
@click.argument("hostname", required=False)
@click.option(
    "--host",
    "host_option",
    help="Hostname to query (alternative to the HOSTNAME argument)",
)
@click.option(
    "--resolver", "-r",
    multiple=True,
    help="Provider to query (can specify multiple). Options: " + ", ".join(list_resolvers()),
)
@click.option(
    "--custom-doh",
    multiple=True,
    help="Custom DoH endpoint URL (can specify multiple)",
)
@click.option(
    "--custom-kind",
    type=click.Choice([k.value for k in RequestKind]),
    default=RequestKind.STANDARD.value,
    help="Request encoding used by --custom-doh endpoints",
)
@click.option(
    "--type", "-t", "record_type",
    type=click.Choice([t.value for t in RecordType], case_sensitive=False),
    default=RecordType.A.value,
    help="Address record type to look up",
)
@click.option(
    "--count", "-n",
    type=int,
    default=DEFAULT_PROBE_COUNT,
    help="Probes per resolved address",
)
@click.option(
    "--timeout",
    type=float,
    default=DEFAULT_RESOLVE_TIMEOUT,
    help="DoH request timeout in seconds",
)
@click.option(
    "--probe-timeout",
    type=float,
    default=DEFAULT_PROBE_TIMEOUT,
    help="Per-probe timeout in seconds",
)
@click.option(
    "--interval",
    type=float,
    default=DEFAULT_PROBE_INTERVAL,
    help="Seconds between probes to the same address",
)
@click.option(
    "--probe",
    type=click.Choice([m.value for m in ProbeMethod]),
    default=ProbeMethod.ICMP.value,
    help="Probe method: icmp (needs raw sockets) or tcp (connect time)",
)
@click.option(
    "--port", "-p",
    type=int,
    default=DEFAULT_TCP_PORT,
    help="Target port for tcp probes",
)
@click.option(
    "--method",
    type=click.Choice(["GET", "POST"], case_sensitive=False),
    default="GET",
    help="HTTP method for RFC 8484 providers",
)
@click.option(
    "--output", "-o",
    type=click.Path(),
    help="Output file path (JSON or CSV based on extension)",
)
@click.option(
    "--quiet", "-q",
    is_flag=True,
    help="Suppress progress output",
)
@click.option(
    "--json",
    is_flag=True,
    help="Output results as JSON to stdout",
)
@click.option(
    "--verbose", "-v",
    count=True,
    help="Log resolution and probe details (repeat for debug output)",
)
def query(
    hostname: Optional[str],
    host_option: Optional[str],
    resolver: tuple,
    custom_doh: tuple,
    custom_kind: str,
    record_type: str,
    count: int,
    timeout: float,
    probe_timeout: float,
    interval: float,
    probe: str,
    port: int,
    method: str,
    output: Optional[str],
    quiet: bool,
    json: bool,
    verbose: int,
):
    """
    Resolve HOSTNAME through several DoH providers and probe the answers.

    Examples:

    \b
      # Query the default providers
      dohprobe query github.com

    \b
      # Compare specific providers using TCP probes
      dohprobe query github.com -r cloudflare -r google --probe tcp

    \b
      # Add a custom RFC 8484 endpoint and export to JSON
      dohprobe query github.com --custom-doh https://doh.example/dns-query -o out.json
    """
    configure_logging(verbose)

    host = hostname or host_option
    if not host:
        click.echo("Error: a hostname is required (argument or --host)", err=True)
        sys.exit(2)

    # Parse providers
    profiles = []
    try:
        for name in resolver:
            profiles.append(get_resolver(name))
        for url in custom_doh:
            profiles.append(create_custom_resolver(url, RequestKind(custom_kind)))
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not profiles:
        profiles = [get_resolver(name) for name in DEFAULT_RESOLVERS]

    # Provider ids must be unique within one report
    seen = set()
    unique_profiles = []
    for profile in profiles:
        if profile.id in seen:
            click.echo(f"Warning: skipping duplicate provider {profile.id}", err=True)
            continue
        seen.add(profile.id)
        unique_profiles.append(profile)

    try:
        config = QueryConfig(
            record_type=RecordType(record_type.upper()),
            resolve_timeout=timeout,
            probe_count=count,
            probe_timeout=probe_timeout,
            probe_interval=interval,
            probe_method=ProbeMethod(probe),
            tcp_port=port,
            http_method=method.upper(),
        ).validate()
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if config.probe_method == ProbeMethod.ICMP and not check_elevated_privileges():
        click.echo(
            "Warning: ICMP probes usually need root; use --probe tcp if every probe fails",
            err=True,
        )

    console = Console()
    progress_ctx, progress_callback = None, None
    if not quiet and not json:
        progress_ctx, progress_callback = create_progress_callback(console)

    async def run_query():
        async with QueryCoordinator(config) as coordinator:
            return await coordinator.run(host, unique_profiles, progress_callback)

    if progress_ctx:
        with progress_ctx:
            report = asyncio.run(run_query())
    else:
        report = asyncio.run(run_query())

    if json:
        click.echo(JSONOutput.format(report))
    elif not quiet:
        RichConsoleOutput.print(report, console)

    if output:
        path = Path(output)
        if path.suffix.lower() == ".csv":
            CSVOutput.save(report, path)
        else:
            if path.suffix.lower() != ".json":
                path = path.with_suffix(".json")
            JSONOutput.save(report, path)
        if not quiet:
            click.echo(f"Results saved to {path}", err=json)


@main.command()
def list_available():
    """List all built-in DoH providers."""
    console = Console()
    table = Table(
        title="Available DoH Providers",
        box=box.ROUNDED,
        header_style="bold cyan",
    )

    table.add_column("Name", style="green")
    table.add_column("Endpoint", style="cyan")
    table.add_column("Kind", style="magenta")
    table.add_column("Description")

    for name, profile in RESOLVERS.items():
        table.add_row(
            name,
            profile.endpoint,
            profile.kind.value,
            profile.description or "",
        )

    console.print(table)
    console.print()
    console.print("[dim]Default providers:[/dim]", ", ".join(DEFAULT_RESOLVERS))


if __name__ == "__main__":
    main()
