"""
Output formatting for dohprobe reports.

Provides multiple output formats:
- Rich terminal table matching the classic DoH/Name/Type/TTL/Address/Avg/Lost layout
- JSON: Machine-readable full results
- CSV: Spreadsheet-compatible rows
"""

import csv
import json
from io import StringIO
from pathlib import Path
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from .models import ProviderResult, Report
from .statistics import StatisticsEngine


# Rendered in place of a missing address or average
ABSENT = "/"


def format_latency(latency_ms: Optional[float]) -> str:
    """Render an average latency, or the absence marker when there is none."""
    if latency_ms is None:
        return ABSENT
    return f"{round(latency_ms)}ms"


def format_loss(loss_percent: float) -> str:
    return f"{loss_percent:.0f}%"


def result_row(result: ProviderResult) -> dict:
    """Flatten a provider result into display fields."""
    record = result.record
    return {
        "doh": result.profile.id,
        "name": record.name if record else ABSENT,
        "type": str(record.record_type) if record else ABSENT,
        "ttl": str(record.ttl) if record else ABSENT,
        "address": record.address if record else ABSENT,
        "avg": format_latency(result.avg_latency_ms),
        "lost": format_loss(result.loss_percent),
    }


class JSONOutput:
    """JSON output formatter."""

    @staticmethod
    def format(report: Report, indent: int = 2) -> str:
        """
        Format a report as JSON.

        Missing values are emitted as null rather than the table marker.
        """
        data = {
            "metadata": {
                "hostname": report.hostname,
                "record_type": report.record_type.value,
                "started_at": report.started_at.isoformat(),
                "completed_at": report.completed_at.isoformat(),
                "duration_seconds": report.duration_seconds,
            },
            "providers": [],
        }

        for result in report.results:
            record = result.record
            data["providers"].append({
                "id": result.profile.id,
                "endpoint": result.profile.endpoint,
                "kind": result.profile.kind.value,
                "name": record.name if record else None,
                "type": record.record_type if record else None,
                "ttl": record.ttl if record else None,
                "address": record.address if record else None,
                "all_addresses": [r.address for r in result.records],
                "latency_ms": {
                    "avg": _rounded(result.avg_latency_ms),
                    "min": _rounded(result.min_latency_ms),
                    "max": _rounded(result.max_latency_ms),
                    "jitter": _rounded(result.jitter_ms),
                },
                "probes": {
                    "sent": result.samples_sent,
                    "received": result.samples_ok,
                    "loss_pct": result.loss_percent,
                },
                "resolve_ms": _rounded(result.resolve_ms),
                "error": result.error.value if result.error else None,
                "error_message": result.error_message,
            })

        ranked = StatisticsEngine.rank_results(list(report.results))
        fastest = ranked[0] if ranked else None
        if fastest:
            data["fastest"] = {
                "id": fastest.profile.id,
                "address": fastest.address,
                "avg_latency_ms": _rounded(fastest.avg_latency_ms),
            }

        return json.dumps(data, indent=indent)

    @staticmethod
    def save(report: Report, path: Path) -> None:
        """Save a report to a JSON file."""
        with open(path, "w") as f:
            f.write(JSONOutput.format(report))


class CSVOutput:
    """CSV output formatter."""

    HEADER = ["doh", "name", "type", "ttl", "address", "avg", "lost", "error"]

    @staticmethod
    def format(report: Report) -> str:
        """Format a report as CSV, one row per provider."""
        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(CSVOutput.HEADER)

        for result in report.results:
            row = result_row(result)
            writer.writerow([
                row["doh"],
                row["name"],
                row["type"],
                row["ttl"],
                row["address"],
                row["avg"],
                row["lost"],
                result.error.value if result.error else "",
            ])

        return output.getvalue()

    @staticmethod
    def save(report: Report, path: Path) -> None:
        """Save a report to a CSV file."""
        with open(path, "w", newline="") as f:
            f.write(CSVOutput.format(report))


class RichConsoleOutput:
    """Rich library console output with colors and tables."""

    @staticmethod
    def build_table(report: Report) -> Table:
        """Build the result table for a report."""
        table = Table(
            title=f"{report.hostname} ({report.record_type.value})",
            box=box.ROUNDED,
            header_style="bold magenta",
        )

        table.add_column("DoH", style="cyan")
        table.add_column("Name")
        table.add_column("Type", justify="right")
        table.add_column("TTL", justify="right")
        table.add_column("Address", style="green")
        table.add_column("Avg", justify="right", style="yellow")
        table.add_column("Lost", justify="right")

        for result in report.results:
            row = result_row(result)
            table.add_row(
                row["doh"],
                row["name"],
                row["type"],
                row["ttl"],
                row["address"],
                row["avg"],
                row["lost"],
                style="dim" if not result.is_success else None,
            )

        return table

    @staticmethod
    def print(report: Report, console: Optional[Console] = None) -> None:
        """Print a report as a table, followed by provider errors."""
        console = console or Console()

        console.print()
        console.print(RichConsoleOutput.build_table(report))

        for result in report.results:
            if result.error:
                console.print(
                    f"  [red]{result.profile.id}[/red] error: "
                    f"{result.error.value} ({result.error_message or 'no details'})"
                )

        ranked = StatisticsEngine.rank_results(list(report.results))
        fastest = ranked[0] if ranked else None
        if fastest:
            console.print(
                f"\n  [bold green]Fastest:[/bold green] {fastest.profile.id} -> "
                f"{fastest.address} ({format_latency(fastest.avg_latency_ms)})"
            )
        console.print()


def _rounded(value: Optional[float]) -> Optional[float]:
    return round(value, 3) if value is not None else None
