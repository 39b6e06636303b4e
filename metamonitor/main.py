"""Entry point for metamonitor."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from metamonitor.config import ConfigurationError, settings
from metamonitor.health.scheduler import ScanScheduler
from metamonitor.targets.registry import TargetRegistry

console = Console()
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)

_STATUS_STYLES = {"up": "green", "degraded": "yellow", "down": "bold red", "pending": "dim"}


def run_server() -> None:
    """Start the FastAPI server."""
    console.print(Panel("Starting metamonitor API Server", style="bold green"))
    uvicorn.run(
        "metamonitor.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
    )


def run_once(targets_file: str) -> None:
    """Run a single scan and print the result table."""
    registry = TargetRegistry.from_file(targets_file)
    scheduler = ScanScheduler(registry, settings)

    with console.status(f"[bold green]Probing {len(registry)} targets..."):
        asyncio.run(scheduler.run_scan())

    snap = scheduler.snapshot()
    table = Table(title="Monitored targets")
    table.add_column("Target")
    table.add_column("Status")
    table.add_column("Latency", justify="right")
    table.add_column("Uptime", justify="right")
    table.add_column("Detail", style="dim")
    for info in snap["targets"].values():
        status = info["status"]
        table.add_row(
            info["name"],
            f"[{_STATUS_STYLES[status]}]{status.upper()}[/]",
            f"{info['latency']}ms" if info["latency"] > 0 else "---",
            f"{info['uptime']}%" if info["uptime"] is not None else "unknown",
            info["error"] or "",
        )
    console.print(table)

    health = snap["globalHealth"]
    style = "bold green" if health is not None and health >= 80 else "bold red"
    console.print(Panel(f"GLOBAL HEALTH: {health}%", style=style))


def main() -> None:
    parser = argparse.ArgumentParser(description="metamonitor — monitoring the monitors")
    sub = parser.add_subparsers(dest="command")

    # Server mode
    sub.add_parser("serve", help="Start the API server with the scan scheduler")

    # One-shot mode
    scan_parser = sub.add_parser("scan", help="Run one scan and print the results")
    scan_parser.add_argument(
        "--targets", default=settings.targets_file, help="Path to targets.yaml",
    )

    args = parser.parse_args()

    try:
        if args.command == "serve":
            run_server()
        elif args.command == "scan":
            run_once(args.targets)
        else:
            parser.print_help()
            sys.exit(1)
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
