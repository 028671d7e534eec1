"""Entry point for the probewatch daemon."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import settings
from .errors import ProbeError
from .loader import load_probes
from .registry import run_one_off

console = Console()


def setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )


def run_server() -> None:
    """Start the control API and the scheduler."""
    console.print(Panel(
        f"Starting probewatch on {settings.api_host}:{settings.api_port}",
        style="bold green",
    ))
    uvicorn.run(
        "probewatch.api.server:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


def run_checks(path: Path) -> int:
    """Execute every healthcheck of a probes file once. Returns the exit code."""
    probes = load_probes(path)
    if not probes:
        console.print(f"[yellow]No healthchecks found in {path}[/yellow]")
        return 1

    table = Table(title=f"Healthchecks from {path}")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Summary")
    table.add_column("Result")

    failures = 0
    for probe in probes:
        try:
            result = run_one_off(probe)
            outcome = f"[green]ok[/green] ({result.duration_ms}ms)"
        except ProbeError as e:
            failures += 1
            outcome = f"[red]{type(e).__name__}: {e}[/red]"
        table.add_row(probe.name, probe.kind, probe.summary(), outcome)

    console.print(table)
    return 1 if failures else 0


def main() -> None:
    parser = argparse.ArgumentParser(description="probewatch health-monitoring daemon")
    sub = parser.add_subparsers(dest="command")

    # Daemon mode
    sub.add_parser("serve", help="Start the daemon and its control API")

    # One-shot mode
    check_parser = sub.add_parser("check", help="Run every healthcheck of a probes file once")
    check_parser.add_argument("file", type=Path, help="YAML probes file")

    args = parser.parse_args()
    setup_logging()

    if args.command == "serve":
        run_server()
    elif args.command == "check":
        sys.exit(run_checks(args.file))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
