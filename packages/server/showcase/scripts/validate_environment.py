"""
Validate the environment and print a colorized report.

Exits 0 when the configuration is valid and 1 otherwise, so it can gate a
deploy or a local `make dev`.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Mapping
from datetime import datetime, timezone

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from showcase.core.diagnostics import mask_sensitive_value, recommendations
from showcase.core.environment import MODE_VARIABLE, Mode, detect_environment
from showcase.core.rules import OPTIONAL_VARIABLES, required_variables
from showcase.core.settings import get_settings, read_environment
from showcase.core.validation import ValidationResult, validate_environment


def _variable_table(title: str, names: tuple[str, ...], raw: Mapping[str, str], *, required: bool) -> Table:
    table = Table(title=title, show_header=True, header_style="bold", border_style="dim")
    table.add_column("Variable", style="bold")
    table.add_column("Value")
    for name in names:
        value = raw.get(name)
        if value:
            shown = f"[green]{escape(mask_sensitive_value(name, value))}[/]"
        elif required:
            shown = "[red]not set[/]"
        else:
            shown = "[dim]not set[/]"
        table.add_row(name, shown)
    return table


def print_report(
    console: Console,
    raw: Mapping[str, str],
    mode: Mode,
    result: ValidationResult,
) -> None:
    console.print()
    console.print(Panel(
        f"Mode: [bold]{mode.value}[/]\n"
        f"Timestamp: {datetime.now(timezone.utc).isoformat()}",
        title="[bold]Environment Validation[/]",
        border_style="cyan",
    ))

    if result.is_valid:
        console.print("[bold green]PASSED[/] Environment configuration is valid.")
    else:
        console.print(f"[bold red]FAILED[/] {len(result.errors)} error(s) found.")

    if result.errors:
        console.rule("[red]Errors[/]")
        for index, message in enumerate(result.errors, 1):
            console.print(f"  [red]{index}.[/] {escape(message)}")

    if result.warnings:
        console.rule("[yellow]Warnings[/]")
        for index, message in enumerate(result.warnings, 1):
            console.print(f"  [yellow]{index}.[/] {escape(message)}")

    required = required_variables(mode)
    optional = tuple(name for name in OPTIONAL_VARIABLES if name not in required)
    console.print()
    console.print(_variable_table("Required Variables", required, raw, required=True))
    console.print(_variable_table("Optional Variables", optional, raw, required=False))

    console.rule("[bold]Recommendations[/]")
    for line in recommendations(mode):
        console.print(f"  - {escape(line)}")
    console.print()


def run(env_file: str | None = None, console: Console | None = None) -> int:
    """Validate and report. Returns the process exit code."""
    console = console or Console()
    raw = read_environment(env_file)
    mode = detect_environment(raw.get(MODE_VARIABLE))
    result = validate_environment(raw, mode)
    print_report(console, raw, mode, result)
    return 0 if result.is_valid else 1


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Validate the Speech Showcase environment.")
    parser.add_argument(
        "--env-file",
        default=None,
        help=f"Dotenv file to merge under the process environment (default: {get_settings().env_file})",
    )
    args = parser.parse_args(argv)

    try:
        code = run(args.env_file)
    except Exception as exc:
        print(f"Environment validation crashed: {exc}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
