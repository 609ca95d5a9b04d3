"""Rule listing command for the lineup CLI."""

from __future__ import annotations

import json
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lineup.kernel import Engine, RuleInfo

console = Console()

_CLI_NAME = "rules"
_CLI_HELP = "List the built-in rules with their checks and fixes"


def rules(
    json_out: Annotated[
        bool,
        typer.Option("--json", help="Output rule metadata as JSON"),
    ] = False,
    checks: Annotated[
        bool,
        typer.Option("--checks", help="Also list each rule's checks and fixes"),
    ] = False,
) -> None:
    """List the built-in rules in the order they run.

    Examples
    --------
    lineup rules
    lineup rules --checks
    lineup rules --json
    """
    infos = Engine().list_rules()

    if json_out:
        output = json.dumps([info.to_dict() for info in infos], indent=2)
        console.print(output, markup=False, highlight=False, soft_wrap=True)
        return

    table = Table(title="Built-in rules", show_header=True, border_style="dim")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Severity", width=8)
    table.add_column("Fixable", justify="center")
    table.add_column("Description", style="dim")

    for info in infos:
        table.add_row(
            info.id,
            info.name,
            info.default_severity,
            "[green]yes[/green]" if info.can_fix else "no",
            escape(info.description),
        )
    console.print(table)

    if checks:
        for info in infos:
            _print_catalogue(info)


def _print_catalogue(info: RuleInfo) -> None:
    console.print()
    console.print(f"[bold cyan]{info.id}[/bold cyan]")
    for check in info.checks:
        console.print(f"  check  {check.id}: {escape(check.description)}")
    for fix in info.fixes:
        resolves = ", ".join(fix.resolves)
        console.print(f"  fix    {fix.id}: {escape(fix.description)} (resolves {resolves})")
