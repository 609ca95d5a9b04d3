"""Repository linting command for the lineup CLI."""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from lineup.kernel import Engine, LintReport, NotFoundError, default_registry
from lineup.kernel.config.models import LineupConfig

console = Console()

_CLI_NAME = "lint"
_CLI_HELP = "Check (or fix) every git repository under a path"

_SEVERITY_RANK = {"error": 0, "warning": 1, "info": 2}
_SEVERITY_STYLE = {"error": "red", "warning": "yellow", "info": "blue"}


def lint(
    ctx: typer.Context,
    path: Annotated[
        Path,
        typer.Argument(help="Root directory to search for git repositories"),
    ] = Path("."),
    fix: Annotated[
        bool,
        typer.Option("--fix", help="Apply safe fixes, then report what is left"),
    ] = False,
    json_out: Annotated[
        bool,
        typer.Option("--json", help="Output the report as JSON"),
    ] = False,
    severity: Annotated[
        str,
        typer.Option(
            "--severity",
            "-s",
            help="Minimum severity to report (error, warning, info)",
        ),
    ] = "info",
    disable: Annotated[
        str,
        typer.Option(
            "--disable",
            "-d",
            help="Comma-separated rule IDs to skip (e.g., pnpm-usage,cspell-config)",
        ),
    ] = "",
) -> None:
    """Lint every git repository under PATH.

    Exits with 1 when any error-level finding remains and with 2 when the
    path or the configuration is invalid.

    Examples
    --------
    lineup lint ~/work
    lineup lint ~/work --fix
    lineup lint . --json --severity warning
    lineup lint . --disable pnpm-usage
    """
    if severity not in _SEVERITY_RANK:
        console.print(
            f"[red]Invalid severity '{severity}'.[/red] Choose from: error, warning, info"
        )
        raise typer.Exit(2)

    obj = ctx.obj or {}
    config: LineupConfig = obj.get("config") or LineupConfig()
    registry = default_registry()

    disabled_ids = {r.strip() for r in disable.split(",") if r.strip()} if disable else set()
    if disabled_ids:
        unknown = disabled_ids - set(registry.ids())
        if unknown:
            console.print(
                f"[yellow]Unknown rule ID(s): {', '.join(sorted(unknown))}[/yellow]  "
                f"Known: {', '.join(registry.ids())}"
            )
        config = _disable_rules(config, disabled_ids & set(registry.ids()))

    engine = Engine(config=config, registry=registry)
    try:
        report = engine.run(path, mode="fix" if fix else "check")
    except NotFoundError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(2) from e

    # Filter by severity; counts are recomputed from the kept results
    min_rank = _SEVERITY_RANK[severity]
    shown = LintReport(
        (r for r in report.results if _SEVERITY_RANK[r.severity] <= min_rank),
        fixed_count=report.fixed_count,
    )

    if json_out:
        console.print(shown.to_json(), markup=False, highlight=False, soft_wrap=True)
    else:
        _print_text(path, shown, fixed=fix)

    if report.has_errors:
        raise typer.Exit(1)


def _disable_rules(config: LineupConfig, rule_ids: set[str]) -> LineupConfig:
    rules = dict(config.rules)
    for rule_id in rule_ids:
        rules[rule_id] = dataclasses.replace(config.rule(rule_id), enabled=False)
    return dataclasses.replace(config, rules=rules)


def _print_text(path: Path, report: LintReport, *, fixed: bool) -> None:
    """Print the report as a rich table."""
    console.print()

    if fixed:
        console.print(f"[green]Fixed {report.fixed_count} issue(s)[/green]")

    if report.is_clean:
        console.print(f"[green]No issues found:[/green] {escape(str(path))}")
        console.print()
        return

    console.print(
        f"[bold]{escape(str(path))}[/bold]  "
        f"[red]{report.error_count} error(s)[/red]  "
        f"[yellow]{report.warning_count} warning(s)[/yellow]  "
        f"[blue]{report.info_count} info[/blue]"
    )
    console.print()

    table = Table(show_header=True, border_style="dim")
    table.add_column("Rule", style="cyan")
    table.add_column("Check")
    table.add_column("Severity", width=8)
    table.add_column("Path", style="green")
    table.add_column("Message")
    table.add_column("Suggestion", style="dim")

    for r in report.results:
        style = _SEVERITY_STYLE.get(r.severity, "white")
        location = f"{r.path}:{r.line}" if r.line else r.path
        table.add_row(
            r.rule_id,
            r.check_id,
            f"[{style}]{r.severity}[/{style}]",
            escape(location),
            escape(r.message),
            escape(r.suggestion or ""),
        )

    console.print(table)
    console.print()

