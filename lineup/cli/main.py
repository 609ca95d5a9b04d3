"""lineup CLI - Main entrypoint."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from lineup import __version__
from lineup.cli.commands import lint_cmd, rules_cmd
from lineup.kernel.config.loader import load_config
from lineup.kernel.exceptions import ConfigurationError
from lineup.kernel.logging import configure_logging

# Create the main Typer app
app = typer.Typer(
    name="lineup",
    help="lineup - enforce repository hygiene across every git repository under a path.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)

# Create console for rich output
console = Console()

app.command(lint_cmd._CLI_NAME, help=lint_cmd._CLI_HELP)(lint_cmd.lint)
app.command(rules_cmd._CLI_NAME, help=rules_cmd._CLI_HELP)(rules_cmd.rules)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold blue]lineup[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def callback(
    ctx: typer.Context,
    *,
    quiet: bool = typer.Option(False, "-q", "--quiet", help="Only log errors"),
    verbose: bool = typer.Option(False, "-V", "--verbose", help="Enable debug logging"),
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to a lineup.yaml or pyproject.toml"),
    ] = None,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """lineup - repository hygiene linter.

    Global flags are parsed here; the loaded configuration is stored on
    ``ctx.obj`` for subcommands.
    """
    try:
        lineup_config = load_config(config)
    except ConfigurationError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2) from e

    # Compute effective log level
    log_settings = lineup_config.logging
    level = log_settings.level
    if quiet:
        level = "ERROR"
    elif verbose:
        level = "DEBUG"

    configure_logging(
        level=level,
        format=log_settings.format,
        output_file=log_settings.output_file,
        use_color=log_settings.use_color,
        include_timestamp=log_settings.include_timestamp,
    )

    if ctx.obj is None:
        ctx.obj = {}
    ctx.obj.update({"config": lineup_config, "quiet": quiet, "verbose": verbose})


def main() -> None:
    """Main CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
