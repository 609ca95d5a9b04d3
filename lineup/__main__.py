"""Entry point for running lineup as a module (``python -m lineup``)."""

from __future__ import annotations


def main() -> None:
    """Main entry point for module execution."""
    from lineup.cli.main import main as cli_main

    cli_main()


if __name__ == "__main__":
    main()
