#!/usr/bin/env python3
"""Entry point for the lineup CLI when run as python -m lineup.cli."""

if __name__ == "__main__":
    from lineup.cli.main import main

    main()
