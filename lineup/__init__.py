"""lineup - repository hygiene linter.

Finds every git repository under a root path and checks (or fixes) a fixed
set of conventions: assistant safety hooks, Husky scaffolding, cspell
wiring and pnpm usage.

Examples
--------
>>> import lineup
>>> report = lineup.lint("/work")  # doctest: +SKIP
>>> report.error_count  # doctest: +SKIP
0
"""

from __future__ import annotations

from pathlib import Path

# Version is defined in pyproject.toml and read dynamically
try:
    from importlib.metadata import version

    __version__ = version("lineup-agent")
except Exception:
    __version__ = "0.0.0.dev0"  # Fallback for source checkouts

from lineup.kernel import Engine, LintReport, LintResult, RuleInfo
from lineup.kernel.config.loader import load_config


def list_rules() -> list[RuleInfo]:
    """Metadata of the built-in rules, in execution order."""
    return Engine().list_rules()


def lint(path: str | Path, config_path: str | Path | None = None) -> LintReport:
    """Check every repository under ``path``."""
    return Engine(load_config(config_path)).lint(path)


def fix_run(path: str | Path, config_path: str | Path | None = None) -> LintReport:
    """Fix every repository under ``path`` and return the residual findings."""
    return Engine(load_config(config_path)).fix_run(path)


__all__ = [
    "Engine",
    "LintReport",
    "LintResult",
    "RuleInfo",
    "__version__",
    "fix_run",
    "lint",
    "list_rules",
]
