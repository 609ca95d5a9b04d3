"""Shared fixtures for lineup tests.

- make_repo: factory creating a git repository (a directory with ``.git/``)
  populated with files
- clean_config: clears config caches and lineup environment variables
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from lineup.kernel.config.loader import clear_config_cache

RepoFactory = Callable[..., Path]


@pytest.fixture
def make_repo(tmp_path: Path) -> RepoFactory:
    """Factory fixture: ``make_repo("name", files={"package.json": {...}})``.

    Dict and list values are written as pretty JSON; strings are written as is.
    """

    def _make(name: str = "repo", files: dict[str, Any] | None = None) -> Path:
        root = tmp_path / name if name else tmp_path
        (root / ".git").mkdir(parents=True, exist_ok=True)
        for rel_path, content in (files or {}).items():
            target = root / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, (dict, list)):
                target.write_text(json.dumps(content, indent=2) + "\n", encoding="utf-8")
            else:
                target.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture(autouse=True)
def clean_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Isolate tests from the developer's lineup environment."""
    for var in (
        "LINEUP_CONFIG_PATH",
        "LINEUP_LOG_LEVEL",
        "LINEUP_LOG_FORMAT",
        "LINEUP_LOG_FILE",
        "LINEUP_MAX_WORKERS",
    ):
        monkeypatch.delenv(var, raising=False)
    clear_config_cache()
