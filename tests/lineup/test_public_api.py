"""Tests for the module-level lineup API."""

from __future__ import annotations

from pathlib import Path

import lineup


class TestPublicApi:
    def test_list_rules(self) -> None:
        assert [info.id for info in lineup.list_rules()] == [
            "claude-settings-hooks",
            "husky-init",
            "cspell-config",
            "pnpm-usage",
        ]

    def test_lint_then_fix(self, make_repo, monkeypatch) -> None:
        repo = make_repo()
        monkeypatch.chdir(repo.parent)

        assert lineup.lint(repo).error_count == 1
        fixed = lineup.fix_run(repo)
        assert fixed.fixed_count == 1
        assert fixed.is_clean
        assert lineup.lint(repo).is_clean

    def test_config_path(self, make_repo, tmp_path: Path) -> None:
        repo = make_repo()
        config = tmp_path / "lineup.yaml"
        config.write_text("kind: Config\nspec:\n  rules:\n    claude-settings-hooks: false\n")
        assert lineup.lint(repo, config_path=config).is_clean

    def test_version(self) -> None:
        assert isinstance(lineup.__version__, str)
