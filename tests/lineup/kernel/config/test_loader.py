"""Tests for lineup.kernel.config.loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from lineup.kernel.config import ConfigLoader, LineupConfig, clear_config_cache, load_config
from lineup.kernel.exceptions import ConfigurationError

YAML_CONFIG = """\
apiVersion: lineup/v1
kind: Config
metadata:
  name: team-defaults
spec:
  exclude: [fixtures]
  max_workers: 2
  rules:
    pnpm-usage:
      severity: warning
    husky-init: false
    cspell-config:
      options:
        version: "^9.0.0"
  logging:
    level: debug
    format: json
"""


class TestYamlConfig:
    def test_full_manifest(self, tmp_path: Path) -> None:
        path = tmp_path / "lineup.yaml"
        path.write_text(YAML_CONFIG)
        config = load_config(path)

        assert config.exclude == ("fixtures",)
        assert config.max_workers == 2
        assert config.rule("pnpm-usage").severity == "warning"
        assert config.rule("husky-init").enabled is False
        assert config.rule("cspell-config").options == {"version": "^9.0.0"}
        assert config.rule("claude-settings-hooks").enabled is True
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "json"

    def test_logging_timestamp_toggle(self, tmp_path: Path) -> None:
        path = tmp_path / "lineup.yaml"
        path.write_text("kind: Config\nspec:\n  logging:\n    include_timestamp: false\n")
        assert load_config(path).logging.include_timestamp is False
        assert LineupConfig().logging.include_timestamp is True

    def test_wrong_kind_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "lineup.yaml"
        path.write_text("kind: Pipeline\nspec: {}\n")
        with pytest.raises(ConfigurationError, match="kind: Config"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "lineup.yaml"
        path.write_text("kind: Config\nspec: [unclosed\n")
        with pytest.raises(ConfigurationError, match="invalid YAML"):
            load_config(path)

    def test_unknown_severity(self, tmp_path: Path) -> None:
        path = tmp_path / "lineup.yaml"
        path.write_text("kind: Config\nspec:\n  rules:\n    pnpm-usage:\n      severity: fatal\n")
        with pytest.raises(ConfigurationError, match="rules.pnpm-usage"):
            load_config(path)

    def test_non_positive_workers(self, tmp_path: Path) -> None:
        path = tmp_path / "lineup.yaml"
        path.write_text("kind: Config\nspec:\n  max_workers: 0\n")
        with pytest.raises(ConfigurationError, match="max_workers"):
            load_config(path)

    def test_env_var_substitution(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CSPELL_VERSION", "^8.14.0")
        path = tmp_path / "lineup.yaml"
        path.write_text(
            "kind: Config\n"
            "spec:\n"
            "  rules:\n"
            "    cspell-config:\n"
            "      options:\n"
            "        version: ${CSPELL_VERSION}\n"
            "        command: ${CSPELL_COMMAND:pnpm cspell .}\n"
        )
        options = load_config(path).rule("cspell-config").options
        assert options == {"version": "^8.14.0", "command": "pnpm cspell ."}


class TestTomlConfig:
    def test_pyproject_section(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text(
            "[project]\nname = 'x'\n\n"
            "[tool.lineup]\nexclude = ['vendor']\n\n"
            "[tool.lineup.rules.claude-settings-hooks]\nenabled = false\n"
        )
        config = load_config(path)
        assert config.exclude == ("vendor",)
        assert config.rule("claude-settings-hooks").enabled is False

    def test_pyproject_without_section_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text("[project]\nname = 'x'\n")
        assert load_config(path) == LineupConfig()

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text("[tool.lineup\n")
        with pytest.raises(ConfigurationError, match="invalid TOML"):
            load_config(path)


class TestDiscovery:
    def test_missing_explicit_path(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_nothing_found_gives_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        assert load_config() == LineupConfig()

    def test_yaml_in_cwd(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / ".lineup.yaml").write_text("kind: Config\nspec:\n  exclude: [a]\n")
        monkeypatch.chdir(tmp_path)
        assert load_config().exclude == ("a",)

    def test_pyproject_in_parent(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool.lineup]\nmax_workers = 3\n")
        child = tmp_path / "packages" / "web"
        child.mkdir(parents=True)
        monkeypatch.chdir(child)
        assert load_config().max_workers == 3

    def test_env_config_path(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "team.yaml"
        path.write_text("kind: Config\nspec:\n  exclude: [b]\n")
        monkeypatch.setenv("LINEUP_CONFIG_PATH", str(path))
        monkeypatch.chdir(tmp_path)
        assert load_config().exclude == ("b",)


class TestEnvironmentOverrides:
    def test_max_workers(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "lineup.yaml"
        path.write_text("kind: Config\nspec:\n  max_workers: 2\n")
        monkeypatch.setenv("LINEUP_MAX_WORKERS", "6")
        assert load_config(path).max_workers == 6

    def test_bad_max_workers(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "lineup.yaml"
        path.write_text("kind: Config\nspec: {}\n")
        monkeypatch.setenv("LINEUP_MAX_WORKERS", "many")
        with pytest.raises(ConfigurationError, match="not an integer"):
            load_config(path)

    def test_log_level(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "lineup.yaml"
        path.write_text("kind: Config\nspec:\n  logging:\n    level: INFO\n")
        monkeypatch.setenv("LINEUP_LOG_LEVEL", "error")
        assert load_config(path).logging.level == "ERROR"

    def test_unknown_log_format(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "lineup.yaml"
        path.write_text("kind: Config\nspec: {}\n")
        monkeypatch.setenv("LINEUP_LOG_FORMAT", "xml")
        with pytest.raises(ConfigurationError, match="logging.format"):
            load_config(path)


class TestCaching:
    def test_cached_until_cleared(self, tmp_path: Path) -> None:
        path = tmp_path / "lineup.yaml"
        path.write_text("kind: Config\nspec:\n  max_workers: 2\n")
        loader = ConfigLoader()
        first = loader.load_config_file(path)
        path.write_text("kind: Config\nspec:\n  max_workers: 5\n")
        assert loader.load_config_file(path) is first

        clear_config_cache()
        assert loader.load_config_file(path).max_workers == 5
