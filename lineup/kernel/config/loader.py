"""Configuration loader for lineup.

Supports two config sources:

1. **kind: Config YAML** (``lineup.yaml`` / ``.lineup.yaml``) - loaded via
   explicit path, ``LINEUP_CONFIG_PATH`` or discovery in the working
   directory.
2. **pyproject.toml [tool.lineup]** - discovery fallback in the working
   directory and its parents.

When neither exists the defaults apply: every built-in rule enabled at its
own severity.
"""

from __future__ import annotations

import os
import re
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from lineup.kernel.config.models import LineupConfig, LoggingConfig, RuleConfig
from lineup.kernel.exceptions import ConfigurationError, ValidationError
from lineup.kernel.logging import get_logger

logger = get_logger(__name__)

_YAML_CONFIG_NAMES = ("lineup.yaml", "lineup.yml", ".lineup.yaml", ".lineup.yml")
_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_LOG_FORMATS = frozenset({"console", "json", "structured", "rich"})


@lru_cache(maxsize=32)
def _load_and_parse_cached(path_str: str) -> LineupConfig:
    """Cached configuration loader."""
    loader = ConfigLoader()
    return loader._load_and_parse(Path(path_str))


class ConfigLoader:
    """Loads and validates lineup configuration files."""

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")

    def load_config_file(self, path: str | Path | None = None) -> LineupConfig:
        """Load configuration from YAML or pyproject.toml.

        Parameters
        ----------
        path : str | Path | None
            Path to config file. If None, searches using discovery order.

        Returns
        -------
        LineupConfig
            Parsed configuration

        Raises
        ------
        FileNotFoundError
            If an explicit path does not exist or discovery finds nothing
        ConfigurationError
            If the file content is invalid
        """
        config_path = self._find_config_file(path)
        return _load_and_parse_cached(str(config_path.absolute()))

    def _load_and_parse(self, config_path: Path) -> LineupConfig:
        """Load and parse a configuration file (YAML or TOML)."""
        logger.info("Loading configuration from {path}", path=config_path)

        if config_path.suffix in (".yaml", ".yml"):
            data = self._load_yaml(config_path)
        else:
            data = self._load_toml(config_path)

        return self._parse_config(self._substitute_env_vars(data))

    def _load_yaml(self, config_path: Path) -> dict[str, Any]:
        """Read the ``spec`` mapping of a ``kind: Config`` YAML manifest."""
        try:
            with config_path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(config_path.name, f"invalid YAML: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(
                config_path.name, f"expected a mapping, got {type(data).__name__}"
            )

        kind = data.get("kind")
        if kind != "Config":
            raise ConfigurationError(
                config_path.name, f"must use 'kind: Config' manifest format, got 'kind: {kind}'"
            )

        spec = data.get("spec") or {}
        if not isinstance(spec, dict):
            raise ConfigurationError(config_path.name, "'spec' must be a mapping")
        return spec

    def _load_toml(self, config_path: Path) -> dict[str, Any]:
        """Read ``[tool.lineup]`` from pyproject.toml, or a flat TOML file."""
        try:
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(config_path.name, f"invalid TOML: {e}") from e

        if "tool" in data and "lineup" in data.get("tool", {}):
            lineup_data: dict[str, Any] = data["tool"]["lineup"]
            return lineup_data
        if config_path.name == "pyproject.toml":
            logger.warning("No [tool.lineup] section found in pyproject.toml, using defaults")
            return {}
        return data

    def _find_config_file(self, path: str | Path | None) -> Path:
        """Find the configuration file.

        Discovery order:
        1. Explicit path argument
        2. ``LINEUP_CONFIG_PATH`` env var
        3. ``lineup.yaml`` / ``.lineup.yaml`` in CWD
        4. ``pyproject.toml`` with ``[tool.lineup]`` in CWD or a parent

        Raises
        ------
        FileNotFoundError
            If no configuration file is found
        """
        if path:
            config_path = Path(path)
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return config_path

        if env_path := os.getenv("LINEUP_CONFIG_PATH"):
            config_path = Path(env_path)
            if config_path.exists():
                logger.debug("Using config from LINEUP_CONFIG_PATH: {}", config_path)
                return config_path
            logger.warning("LINEUP_CONFIG_PATH set but file not found: {}", config_path)

        cwd = Path.cwd()
        for name in _YAML_CONFIG_NAMES:
            if (cwd / name).exists():
                return cwd / name

        current = cwd
        while True:
            pyproject = current / "pyproject.toml"
            if pyproject.exists() and self._has_lineup_table(pyproject):
                return pyproject
            if current.parent == current:
                break
            current = current.parent

        raise FileNotFoundError(
            "No configuration file found. Provide a kind: Config YAML path, "
            "set LINEUP_CONFIG_PATH, or add [tool.lineup] to pyproject.toml"
        )

    @staticmethod
    def _has_lineup_table(pyproject: Path) -> bool:
        try:
            with pyproject.open("rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            return False
        return "lineup" in data.get("tool", {})

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively substitute ``${VAR}`` and ``${VAR:default}`` in string values."""
        if isinstance(data, str):

            def replacer(match: re.Match[str]) -> str:
                var_name, default = match.group(1), match.group(2)
                value = os.environ.get(var_name)
                if value is not None:
                    return value
                if default is not None:
                    return default
                logger.debug(
                    "Environment variable ${{{var_name}}} not found, keeping placeholder",
                    var_name=var_name,
                )
                return match.group(0)

            return self.ENV_VAR_PATTERN.sub(replacer, data)

        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}

        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]

        return data

    def _parse_config(self, data: dict[str, Any]) -> LineupConfig:
        """Parse raw configuration data into a LineupConfig.

        Raises
        ------
        ConfigurationError
            If any section has the wrong shape or an invalid value
        """
        rules_data = data.get("rules", {})
        if not isinstance(rules_data, dict):
            raise ConfigurationError("rules", "must be a mapping of rule id to settings")
        rules = {
            rule_id: self._parse_rule_config(rule_id, rule_data)
            for rule_id, rule_data in rules_data.items()
        }
        if rules:
            logger.debug("Loaded settings for {count} rule(s)", count=len(rules))

        exclude = data.get("exclude", [])
        if not isinstance(exclude, list) or not all(isinstance(e, str) for e in exclude):
            raise ConfigurationError("exclude", "must be a list of directory names")

        max_workers = data.get("max_workers")
        if env_workers := os.getenv("LINEUP_MAX_WORKERS"):
            max_workers = env_workers
            logger.debug("Overriding max_workers from env: {}", max_workers)
        if max_workers is not None:
            try:
                max_workers = int(max_workers)
            except (TypeError, ValueError) as e:
                raise ConfigurationError("max_workers", f"not an integer: {max_workers!r}") from e

        logging_data = data.get("logging", {})
        if not isinstance(logging_data, dict):
            raise ConfigurationError("logging", "must be a mapping")

        try:
            return LineupConfig(
                rules=rules,
                exclude=tuple(exclude),
                max_workers=max_workers,
                logging=self._parse_logging_config(logging_data),
            )
        except ValidationError as e:
            raise ConfigurationError(e.field, e.constraint) from e

    def _parse_rule_config(self, rule_id: str, rule_data: Any) -> RuleConfig:
        """Parse one ``rules.<id>`` section; ``false`` is shorthand for disabled."""
        if isinstance(rule_data, bool):
            return RuleConfig(enabled=rule_data)
        if not isinstance(rule_data, dict):
            raise ConfigurationError(f"rules.{rule_id}", "must be a mapping or a boolean")

        options = rule_data.get("options", {})
        if not isinstance(options, dict):
            raise ConfigurationError(f"rules.{rule_id}.options", "must be a mapping")

        try:
            return RuleConfig(
                enabled=bool(rule_data.get("enabled", True)),
                severity=rule_data.get("severity"),
                options=options,
            )
        except ValidationError as e:
            raise ConfigurationError(f"rules.{rule_id}", e.constraint) from e

    def _parse_logging_config(self, logging_data: dict[str, Any]) -> LoggingConfig:
        """Parse logging configuration with environment variable overrides.

        Environment variables take precedence over config file values:
        - LINEUP_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        - LINEUP_LOG_FORMAT: Output format (console, json, structured, rich)
        - LINEUP_LOG_FILE: Optional file path for log output
        """
        level = str(logging_data.get("level", "WARNING")).upper()
        format_type = str(logging_data.get("format", "structured")).lower()
        output_file = logging_data.get("output_file")
        use_color = bool(logging_data.get("use_color", True))
        include_timestamp = bool(logging_data.get("include_timestamp", True))

        if env_level := os.getenv("LINEUP_LOG_LEVEL"):
            level = env_level.upper()
            logger.debug("Overriding log level from env: {}", level)

        if env_format := os.getenv("LINEUP_LOG_FORMAT"):
            format_type = env_format.lower()
            logger.debug("Overriding log format from env: {}", format_type)

        if env_file := os.getenv("LINEUP_LOG_FILE"):
            output_file = env_file

        if level not in _LOG_LEVELS:
            raise ConfigurationError("logging.level", f"unknown level {level!r}")
        if format_type not in _LOG_FORMATS:
            raise ConfigurationError("logging.format", f"unknown format {format_type!r}")

        return LoggingConfig(
            level=level,  # type: ignore[arg-type]
            format=format_type,  # type: ignore[arg-type]
            output_file=output_file,
            use_color=use_color,
            include_timestamp=include_timestamp,
        )


def load_config(path: str | Path | None = None) -> LineupConfig:
    """Load configuration from file or return defaults.

    An explicit ``path`` that does not exist is an error; failing discovery
    is not.

    Raises
    ------
    ConfigurationError
        If ``path`` is given but missing, or a config file is invalid
    """
    loader = ConfigLoader()
    try:
        return loader.load_config_file(path)
    except FileNotFoundError as e:
        if path:
            raise ConfigurationError("config", str(e)) from e
        logger.debug("No configuration file found, using defaults")
        return get_default_config()


def clear_config_cache() -> None:
    """Clear cached configurations, e.g. after a test rewrote a config file."""
    _load_and_parse_cached.cache_clear()


def get_default_config() -> LineupConfig:
    """Default configuration: all rules enabled, pool sized to the CPU count."""
    return LineupConfig()
