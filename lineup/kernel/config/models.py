"""Configuration data models for lineup."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from lineup.kernel.exceptions import ValidationError
from lineup.kernel.linting.models import SEVERITIES, Severity


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration.

    Attributes
    ----------
    level : str, default="WARNING"
        Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    format : str, default="structured"
        Output format (console, json, structured, rich)
    output_file : str | None, default=None
        Optional file path that receives JSON log records
    use_color : bool, default=True
        Use ANSI color codes (auto-disabled for non-TTY)
    include_timestamp : bool, default=True
        Prefix records with a timestamp

    Examples
    --------
    ```toml
    [tool.lineup.logging]
    level = "DEBUG"
    format = "rich"
    ```

    Environment variable overrides:

    ```bash
    export LINEUP_LOG_LEVEL=DEBUG
    export LINEUP_LOG_FORMAT=json
    ```
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True


@dataclass(frozen=True, slots=True)
class RuleConfig:
    """Per-rule settings.

    Attributes
    ----------
    enabled : bool
        Disabled rules are skipped by the engine but still listed.
    severity : Severity | None
        Replaces the rule's default severity when set.
    options : dict[str, Any]
        Rule-specific options (e.g. ``version`` for cspell-config).
    """

    enabled: bool = True
    severity: Severity | None = None
    options: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate the severity override.

        Raises
        ------
        ValidationError
            If severity is not one of error, warning, info
        """
        if self.severity is not None and self.severity not in SEVERITIES:
            raise ValidationError("severity", "must be one of error, warning, info", self.severity)


_DEFAULT_RULE_CONFIG = RuleConfig()


@dataclass(frozen=True, slots=True)
class LineupConfig:
    """Complete lineup configuration.

    Attributes
    ----------
    rules : dict[str, RuleConfig]
        Settings keyed by rule id; rules without an entry use defaults
    exclude : tuple[str, ...]
        Extra directory names the repository locator never descends into
    max_workers : int | None
        Size of the repository worker pool (``os.cpu_count()`` when None)
    logging : LoggingConfig
        Logging configuration

    Examples
    --------
    TOML configuration in pyproject.toml:

    ```toml
    [tool.lineup]
    exclude = ["fixtures"]
    max_workers = 4

    [tool.lineup.rules.pnpm-usage]
    severity = "warning"

    [tool.lineup.rules.cspell-config.options]
    version = "^9.0.0"
    ```
    """

    rules: dict[str, RuleConfig] = field(default_factory=dict)
    exclude: tuple[str, ...] = ()
    max_workers: int | None = None
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        if self.max_workers is not None and self.max_workers < 1:
            raise ValidationError("max_workers", "must be at least 1", self.max_workers)

    def rule(self, rule_id: str) -> RuleConfig:
        """Settings for ``rule_id``, falling back to defaults."""
        return self.rules.get(rule_id, _DEFAULT_RULE_CONFIG)
