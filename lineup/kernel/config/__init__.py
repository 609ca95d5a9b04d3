"""Configuration models and loader."""

from lineup.kernel.config.loader import ConfigLoader, clear_config_cache, load_config
from lineup.kernel.config.models import LineupConfig, LoggingConfig, RuleConfig

__all__ = [
    "ConfigLoader",
    "LineupConfig",
    "LoggingConfig",
    "RuleConfig",
    "clear_config_cache",
    "load_config",
]
