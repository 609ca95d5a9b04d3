"""Centralized logging configuration for lineup using Loguru.

Examples
--------
Basic usage:

>>> from lineup.kernel.logging import get_logger
>>> logger = get_logger(__name__)
>>> logger.info("Fixed {count} facet(s)", count=2)

Configure logging globally::

    from lineup.kernel.logging import configure_logging
    configure_logging(level="DEBUG", format="rich")
"""

from __future__ import annotations

import os
import sys
from contextlib import suppress
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from loguru import Logger

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["console", "json", "structured", "rich"]

_CURRENT_CONFIG: dict | None = None
_HANDLER_IDS: list[int] = []


def _stderr_sink(message: str) -> None:
    # looked up per record; CliRunner and capsys replace sys.stderr
    sys.stderr.write(message)


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "structured",
    output_file: str | Path | None = None,
    use_color: bool = True,
    include_timestamp: bool = True,
    force_reconfigure: bool = False,
) -> None:
    """Configure global logging for lineup.

    Calling this repeatedly with the same arguments is a no-op, so the CLI
    and library entry points can both call it safely.

    Parameters
    ----------
    level : LogLevel, default="INFO"
        Minimum log level to output
    format : LogFormat, default="structured"
        Output format:
        - "console": plain single-line records
        - "json": serialized records for log aggregation
        - "structured": colored records with module/function/line
        - "rich": Rich console handler on stderr
    output_file : str | Path | None, default=None
        Optional file path that receives JSON records in addition to stderr
    use_color : bool, default=True
        Use ANSI colors in structured format (auto-disabled for non-TTY)
    include_timestamp : bool, default=True
        Include timestamp in log output
    force_reconfigure : bool, default=False
        Reconfigure even if the settings did not change
    """
    global _CURRENT_CONFIG

    current_config = {
        "level": level,
        "format": format,
        "output_file": str(output_file) if output_file else None,
        "use_color": use_color,
        "include_timestamp": include_timestamp,
    }

    if not force_reconfigure and current_config == _CURRENT_CONFIG:
        return

    # loguru ships a default stderr handler; drop it once so records aren't printed twice
    if _CURRENT_CONFIG is None:
        with suppress(ValueError):
            logger.remove(0)

    # Remove only handlers added here so pytest's capture handlers stay intact
    for handler_id in _HANDLER_IDS:
        with suppress(ValueError):
            logger.remove(handler_id)
    _HANDLER_IDS.clear()

    if format == "rich":
        rich_handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            markup=False,
            show_time=include_timestamp,
            show_level=True,
            show_path=True,
        )
        handler_id = logger.add(sink=rich_handler, level=level, format="{message}")
        _HANDLER_IDS.append(handler_id)

    elif format == "json":
        handler_id = logger.add(sink=_stderr_sink, level=level, serialize=True)
        _HANDLER_IDS.append(handler_id)

    elif format == "structured":
        timestamp_fmt = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> " if include_timestamp else ""
        colorize = use_color and sys.stderr.isatty()
        color_level = "<level>{level: <8}</level>" if colorize else "{level: <8}"
        structured_format = (
            f"{timestamp_fmt}[{color_level}]"
            "<cyan>{name}:{function}:{line}</cyan> | <level>{message}</level>"
        )
        handler_id = logger.add(
            sink=_stderr_sink,
            level=level,
            format=structured_format,
            colorize=colorize,
        )
        _HANDLER_IDS.append(handler_id)

    else:  # console
        timestamp_fmt = "{time:YYYY-MM-DD HH:mm:ss} " if include_timestamp else ""
        console_format = f"{timestamp_fmt}{{level: <8}} | {{name}} | {{message}}"
        handler_id = logger.add(
            sink=_stderr_sink,
            level=level,
            format=console_format,
            colorize=False,
        )
        _HANDLER_IDS.append(handler_id)

    if output_file:
        output_path = Path(output_file)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        handler_id = logger.add(sink=output_path, level=level, serialize=True)
        _HANDLER_IDS.append(handler_id)

    _CURRENT_CONFIG = current_config


@lru_cache(maxsize=256)
def get_logger(name: str) -> Logger:
    """Get a logger bound with the given module name.

    Parameters
    ----------
    name : str
        Logger name, typically ``__name__`` of the calling module

    Returns
    -------
    loguru.Logger
        Logger instance bound with ``module=name``
    """
    _ensure_configured()
    return logger.bind(module=name)


def _ensure_configured() -> None:
    """Install a default configuration on first use, honouring environment variables."""
    if _CURRENT_CONFIG is None:
        level = os.getenv("LINEUP_LOG_LEVEL", "WARNING").upper()
        format_type = os.getenv("LINEUP_LOG_FORMAT", "structured").lower()
        configure_logging(level=level, format=format_type)  # type: ignore[arg-type]
