"""Logging configuration for session-usage."""

import logging
import sys
from typing import Optional

import colorlog

BASE_LOG_FORMAT = "%(asctime)s %(levelname)8s %(message)s (%(name)s@%(filename)s:%(lineno)d)"

# The usage view owns stdout, so logs go to stderr and stay quiet by default.
DEFAULT_LEVEL = logging.WARNING


def setup_logging(
    level: int = DEFAULT_LEVEL,
    format_string: Optional[str] = None,
    use_colors: bool = True,
) -> None:
    """Configure logging for session-usage.

    Args:
        level: Logging level to use
        format_string: Custom format string for log messages
        use_colors: Whether to use colored output
    """
    console_format = format_string or _get_console_format(use_colors)
    logging.basicConfig(
        level=level,
        handlers=[_create_console_handler(console_format, use_colors)],
        force=True,
    )


def _get_console_format(use_colors: bool) -> str:
    if use_colors:
        return (
            "%(asctime)s %(log_color)s%(levelname)8s%(reset)s %(message)s "
            "\033[90m(%(name)s@%(filename)s:%(lineno)d)\033[0m"
        )
    return BASE_LOG_FORMAT


def _create_console_handler(format_string: str, use_colors: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)

    if use_colors:
        formatter: logging.Formatter = colorlog.ColoredFormatter(
            format_string,
            datefmt="%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red,bg_white",
            },
            style="%",
        )
    else:
        formatter = logging.Formatter(format_string, datefmt="%m-%d %H:%M:%S")

    handler.setFormatter(formatter)
    return handler


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (typically for `__name__`)."""
    return logging.getLogger(name)


def level_from_name(name: str) -> int:
    """Map a level name such as "debug" to its logging constant.

    Raises:
        ValueError: If the name is not a standard level
    """
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level
