"""Logging configuration for sui-vaults."""

import logging
import os
import sys

# Define TRACE level (lower than DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

NOISY_LOGGERS = ("urllib3", "backoff")


class ColoredFormatter(logging.Formatter):
    """Log formatter that colors the level name with ANSI escape codes.

    Colors are skipped when ``use_color`` is False, e.g. when stderr is
    redirected to a file.
    """

    COLORS = {
        "TRACE": "\033[90m",  # Dark gray
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"
    BOLD = "\033[1m"

    def __init__(self, *args, use_color: bool = True, **kwargs):
        super().__init__(*args, **kwargs)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        if self.use_color and levelname in self.COLORS:
            record.levelname = (
                f"{self.COLORS[levelname]}{self.BOLD}{levelname}{self.RESET}"
            )

        result = super().format(record)

        record.levelname = levelname

        return result


def resolve_level(log_level: str) -> int:
    """Map a level name (including TRACE) to its numeric value, defaulting to INFO."""
    name = log_level.upper()
    if name == "TRACE":
        return TRACE
    return getattr(logging, name, logging.INFO)


def setup_logging(log_level: str | None = None) -> None:
    """Configure console logging for the CLI.

    The level comes from ``log_level`` or, when omitted, the
    SUI_VAULTS_LOG_LEVEL environment variable (defaults to INFO).

    At DEBUG the urllib3 and backoff loggers stay at WARNING so RPC retries do
    not drown out vault logs. Use TRACE to see everything.
    """
    name = (log_level or os.getenv("SUI_VAULTS_LOG_LEVEL", "INFO")).upper()
    level = resolve_level(name)

    handler = logging.StreamHandler(sys.stderr)
    formatter = ColoredFormatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        use_color=sys.stderr.isatty(),
    )
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )

    if name == "DEBUG":
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(logging.WARNING)
    elif name == "TRACE":
        for noisy in NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(TRACE)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a module.

    Args:
        name: Usually __name__ of the calling module

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)
