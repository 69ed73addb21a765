"""
Logging configuration — central setup for every workflow command.

Called once per process by the CLI.  Every module that does
``logger = logging.getLogger(__name__)`` inherits this config, and the
run logger (``freshsetup.run``) writes through the same two sinks:

    console  — stderr, level tag coloured when attached to a TTY
    log file — append mode, one identical line per record

Levels are resolved in precedence order:
    CLI flag  >  FRESH_SETUP_LOG_LEVEL env var  >  INFO (default)

The log file never makes the process fail: if it cannot be opened the
run continues console-only, and write errors are swallowed by
``logging.raiseExceptions = False``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

# ── Extra levels ────────────────────────────────────────────────

DETECT = logging.INFO + 1
DRY_RUN = logging.INFO + 2

logging.addLevelName(DETECT, "DETECT")
logging.addLevelName(DRY_RUN, "DRY-RUN")

# ── Format strings ──────────────────────────────────────────────

_FMT_FILE = "[%(asctime)s] [%(levelname)s] %(message)s"
_FMT_CONSOLE = "[%(asctime)s] %(level_tag)s %(message)s"
_FMT_DEBUG = "[%(asctime)s] %(level_tag)s %(name)s:%(lineno)d — %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_LEVEL_COLORS = {
    logging.DEBUG: "white",
    logging.INFO: "green",
    DETECT: "cyan",
    DRY_RUN: "blue",
    logging.WARNING: "yellow",
    logging.ERROR: "red",
    logging.CRITICAL: "red",
}

# Third-party loggers that are noisy at INFO/DEBUG
_NOISY_LOGGERS = ("urllib3", "charset_normalizer")


class _ConsoleFormatter(logging.Formatter):
    """Adds a ``level_tag`` attribute, coloured only for terminals."""

    def __init__(self, fmt: str, color: bool):
        super().__init__(fmt, datefmt=_DATEFMT)
        self._color = color

    def format(self, record: logging.LogRecord) -> str:
        tag = f"[{record.levelname}]"
        if self._color:
            tag = click.style(tag, fg=_LEVEL_COLORS.get(record.levelno, "white"))
        record.level_tag = tag
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    log_file: Path | str | None = None,
    quiet_third_party: bool = True,
) -> Path | None:
    """Configure Python logging for the entire process.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path of the persistent log. The file always
            receives INFO and above, whatever the console level.
        quiet_third_party: Keep noisy third-party loggers at WARNING
            unless we're at DEBUG level.

    Returns:
        The log file path actually opened, or None when running
        console-only.
    """
    numeric_level = _parse_level(level)

    # ── Console handler (stderr) ────────────────────────────────
    stream = sys.stderr
    fmt = _FMT_DEBUG if numeric_level <= logging.DEBUG else _FMT_CONSOLE
    console = logging.StreamHandler(stream)
    console.setLevel(numeric_level)
    console.setFormatter(_ConsoleFormatter(fmt, color=_isatty(stream)))

    # ── Root logger ─────────────────────────────────────────────
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.addHandler(console)

    effective_level = numeric_level
    opened: Path | None = None

    # ── File handler (optional) ─────────────────────────────────
    if log_file:
        file_level = min(numeric_level, logging.INFO)
        try:
            path = Path(log_file).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(path, mode="a", encoding="utf-8")
        except OSError as e:
            root.setLevel(numeric_level)
            logging.getLogger(__name__).debug("Log file unavailable, console only: %s", e)
        else:
            fh.setLevel(file_level)
            fh.setFormatter(logging.Formatter(_FMT_FILE, datefmt=_DATEFMT))
            root.addHandler(fh)
            effective_level = min(effective_level, file_level)
            opened = path

    root.setLevel(effective_level)

    # ── Third-party noise control ───────────────────────────────
    if quiet_third_party and numeric_level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # Don't propagate exceptions from logging itself
    logging.raiseExceptions = False
    return opened


def _isatty(stream: object) -> bool:
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        return False


def _parse_level(level: str | None) -> int:
    """Convert a level name string to its numeric constant."""
    if not level:
        return logging.INFO
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        return logging.INFO
    return numeric
