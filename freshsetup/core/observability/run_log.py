"""
Run logger — the leveled event contract shared by all engine components.

Every component receives the same RunLogger and reports through
``emit(level, message)``. Each event goes to the ``freshsetup.run``
logger (console + log file, see ``logging_config``) and is also kept
in memory, in emission order, for the final report.

Emitting never raises.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from freshsetup.core.observability.logging_config import DETECT, DRY_RUN

INFO = "INFO"
WARNING = "WARNING"
ERROR = "ERROR"
DRY_RUN_LEVEL = "DRY-RUN"
DETECT_LEVEL = "DETECT"

_LEVELS: dict[str, int] = {
    INFO: logging.INFO,
    WARNING: logging.WARNING,
    ERROR: logging.ERROR,
    DRY_RUN_LEVEL: DRY_RUN,
    DETECT_LEVEL: DETECT,
}

# Tag carried by executor action descriptions
ACTION_TAG = "action"


@dataclass(frozen=True)
class LogEvent:
    """A single emitted line."""

    level: str
    message: str
    tag: str = ""
    timestamp: str = field(
        default_factory=lambda: datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    )


class RunLogger:
    """Structured, timestamped, leveled event emitter for one run."""

    def __init__(self, log_file: Path | None = None, name: str = "freshsetup.run"):
        self._logger = logging.getLogger(name)
        self._events: list[LogEvent] = []
        self.log_file = log_file

    @property
    def events(self) -> list[LogEvent]:
        return list(self._events)

    def emit(self, level: str, message: str, tag: str = "") -> None:
        """Record and write one line. Unknown levels are written as INFO."""
        level = level if level in _LEVELS else INFO
        self._events.append(LogEvent(level=level, message=message, tag=tag))
        self._logger.log(_LEVELS[level], message)

    def info(self, message: str, tag: str = "") -> None:
        self.emit(INFO, message, tag)

    def warning(self, message: str, tag: str = "") -> None:
        self.emit(WARNING, message, tag)

    def error(self, message: str, tag: str = "") -> None:
        self.emit(ERROR, message, tag)

    def dry_run(self, message: str, tag: str = "") -> None:
        self.emit(DRY_RUN_LEVEL, message, tag)

    def detect(self, message: str, tag: str = "") -> None:
        self.emit(DETECT_LEVEL, message, tag)

    # ── Queries ──────────────────────────────────────────────────

    def messages(self, level: str | None = None, tag: str | None = None) -> list[str]:
        """Messages filtered by level and/or tag, in emission order."""
        return [
            e.message
            for e in self._events
            if (level is None or e.level == level) and (tag is None or e.tag == tag)
        ]

    def count(self, level: str) -> int:
        return sum(1 for e in self._events if e.level == level)
