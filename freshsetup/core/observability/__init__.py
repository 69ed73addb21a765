"""Observability — process logging setup and the per-run event logger."""

from freshsetup.core.observability.logging_config import DETECT, DRY_RUN, setup_logging
from freshsetup.core.observability.run_log import LogEvent, RunLogger

__all__ = ["DETECT", "DRY_RUN", "LogEvent", "RunLogger", "setup_logging"]
