"""
Run use case — execute one workflow from parsed CLI flags.

Loads the optional settings file, builds the RunConfiguration exactly
once, opens the workflow's log file and hands everything to the
orchestrator. The only exception that escapes is ``ConfigError``; every
other failure is part of the returned WorkflowReport.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from freshsetup.adapters import default_registry
from freshsetup.adapters.registry import AdapterRegistry
from freshsetup.core.config.loader import (
    build_run_configuration,
    find_settings_file,
    load_settings,
)
from freshsetup.core.engine.gate import ConfirmationGate
from freshsetup.core.engine.orchestrator import WorkflowOrchestrator
from freshsetup.core.models.report import WorkflowReport
from freshsetup.core.observability.logging_config import setup_logging
from freshsetup.core.observability.run_log import RunLogger
from freshsetup.core.services.platform import PlatformInfo, detect_platform
from freshsetup.core.workflows import get_workflow

logger = logging.getLogger(__name__)


def run_workflow(
    name: str,
    config_path: Path | None = None,
    home: Path | None = None,
    console_level: str = "INFO",
    registry: AdapterRegistry | None = None,
    gate: ConfirmationGate | None = None,
    platform_info: PlatformInfo | None = None,
    sleep: Callable[[float], None] | None = None,
    **flags: Any,
) -> WorkflowReport:
    """Run the workflow called ``name``.

    Args:
        name: Registered workflow name (e.g. ``install-miniforge``).
        config_path: Explicit settings file (``--config``).
        home: Home directory override; defaults to ``Path.home()``.
        console_level: Console log level; the log file gets INFO+.
        registry: Adapter registry (default: every real adapter).
        gate: Confirmation gate (default: interactive, honours --force).
        platform_info: Platform override (default: detected).
        sleep: Retry backoff sleep override.
        **flags: RunConfiguration fields as parsed by the CLI.

    Raises:
        ConfigError: The settings file is missing, unreadable or invalid.
    """
    entry = get_workflow(name)
    home = home or Path.home()

    settings = load_settings(find_settings_file(config_path, home=home))
    config = build_run_configuration(
        name, settings, log_name=entry.log_name, home=home, **flags
    )

    opened = setup_logging(level=console_level, log_file=config.log_file)
    log = RunLogger(log_file=opened)

    platform = platform_info or detect_platform()
    workflow = entry.build(config, platform)
    logger.debug("Built %s with %d step(s)", workflow.name, len(workflow.steps))

    orchestrator = WorkflowOrchestrator(
        config,
        registry or default_registry(),
        log,
        gate=gate,
        platform_info=platform,
        sleep=sleep,
    )
    return orchestrator.run(workflow)
