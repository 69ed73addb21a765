"""
Workflows — the five bootstrap procedures, as data the orchestrator runs.

    from freshsetup.core.workflows import WORKFLOWS

    entry = WORKFLOWS["install-miniforge"]
    workflow = entry.build(config, platform)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from freshsetup.core.models.config import RunConfiguration
from freshsetup.core.services.platform import PlatformInfo
from freshsetup.core.workflows import (
    miniforge,
    miniforge_uninstall,
    r_files,
    terminal,
    terminal_uninstall,
)
from freshsetup.core.workflows.base import Step, Workflow


@dataclass(frozen=True)
class WorkflowEntry:
    """How to build a workflow and where its run log goes (under home)."""

    name: str
    build: Callable[[RunConfiguration, PlatformInfo], Workflow]
    log_name: str


WORKFLOWS: dict[str, WorkflowEntry] = {
    module.NAME: WorkflowEntry(name=module.NAME, build=module.build, log_name=module.LOG_NAME)
    for module in (terminal, terminal_uninstall, miniforge, miniforge_uninstall, r_files)
}


def get_workflow(name: str) -> WorkflowEntry:
    try:
        return WORKFLOWS[name]
    except KeyError:
        raise KeyError(f"Unknown workflow '{name}'. Available: {', '.join(sorted(WORKFLOWS))}") from None


__all__ = ["Step", "WORKFLOWS", "Workflow", "WorkflowEntry", "get_workflow"]
