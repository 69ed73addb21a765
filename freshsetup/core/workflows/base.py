"""
Workflow definitions — typed, ordered descriptions of what a run does.

A ``Workflow`` is pure data: detection targets, prerequisites, backup
sources, an ordered list of ``Step``s and the expected final state. The
orchestrator iterates it; nothing here touches the system except the
small ``skip_when``/``confirm_when`` predicates, which only probe.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from freshsetup.core.engine.verify import Check
from freshsetup.core.models.action import Action
from freshsetup.core.models.backup import BackupSource
from freshsetup.core.models.config import RetryPolicy
from freshsetup.core.models.report import ExitCode
from freshsetup.core.models.target import DetectionSnapshot, InstallationTarget, TargetExpectation

StepPolicy = Literal["fatal", "soft"]

__all__ = [
    "Check",
    "Step",
    "StepPolicy",
    "Workflow",
    "download",
    "edit_config",
    "environment",
    "filesystem",
    "first_reason",
    "shell",
    "skip_if_command",
    "skip_if_exists",
    "skip_if_missing",
    "skip_unless_command",
]


@dataclass(frozen=True)
class Step:
    """One named mutation.

    Attributes:
        policy: ``fatal`` aborts the run with ``exit_code`` when the
            action fails; ``soft`` logs a warning and continues.
        skip_when: Returns a reason when the step's own result already
            exists (re-runs skip it), else None.
        depends_on: Earlier steps whose result ``skip_when`` reads. When one
            of them ran (or was simulated) in this run, ``skip_when`` is not
            consulted and the step executes.
        confirm: Per-step question; a decline skips just this step.
        confirm_when: Ask ``confirm`` only when this returns True.
        keep_reason: Set when a keep flag disables the step; logged as
            "Keeping <keep_reason>".
    """

    name: str
    description: str
    action: Action
    policy: StepPolicy = "soft"
    exit_code: ExitCode = ExitCode.MUTATION_FAILED
    retry: RetryPolicy | None = None
    skip_when: Callable[[], str | None] | None = None
    depends_on: tuple[str, ...] = ()
    confirm: str | None = None
    confirm_when: Callable[[], bool] | None = None
    keep_reason: str | None = None

    @property
    def fatal(self) -> bool:
        return self.policy == "fatal"


def _no_warnings(snapshot: DetectionSnapshot) -> list[str]:
    return []


@dataclass
class Workflow:
    """Everything the orchestrator needs to run one workflow."""

    name: str
    title: str
    backup_prefix: str
    requires_macos: bool = True
    supported_arch: tuple[str, ...] = ()

    targets: list[InstallationTarget] = field(default_factory=list)
    prerequisites: list[InstallationTarget] = field(default_factory=list)
    preflight: Callable[[DetectionSnapshot], list[str]] = _no_warnings
    preflight_prompt: str = "Continue anyway?"
    confirm_prompt: str | None = None
    plan_notes: list[str] = field(default_factory=list)

    backup_sources: list[BackupSource] = field(default_factory=list)
    steps: list[Step] = field(default_factory=list)

    expectations: list[TargetExpectation] = field(default_factory=list)
    checks: list[Check] = field(default_factory=list)
    next_steps: list[str] = field(default_factory=list)

    def probe_targets(self) -> list[InstallationTarget]:
        """Detection targets plus every verified target, deduplicated by name."""
        seen: dict[str, InstallationTarget] = {}
        for target in [*self.targets, *(e.target for e in self.expectations)]:
            seen.setdefault(target.name, target)
        return list(seen.values())


# ── Skip predicates ─────────────────────────────────────────────


def skip_if_exists(path: Path, what: str = "") -> Callable[[], str | None]:
    """Skip when ``path`` already exists (the step would create it)."""

    def check() -> str | None:
        if path.exists() or path.is_symlink():
            return f"{what or path} already exists"
        return None

    return check


def skip_if_missing(path: Path, what: str = "") -> Callable[[], str | None]:
    """Skip when ``path`` is already gone (the step would remove it)."""

    def check() -> str | None:
        if not (path.exists() or path.is_symlink()):
            return f"{what or path} not found"
        return None

    return check


def skip_if_command(command: str, what: str = "") -> Callable[[], str | None]:
    def check() -> str | None:
        found = shutil.which(command)
        return f"{what or command} already installed ({found})" if found else None

    return check


def skip_unless_command(command: str) -> Callable[[], str | None]:
    def check() -> str | None:
        return None if shutil.which(command) else f"{command} not found"

    return check


def first_reason(*checks: Callable[[], str | None]) -> Callable[[], str | None]:
    """Combine predicates; the first one that gives a reason wins."""

    def check() -> str | None:
        for fn in checks:
            reason = fn()
            if reason:
                return reason
        return None

    return check


# ── Action builders ─────────────────────────────────────────────
# Action ids follow "<workflow>:<step>" so receipts stay traceable.


def shell(action_id: str, command: list[str] | str, **params: object) -> Action:
    return Action(id=action_id, adapter="shell", params={"command": command, **params})


def filesystem(action_id: str, operation: str, path: Path, **params: object) -> Action:
    extra = {k: str(v) if isinstance(v, Path) else v for k, v in params.items()}
    return Action(
        id=action_id,
        adapter="filesystem",
        params={"operation": operation, "path": str(path), **extra},
    )


def edit_config(
    action_id: str, path: Path, edits: list[dict[str, object]], create: bool = False
) -> Action:
    return Action(
        id=action_id,
        adapter="config",
        params={"path": str(path), "edits": edits, "create": create},
    )


def download(action_id: str, url: str, dest: Path, min_size_bytes: int = 0) -> Action:
    return Action(
        id=action_id,
        adapter="download",
        params={"url": url, "dest": str(dest), "min_size_bytes": min_size_bytes},
    )


def environment(action_id: str, **params: object) -> Action:
    return Action(id=action_id, adapter="environment", params=dict(params))
