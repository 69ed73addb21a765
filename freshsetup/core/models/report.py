"""
Report models — verification verdicts and the final run summary.
"""

from __future__ import annotations

from enum import IntEnum
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from freshsetup.core.models.action import ActionRecord


class ExitCode(IntEnum):
    """Process exit codes.

    1-10 are shared by every workflow. install-terminal gives each of its
    fatal components a code of its own so the failing one can be told apart.
    """

    OK = 0
    UNSUPPORTED_PLATFORM = 1
    USER_CANCELLED = 2
    DOWNLOAD_FAILED = 3
    MUTATION_FAILED = 4
    VERIFICATION_FAILED = 5
    SHELL_INIT_FAILED = 6
    PREREQUISITE_MISSING = 7
    BAD_ARGUMENTS = 10
    HOMEBREW_FAILED = 11
    OH_MY_ZSH_FAILED = 12
    THEME_FAILED = 13
    PLUGIN_FAILED = 14


class VerificationEntry(BaseModel):
    """Expected vs observed state of one target (or one custom check)."""

    target: str
    locator: str = ""
    expected: str                 # present | absent
    actual: str                   # present | absent | pass | fail
    version: str | None = None
    ok: bool = True
    advisory: bool = False
    detail: str = ""


class VerificationReport(BaseModel):
    """Terminal verdict of the Verifying phase.

    ``simulated`` reports come from dry-run and are non-authoritative:
    they always pass and never touch real state.
    """

    entries: list[VerificationEntry] = Field(default_factory=list)
    issues: int = 0
    simulated: bool = False

    @property
    def passed(self) -> bool:
        return self.issues == 0

    def entry(self, target: str) -> VerificationEntry | None:
        for e in self.entries:
            if e.target == target:
                return e
        return None


RunStatus = Literal["succeeded", "failed"]


class WorkflowReport(BaseModel):
    """Final structured summary of a workflow run."""

    workflow: str
    status: RunStatus = "succeeded"
    exit_code: ExitCode = ExitCode.OK
    dry_run: bool = False
    error: str | None = None

    records: list[ActionRecord] = Field(default_factory=list)
    verification: VerificationReport | None = None
    backup_path: Path | None = None
    log_file: Path | None = None
    next_steps: list[str] = Field(default_factory=list)

    @property
    def steps_run(self) -> int:
        return sum(1 for r in self.records if r.ok)

    @property
    def steps_skipped(self) -> int:
        return sum(1 for r in self.records if r.skipped)

    @property
    def steps_failed(self) -> int:
        return sum(1 for r in self.records if r.failed)

    @property
    def ok(self) -> bool:
        return self.exit_code == ExitCode.OK

    def to_dict(self) -> dict[str, Any]:
        return {
            "workflow": self.workflow,
            "status": self.status,
            "exit_code": int(self.exit_code),
            "dry_run": self.dry_run,
            "error": self.error,
            "steps": {
                "run": self.steps_run,
                "skipped": self.steps_skipped,
                "failed": self.steps_failed,
            },
            "records": [r.model_dump(mode="json") for r in self.records],
            "verification": (
                self.verification.model_dump(mode="json") if self.verification else None
            ),
            "backup_path": str(self.backup_path) if self.backup_path else None,
            "log_file": str(self.log_file) if self.log_file else None,
            "next_steps": self.next_steps,
        }
