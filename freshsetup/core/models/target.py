"""
Target models — the artifacts a workflow manages.

An InstallationTarget is anything whose presence can be checked without
side effects: a command on the search path, a file, a directory or an
executable at a fixed location.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

TargetKind = Literal["command", "file", "directory", "executable", "path"]


class InstallationTarget(BaseModel):
    """A named filesystem or command artifact.

    ``path`` is required for filesystem kinds; ``command`` for the
    ``command`` kind. ``path`` kind accepts either a file or a directory.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: TargetKind
    path: Path | None = None
    command: str | None = None
    version_command: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_locator(self) -> InstallationTarget:
        if self.kind == "command" and not self.command:
            raise ValueError(f"target '{self.name}': command kind needs 'command'")
        if self.kind != "command" and self.path is None:
            raise ValueError(f"target '{self.name}': {self.kind} kind needs 'path'")
        return self

    @property
    def locator(self) -> str:
        """Human-readable location (path or command name)."""
        if self.kind == "command":
            return self.command or ""
        return str(self.path)

    @classmethod
    def for_command(cls, name: str, command: str, version_command: tuple[str, ...] = ()) -> InstallationTarget:
        return cls(name=name, kind="command", command=command, version_command=version_command)

    @classmethod
    def for_file(cls, name: str, path: Path) -> InstallationTarget:
        return cls(name=name, kind="file", path=path)

    @classmethod
    def for_directory(cls, name: str, path: Path) -> InstallationTarget:
        return cls(name=name, kind="directory", path=path)

    @classmethod
    def for_executable(cls, name: str, path: Path, version_command: tuple[str, ...] = ()) -> InstallationTarget:
        return cls(name=name, kind="executable", path=path, version_command=version_command)

    @classmethod
    def for_path(cls, name: str, path: Path) -> InstallationTarget:
        return cls(name=name, kind="path", path=path)


class ProbeResult(BaseModel):
    """Read-only observation of a single target."""

    model_config = ConfigDict(frozen=True)

    target: str
    present: bool
    location: str | None = None   # resolved path when present

    @property
    def state(self) -> str:
        return "present" if self.present else "absent"


class Expectation(str, Enum):
    """Expected post-condition for a target after the workflow ran."""

    PRESENT = "present"
    ABSENT = "absent"
    PRESERVE = "preserve"   # whatever Detecting observed before the run


class TargetExpectation(BaseModel):
    """A target paired with its expected final state."""

    model_config = ConfigDict(frozen=True)

    target: InstallationTarget
    expect: Expectation
    advisory: bool = False   # mismatch is logged but not counted

    @classmethod
    def present(cls, target: InstallationTarget, advisory: bool = False) -> TargetExpectation:
        return cls(target=target, expect=Expectation.PRESENT, advisory=advisory)

    @classmethod
    def absent(cls, target: InstallationTarget) -> TargetExpectation:
        return cls(target=target, expect=Expectation.ABSENT)

    @classmethod
    def preserve(cls, target: InstallationTarget) -> TargetExpectation:
        return cls(target=target, expect=Expectation.PRESERVE)


class DetectionSnapshot(BaseModel):
    """Results of the Detecting phase, keyed by target name."""

    results: dict[str, ProbeResult] = Field(default_factory=dict)

    def is_present(self, name: str) -> bool:
        result = self.results.get(name)
        return bool(result and result.present)

    @property
    def present(self) -> list[str]:
        return [name for name, r in self.results.items() if r.present]
