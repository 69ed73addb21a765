"""
Backup models — what gets snapshotted before destructive steps.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, model_validator


class BackupSource(BaseModel):
    """One thing to snapshot.

    Either a ``path`` (file or directory, copied with metadata) or a
    read-only ``command`` whose stdout is saved as ``<name>.txt``.
    ``group`` places the copy in a subdirectory of the backup root.
    """

    name: str
    path: Path | None = None
    command: tuple[str, ...] = ()
    group: str = ""

    @model_validator(mode="after")
    def _check_source(self) -> BackupSource:
        if self.path is None and not self.command:
            raise ValueError(f"backup source '{self.name}' needs a path or a command")
        return self

    @classmethod
    def of_path(cls, path: Path, group: str = "") -> BackupSource:
        return cls(name=path.name, path=path, group=group)

    @classmethod
    def of_command(cls, name: str, command: tuple[str, ...]) -> BackupSource:
        return cls(name=name, command=command)


class BackupEntry(BaseModel):
    """Outcome of snapshotting one source."""

    source: str
    destination: str = ""
    ok: bool = True
    error: str | None = None


class BackupManifest(BaseModel):
    """A timestamped backup root and everything copied into it.

    Never deleted by the engine: it is the manual recovery artifact.
    """

    root: Path
    timestamp: str
    entries: list[BackupEntry] = Field(default_factory=list)

    @property
    def copied(self) -> int:
        return sum(1 for e in self.entries if e.ok)

    @property
    def failed(self) -> int:
        return sum(1 for e in self.entries if not e.ok)
