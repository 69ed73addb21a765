"""
Backup manager — timestamped, best-effort snapshots before mutation.

Creates ``~/.<prefix>_backup_YYYYmmdd_HHMMSS/`` and copies each source
into it (files and directories with metadata, command captures as text
files), then writes ``manifest.json`` beside the copies. Failures are
logged as warnings and never stop the workflow; the backup root is
never deleted by the engine.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path

from freshsetup.core.models.backup import BackupEntry, BackupManifest, BackupSource
from freshsetup.core.models.config import RunConfiguration
from freshsetup.core.observability.run_log import RunLogger

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"


class BackupManager:
    """Snapshot mutable state into a fresh timestamped directory."""

    def __init__(self, config: RunConfiguration, log: RunLogger, capture_timeout: int = 60):
        self.config = config
        self.log = log
        self.capture_timeout = capture_timeout

    def backup_root(self, prefix: str, timestamp: str) -> Path:
        return self.config.home / f".{prefix}_backup_{timestamp}"

    def snapshot(self, sources: Iterable[BackupSource], prefix: str) -> BackupManifest | None:
        """Back up every existing source.

        Returns None when the backup is skipped (``no_backup``, dry-run,
        or nothing to back up).
        """
        sources = list(sources)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        root = self.backup_root(prefix, timestamp)

        if self.config.no_backup:
            self.log.info("Skipping backup (--no-backup)")
            return None

        existing = [s for s in sources if self._exists(s)]
        for source in sources:
            if source not in existing:
                self.log.info(f"Not backing up {self._label(source)} (not found)")

        if self.config.dry_run:
            if existing:
                self.log.dry_run(f"Would create backup at {root}")
                for source in existing:
                    self.log.detect(f"Would back up: {self._label(source)}")
            return None

        if not existing:
            self.log.info("Nothing to back up")
            return None

        manifest = BackupManifest(root=root, timestamp=timestamp)
        try:
            root.mkdir(parents=True, exist_ok=False)
        except OSError as e:
            self.log.warning(f"Could not create backup directory {root}: {e}")
            return None

        self.log.info(f"Creating backup at {root}")
        for source in existing:
            manifest.entries.append(self._copy(source, root))

        self._write_manifest(manifest)
        if manifest.failed:
            self.log.warning(f"Backup finished with {manifest.failed} failure(s); see {root}")
        else:
            self.log.info(f"Backed up {manifest.copied} item(s) to {root}")
        return manifest

    # ── Helpers ──────────────────────────────────────────────────

    @staticmethod
    def _label(source: BackupSource) -> str:
        if source.path is not None:
            return str(source.path)
        return " ".join(source.command)

    @staticmethod
    def _exists(source: BackupSource) -> bool:
        if source.path is not None:
            return source.path.exists() or source.path.is_symlink()
        return shutil.which(source.command[0]) is not None

    def _copy(self, source: BackupSource, root: Path) -> BackupEntry:
        dest_dir = root / source.group if source.group else root
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            if source.path is not None:
                dest = dest_dir / source.name
                if source.path.is_dir() and not source.path.is_symlink():
                    shutil.copytree(source.path, dest, symlinks=True)
                else:
                    shutil.copy2(source.path, dest, follow_symlinks=False)
            else:
                dest = dest_dir / f"{source.name}.txt"
                result = subprocess.run(
                    list(source.command),
                    capture_output=True,
                    text=True,
                    timeout=self.capture_timeout,
                )
                if result.returncode != 0:
                    raise OSError(
                        f"exit code {result.returncode}: {result.stderr.strip()[:200]}"
                    )
                dest.write_text(result.stdout, encoding="utf-8")
        except (OSError, shutil.Error, subprocess.TimeoutExpired) as e:
            self.log.warning(f"Failed to back up {self._label(source)}: {e}")
            return BackupEntry(source=self._label(source), ok=False, error=str(e))

        logger.debug("Backed up %s -> %s", self._label(source), dest)
        return BackupEntry(source=self._label(source), destination=str(dest))

    def _write_manifest(self, manifest: BackupManifest) -> None:
        try:
            (manifest.root / MANIFEST_FILE).write_text(
                manifest.model_dump_json(indent=2) + "\n", encoding="utf-8"
            )
        except OSError as e:
            self.log.warning(f"Could not write backup manifest: {e}")
