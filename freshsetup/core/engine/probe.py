"""
State probe — read-only detection of installation targets.

Commands are resolved on the current search path; filesystem targets
are checked for existence and type. Nothing here mutates anything,
so the same probe serves both Detecting and Verifying.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from collections.abc import Iterable

from freshsetup.core.models.target import DetectionSnapshot, InstallationTarget, ProbeResult

logger = logging.getLogger(__name__)


class StateProbe:
    """Present/Absent detection for ``InstallationTarget``s."""

    def __init__(self, version_timeout: int = 10):
        self.version_timeout = version_timeout

    def detect(self, target: InstallationTarget) -> ProbeResult:
        location = self._locate(target)
        return ProbeResult(target=target.name, present=location is not None, location=location)

    def detect_many(self, targets: Iterable[InstallationTarget]) -> DetectionSnapshot:
        snapshot = DetectionSnapshot()
        for target in targets:
            snapshot.results[target.name] = self.detect(target)
        return snapshot

    def version(self, target: InstallationTarget) -> str | None:
        """First line of the target's version command, or None."""
        if not target.version_command:
            return None
        try:
            result = subprocess.run(
                list(target.version_command),
                capture_output=True,
                text=True,
                timeout=self.version_timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("Version probe for %s failed: %s", target.name, e)
            return None
        if result.returncode != 0:
            return None
        lines = (result.stdout or result.stderr).strip().splitlines()
        return lines[0].strip() if lines else None

    @staticmethod
    def _locate(target: InstallationTarget) -> str | None:
        if target.kind == "command":
            return shutil.which(target.command or "")

        path = target.path
        assert path is not None
        if target.kind == "file":
            found = path.is_file()
        elif target.kind == "directory":
            found = path.is_dir()
        elif target.kind == "executable":
            found = path.is_file() and os.access(path, os.X_OK)
        else:
            found = path.exists() or path.is_symlink()
        return str(path) if found else None
