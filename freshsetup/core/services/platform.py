"""
Platform detection — operating system and CPU architecture.

Read-only. Workflows declare which systems/architectures they support;
the orchestrator compares against ``detect_platform()`` before anything
else runs.
"""

from __future__ import annotations

import platform as _platform
from dataclasses import dataclass

# uname -m spellings -> the names installers use
_ARCH_MAP = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "arm64": "arm64",
    "aarch64": "arm64",
}


def normalize_arch(machine: str) -> str:
    """Map a raw machine string to ``x86_64``/``arm64`` (else lowercased as-is)."""
    machine = machine.strip().lower()
    return _ARCH_MAP.get(machine, machine)


@dataclass(frozen=True)
class PlatformInfo:
    """The running system, as workflows see it."""

    system: str        # "darwin", "linux", ...
    machine: str       # raw uname -m
    release: str = ""

    @property
    def arch(self) -> str:
        return normalize_arch(self.machine)

    @property
    def is_macos(self) -> bool:
        return self.system == "darwin"

    @property
    def display_name(self) -> str:
        names = {"darwin": "macOS", "linux": "Linux", "windows": "Windows"}
        return names.get(self.system, self.system or "unknown")


def detect_platform() -> PlatformInfo:
    """Probe the current interpreter's host."""
    return PlatformInfo(
        system=_platform.system().lower(),
        machine=_platform.machine(),
        release=_platform.release(),
    )
