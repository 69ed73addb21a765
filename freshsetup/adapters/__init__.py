"""Adapters — bindings to the system tools workflows mutate through.

Public re-exports for convenient access.
"""

from freshsetup.adapters.base import Adapter, ExecutionContext
from freshsetup.adapters.mock import MockAdapter
from freshsetup.adapters.net.download import DownloadAdapter
from freshsetup.adapters.registry import AdapterRegistry
from freshsetup.adapters.shell.command import ShellCommandAdapter
from freshsetup.adapters.shell.config_editor import ConfigEditorAdapter
from freshsetup.adapters.shell.environment import EnvironmentAdapter
from freshsetup.adapters.shell.filesystem import FilesystemAdapter


def default_registry() -> AdapterRegistry:
    """Registry with every real adapter registered."""
    registry = AdapterRegistry()
    for adapter in (
        ShellCommandAdapter(),
        FilesystemAdapter(),
        ConfigEditorAdapter(),
        EnvironmentAdapter(),
        DownloadAdapter(),
    ):
        registry.register(adapter)
    return registry


__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ConfigEditorAdapter",
    "DownloadAdapter",
    "EnvironmentAdapter",
    "ExecutionContext",
    "FilesystemAdapter",
    "MockAdapter",
    "ShellCommandAdapter",
    "default_registry",
]
