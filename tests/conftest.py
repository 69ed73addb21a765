"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from freshsetup.adapters.mock import MockAdapter
from freshsetup.adapters.registry import AdapterRegistry
from freshsetup.core.models.config import RunConfiguration
from freshsetup.core.observability.run_log import RunLogger
from freshsetup.core.services.platform import PlatformInfo

ADAPTER_NAMES = ("shell", "filesystem", "config", "environment", "download")


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """Undo ``setup_logging`` side effects (handlers, open log files)."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def fake_home(tmp_path: Path) -> Path:
    """Return an empty directory standing in for the user's home."""
    home = tmp_path / "home"
    home.mkdir()
    return home


@pytest.fixture
def macos() -> PlatformInfo:
    return PlatformInfo(system="darwin", machine="arm64", release="23.0.0")


@pytest.fixture
def make_config(fake_home: Path):
    """Factory for RunConfigurations rooted at ``fake_home``."""

    def _make(**overrides) -> RunConfiguration:
        overrides.setdefault("home", fake_home)
        overrides.setdefault("shell_name", "zsh")
        return RunConfiguration(**overrides)

    return _make


@pytest.fixture
def run_log() -> RunLogger:
    return RunLogger()


@pytest.fixture
def mock_registry() -> tuple[AdapterRegistry, dict[str, MockAdapter]]:
    """Registry where every adapter name the workflows use is a mock."""
    registry = AdapterRegistry()
    mocks = {name: MockAdapter(adapter_name=name) for name in ADAPTER_NAMES}
    for mock in mocks.values():
        registry.register(mock)
    return registry, mocks
