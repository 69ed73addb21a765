"""
RunConfiguration — the immutable per-invocation settings.

Built exactly once from parsed CLI flags, the optional settings file
and the process environment, then handed to every engine component.
Nothing in the engine reads flags from anywhere else.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class RetryPolicy(BaseModel):
    """How many times to try an operation and how long to wait between tries."""

    model_config = ConfigDict(frozen=True)

    max_attempts: int = Field(default=3, ge=1)
    backoff_seconds: float = Field(default=5.0, ge=0)


# brew bundle is slow to recover from transient failures
BUNDLE_RETRY = RetryPolicy(max_attempts=3, backoff_seconds=10.0)


def _default_home() -> Path:
    return Path.home()


def _default_shell_name() -> str:
    return Path(os.environ.get("SHELL", "/bin/zsh")).name or "zsh"


class RunConfiguration(BaseModel):
    """Everything a workflow run needs to know, fixed at process start."""

    model_config = ConfigDict(frozen=True)

    workflow: str = ""
    home: Path = Field(default_factory=_default_home)
    shell_name: str = Field(default_factory=_default_shell_name)

    # ── Behaviour flags ──────────────────────────────────────────
    dry_run: bool = False
    force: bool = False
    no_backup: bool = False
    keep_cache: bool = False
    keep_config: bool = False
    keep_installer: bool = False
    keep_homebrew: bool = False
    keep_fonts: bool = False
    no_init: bool = False

    # ── Paths (None = derive from home) ──────────────────────────
    install_path: Path | None = None
    installer_dir: Path | None = None
    brewfile: Path | None = None
    colors_dir: Path | None = None
    fonts_dir: Path | None = None
    zsh_custom: Path | None = None
    r_source: Path | None = None
    r_target: Path | None = None

    # ── Catalog overrides (empty = built-in lists) ───────────────
    zsh_plugins: tuple[str, ...] = ()
    color_schemes: tuple[str, ...] = ()

    retry: RetryPolicy = Field(default_factory=RetryPolicy)
    log_file: Path | None = None

    # ── Resolved paths ───────────────────────────────────────────

    @property
    def resolved_install_path(self) -> Path:
        return self.install_path or self.home / "miniforge3"

    @property
    def resolved_installer_dir(self) -> Path:
        return self.installer_dir or Path.cwd()

    @property
    def resolved_brewfile(self) -> Path:
        return self.brewfile or self.home / "fresh_setup" / "hbrew_ohmyzsh" / "Brewfile"

    @property
    def resolved_colors_dir(self) -> Path:
        return self.colors_dir or self.home / "iterm2" / "colors"

    @property
    def resolved_fonts_dir(self) -> Path:
        return self.fonts_dir or self.home / "Library" / "Fonts"

    @property
    def resolved_zsh_custom(self) -> Path:
        if self.zsh_custom:
            return self.zsh_custom
        return self.home / ".oh-my-zsh" / "custom"

    @property
    def resolved_r_source(self) -> Path:
        return self.r_source or self.home / "fresh_setup" / "R" / "r_files"

    @property
    def resolved_r_target(self) -> Path:
        return self.r_target or self.home / "R"
