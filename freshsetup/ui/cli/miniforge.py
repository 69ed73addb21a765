"""
CLI commands for Miniforge (conda/mamba).

Thin wrappers over ``freshsetup.core.use_cases.run``.
"""

from __future__ import annotations

from pathlib import Path

import click

from freshsetup.ui.cli.common import (
    CONTEXT_SETTINGS,
    StrictCommand,
    execute,
    path_option,
    workflow_options,
)


@click.command("install-miniforge", cls=StrictCommand, context_settings=CONTEXT_SETTINGS)
@path_option("--install-path", help="Installation directory (default: ~/miniforge3).")
@click.option("--no-init", is_flag=True, help="Skip conda/mamba shell initialisation.")
@click.option("--keep-installer", is_flag=True, help="Keep the installer file afterwards.")
@workflow_options
@click.pass_context
def install_miniforge(
    ctx: click.Context,
    install_path: Path | None,
    no_init: bool,
    keep_installer: bool,
    dry_run: bool,
    force: bool,
    no_backup: bool,
    as_json: bool,
) -> None:
    """Install Miniforge with mamba for this Mac's architecture."""
    execute(
        ctx,
        "install-miniforge",
        as_json,
        install_path=install_path,
        no_init=no_init,
        keep_installer=keep_installer,
        dry_run=dry_run,
        force=force,
        no_backup=no_backup,
    )


@click.command("uninstall-miniforge", cls=StrictCommand, context_settings=CONTEXT_SETTINGS)
@click.option("--keep-cache", is_flag=True, help="Don't remove conda/mamba cache directories.")
@click.option("--keep-config", is_flag=True, help="Don't remove .condarc, .mambarc and config dirs.")
@workflow_options
@click.pass_context
def uninstall_miniforge(
    ctx: click.Context,
    keep_cache: bool,
    keep_config: bool,
    dry_run: bool,
    force: bool,
    no_backup: bool,
    as_json: bool,
) -> None:
    """Remove every Anaconda/Miniconda/Miniforge/Mamba installation."""
    execute(
        ctx,
        "uninstall-miniforge",
        as_json,
        keep_cache=keep_cache,
        keep_config=keep_config,
        dry_run=dry_run,
        force=force,
        no_backup=no_backup,
    )
