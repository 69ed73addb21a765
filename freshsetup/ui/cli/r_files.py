"""
CLI command for syncing R configuration files.
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


@click.command("sync-r", cls=StrictCommand, context_settings=CONTEXT_SETTINGS)
@path_option("--source", "r_source", help="R files to copy (default: ~/fresh_setup/R/r_files).")
@path_option("--target", "r_target", help="Destination directory (default: ~/R).")
@workflow_options
@click.pass_context
def sync_r(
    ctx: click.Context,
    r_source: Path | None,
    r_target: Path | None,
    dry_run: bool,
    force: bool,
    no_backup: bool,
    as_json: bool,
) -> None:
    """Copy the R directory into the home directory."""
    execute(
        ctx,
        "sync-r",
        as_json,
        r_source=r_source,
        r_target=r_target,
        dry_run=dry_run,
        force=force,
        no_backup=no_backup,
    )
