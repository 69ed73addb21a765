"""
CLI commands for the terminal workflows.

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


@click.command("install-terminal", cls=StrictCommand, context_settings=CONTEXT_SETTINGS)
@path_option("--brewfile", help="Brewfile to bundle (default: ~/fresh_setup/hbrew_ohmyzsh/Brewfile).")
@path_option("--colors", "colors_dir", help="iTerm2 colour scheme directory (default: ~/iterm2/colors).")
@path_option("--fonts", "fonts_dir", help="Font directory (default: ~/Library/Fonts).")
@workflow_options
@click.pass_context
def install_terminal(
    ctx: click.Context,
    brewfile: Path | None,
    colors_dir: Path | None,
    fonts_dir: Path | None,
    dry_run: bool,
    force: bool,
    no_backup: bool,
    as_json: bool,
) -> None:
    """Install Homebrew, Oh My Zsh, Powerlevel10k, fonts, plugins and colours.

    Examples:

        fresh-setup install-terminal --dry-run

        fresh-setup install-terminal --brewfile ~/dotfiles/Brewfile --force
    """
    execute(
        ctx,
        "install-terminal",
        as_json,
        brewfile=brewfile,
        colors_dir=colors_dir,
        fonts_dir=fonts_dir,
        dry_run=dry_run,
        force=force,
        no_backup=no_backup,
    )


@click.command("uninstall-terminal", cls=StrictCommand, context_settings=CONTEXT_SETTINGS)
@click.option("--keep-homebrew", is_flag=True, help="Don't uninstall Homebrew or its packages.")
@click.option("--keep-fonts", is_flag=True, help="Don't remove downloaded fonts.")
@workflow_options
@click.pass_context
def uninstall_terminal(
    ctx: click.Context,
    keep_homebrew: bool,
    keep_fonts: bool,
    dry_run: bool,
    force: bool,
    no_backup: bool,
    as_json: bool,
) -> None:
    """Remove everything install-terminal set up."""
    execute(
        ctx,
        "uninstall-terminal",
        as_json,
        keep_homebrew=keep_homebrew,
        keep_fonts=keep_fonts,
        dry_run=dry_run,
        force=force,
        no_backup=no_backup,
    )
