"""
Fresh Setup — CLI entrypoint.

Usage:
    fresh-setup --help
    fresh-setup install-terminal --dry-run
    fresh-setup uninstall-miniforge --keep-config --force
    python -m freshsetup.main sync-r --source ~/fresh_setup/R/r_files
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from freshsetup import __version__
from freshsetup.core.observability.logging_config import setup_logging
from freshsetup.ui.cli.common import CONTEXT_SETTINGS, StrictGroup


@click.group(cls=StrictGroup, context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="fresh-setup")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug output.")
@click.option("--quiet", "-q", is_flag=True, help="Only show errors on the console.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Settings file (default: $FRESH_SETUP_CONFIG or ~/.config/fresh_setup/settings.yml).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, config_path: Path | None) -> None:
    """Fresh Setup — idempotent macOS bootstrap workflows."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path

    # ── Logging setup (console only until a workflow opens its log) ──
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("FRESH_SETUP_LOG_LEVEL", "INFO")
    ctx.obj["log_level"] = level

    setup_logging(level=level)


from freshsetup.ui.cli.miniforge import install_miniforge, uninstall_miniforge  # noqa: E402
from freshsetup.ui.cli.r_files import sync_r  # noqa: E402
from freshsetup.ui.cli.terminal import install_terminal, uninstall_terminal  # noqa: E402

cli.add_command(install_terminal)
cli.add_command(uninstall_terminal)
cli.add_command(install_miniforge)
cli.add_command(uninstall_miniforge)
cli.add_command(sync_r)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
