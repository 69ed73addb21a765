"""
Shared CLI plumbing — strict argument handling, the flags every workflow
takes, and rendering of the final report.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from freshsetup.core.config.loader import ConfigError
from freshsetup.core.models.report import ExitCode, WorkflowReport

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


# ── Strict parsing ──────────────────────────────────────────────


class _StrictMixin:
    """Report usage errors (unknown flag, missing value) as BAD_ARGUMENTS."""

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            e.exit_code = int(ExitCode.BAD_ARGUMENTS)
            raise


class StrictCommand(_StrictMixin, click.Command):
    pass


class StrictGroup(_StrictMixin, click.Group):
    command_class = StrictCommand

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            e.exit_code = int(ExitCode.BAD_ARGUMENTS)
            raise


# ── Options ─────────────────────────────────────────────────────


def workflow_options(fn: Callable) -> Callable:
    """Flags shared by every workflow command."""
    options = [
        click.option("--dry-run", is_flag=True, help="Show what would be done without making changes."),
        click.option("--force", is_flag=True, help="Skip confirmation prompts."),
        click.option("--no-backup", is_flag=True, help="Don't back up files before changing them."),
        click.option("--json-output", "--json", "as_json", is_flag=True, help="Output the report as JSON."),
    ]
    for option in reversed(options):
        fn = option(fn)
    return fn


def path_option(*decls: str, help: str) -> Callable:
    return click.option(*decls, type=click.Path(path_type=Path), default=None, help=help)


# ── Execution ───────────────────────────────────────────────────


def execute(ctx: click.Context, name: str, as_json: bool, **flags: Any) -> None:
    """Run a workflow and exit with its exit code."""
    from freshsetup.core.use_cases.run import run_workflow

    obj = ctx.find_object(dict) or {}
    try:
        report = run_workflow(
            name,
            config_path=obj.get("config_path"),
            console_level=obj.get("log_level", "INFO"),
            **flags,
        )
    except ConfigError as e:
        if as_json:
            click.echo(json.dumps({"error": str(e)}, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(int(ExitCode.BAD_ARGUMENTS))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        render_report(report)
    sys.exit(int(report.exit_code))


def render_report(report: WorkflowReport) -> None:
    """Human summary of a finished run."""
    click.echo()
    if report.ok:
        label = "simulated" if report.dry_run else "completed"
        click.secho(f"✅ {report.workflow} {label}", fg="green", bold=True)
    else:
        click.secho(
            f"❌ {report.workflow} failed (exit code {int(report.exit_code)})", fg="red", bold=True
        )
        if report.error:
            click.echo(f"   {report.error}")

    click.echo(
        f"   Steps: {report.steps_run} run, {report.steps_skipped} skipped, "
        f"{report.steps_failed} failed"
    )

    verification = report.verification
    if verification is not None and not verification.simulated:
        if verification.passed:
            click.secho("   Verification passed", fg="green")
        else:
            click.secho(f"   Verification found {verification.issues} issue(s):", fg="yellow")
            for entry in verification.entries:
                if not entry.ok and not entry.advisory:
                    click.echo(f"     • {entry.target}: {entry.actual}, expected {entry.expected}")

    if report.backup_path:
        click.echo(f"   💾 Backup: {report.backup_path}")
    if report.log_file:
        click.echo(f"   📄 Log: {report.log_file}")

    if report.next_steps:
        click.echo()
        click.secho("   Next steps:", fg="cyan", bold=True)
        for i, hint in enumerate(report.next_steps, 1):
            click.echo(f"     {i}. {hint}")
    click.echo()
