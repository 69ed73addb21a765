"""
sync-r — copy the R configuration tree from the setup checkout into the
home directory, optionally placing its top-level dotfiles in ``~``.
"""

from __future__ import annotations

from pathlib import Path

from freshsetup.core.engine.verify import Check
from freshsetup.core.models.backup import BackupSource
from freshsetup.core.models.config import RunConfiguration
from freshsetup.core.models.target import InstallationTarget, TargetExpectation
from freshsetup.core.services.platform import PlatformInfo
from freshsetup.core.workflows.base import Step, Workflow, filesystem, skip_if_missing

NAME = "sync-r"
LOG_NAME = "move_r_files.log"


def count_files(root: Path) -> int:
    """Number of regular files below ``root`` (0 when it doesn't exist)."""
    if not root.is_dir():
        return 0
    return sum(1 for p in root.rglob("*") if p.is_file())


def _file_count_check(source: Path, target: Path) -> Check:
    def compare() -> tuple[bool, str]:
        source_count = count_files(source)
        target_count = count_files(target)
        detail = f"source files: {source_count}, target files: {target_count}"
        return source_count == target_count, detail

    return Check(name="R file count", fn=compare)


def build(config: RunConfiguration, platform: PlatformInfo) -> Workflow:
    source = config.resolved_r_source
    target = config.resolved_r_target
    target_dir = InstallationTarget.for_directory("R directory", target)

    return Workflow(
        name=NAME,
        title="R Files Setup",
        backup_prefix="r_files",
        requires_macos=False,
        targets=[target_dir],
        prerequisites=[InstallationTarget.for_directory("R source directory", source)],
        confirm_prompt="Proceed with R directory setup?",
        backup_sources=[BackupSource.of_path(target)],
        steps=[
            Step(
                name="copy-tree",
                description=f"Copy R directory {source} to {target}",
                action=filesystem(f"{NAME}:copy-tree", "replace_tree", target, source=source),
                policy="fatal",
                confirm="Overwrite existing R directory?",
                confirm_when=target.exists,
            ),
            Step(
                name="dotfiles",
                description=f"Copy R dotfiles to home directory {config.home}",
                action=filesystem(f"{NAME}:dotfiles", "copy_dotfiles", config.home, source=target),
                skip_when=skip_if_missing(target, "R directory"),
                depends_on=("copy-tree",),
                confirm="Do you want to also copy these R dotfiles into your home directory?",
            ),
        ],
        expectations=[TargetExpectation.present(target_dir)],
        checks=[_file_count_check(source, target)],
        next_steps=[
            f"R files are available in {target}",
            "Launch R or RStudio to verify your setup",
            "Review any custom settings that may need adjustment",
        ],
    )
