"""
uninstall-miniforge — remove every Anaconda/Miniconda/Miniforge/Mamba
trace: installation prefixes, app bundles, configuration, caches, shell
initialisation blocks, installer receipts, stray pip packages and the
variables of the running session.
"""

from __future__ import annotations

import re
from pathlib import Path

from freshsetup.core.models.backup import BackupSource
from freshsetup.core.models.config import RunConfiguration
from freshsetup.core.models.target import DetectionSnapshot, InstallationTarget, TargetExpectation
from freshsetup.core.services.platform import PlatformInfo
from freshsetup.core.workflows import catalog
from freshsetup.core.workflows.base import (
    Step,
    Workflow,
    edit_config,
    environment,
    filesystem,
    first_reason,
    shell,
    skip_if_missing,
    skip_unless_command,
)

NAME = "uninstall-miniforge"
LOG_NAME = "miniforge_uninstall.log"


def _nothing_detected(names: list[str]):
    def preflight(snapshot: DetectionSnapshot) -> list[str]:
        if any(snapshot.is_present(n) for n in names):
            return []
        return ["No Anaconda/Mamba installations detected"]

    return preflight


def _removal(step: str, description: str, path: Path, **kwargs) -> Step:
    return Step(
        name=step,
        description=description,
        action=filesystem(f"{NAME}:{step}", "remove", path),
        skip_when=skip_if_missing(path),
        **kwargs,
    )


def _receipts_command() -> list[str]:
    names: list[str] = []
    for pattern in catalog.RECEIPT_NAME_PATTERNS:
        names += ["-o", "-name", pattern] if names else ["-name", pattern]
    return ["find", str(catalog.SYSTEM_RECEIPTS_DIR), "(", *names, ")", "-type", "f", "-delete"]


def _shell_cleanup_edits() -> list[dict[str, object]]:
    edits: list[dict[str, object]] = [
        {"op": "remove_block", "start": re.escape(start), "end": re.escape(end)}
        for start, end in catalog.CONDA_INIT_BLOCKS
    ]
    edits.append({"op": "remove_lines", "patterns": list(catalog.CONDA_LINE_PATTERNS)})
    return edits


def build(config: RunConfiguration, platform: PlatformInfo) -> Workflow:
    home = config.home
    install_dirs = [catalog.under_home(home, p) for p in catalog.CONDA_PATHS]
    config_files = [catalog.under_home(home, p) for p in catalog.CONDA_CONFIG_FILES]
    config_dirs = [catalog.under_home(home, p) for p in catalog.CONDA_CONFIG_DIRS]
    cache_dirs = [catalog.under_home(home, p) for p in catalog.CONDA_CACHE_DIRS]
    shell_files = [catalog.under_home(home, p) for p in catalog.SHELL_FILES]
    receipts = [catalog.under_home(home, p) for p in catalog.CONDA_USER_RECEIPTS]

    conda_cmd = InstallationTarget.for_command("conda command", "conda")
    mamba_cmd = InstallationTarget.for_command("mamba command", "mamba")
    install_targets = [InstallationTarget.for_directory(f"Installation {p}", p) for p in install_dirs]
    config_targets = [
        *(InstallationTarget.for_file(f"Configuration file {p.name}", p) for p in config_files),
        *(InstallationTarget.for_directory(f"Configuration directory {p.name}", p) for p in config_dirs),
    ]
    cache_targets = [InstallationTarget.for_directory(f"Cache {p}", p) for p in cache_dirs]

    config_kept = "configuration files (--keep-config)" if config.keep_config else None
    cache_kept = "cache directories (--keep-cache)" if config.keep_cache else None

    steps: list[Step] = [
        Step(
            name="anaconda-clean-install",
            description="Install anaconda-clean",
            action=shell(
                f"{NAME}:anaconda-clean-install", ["mamba", "install", "anaconda-clean", "--yes"]
            ),
            skip_when=first_reason(skip_unless_command("conda"), skip_unless_command("mamba")),
        ),
        Step(
            name="anaconda-clean",
            description="Run anaconda-clean",
            action=shell(f"{NAME}:anaconda-clean", ["anaconda-clean", "--yes"]),
            skip_when=skip_unless_command("conda"),
        ),
    ]
    for path in install_dirs:
        steps.append(
            _removal(f"install-dir:{path}", f"Remove installation: {path}", path, policy="fatal")
        )
    for path in catalog.CONDA_APP_DIRS:
        steps.append(_removal(f"app:{path.name}", f"Remove application: {path.name}", path))
    for path in [*config_files, *config_dirs]:
        steps.append(
            _removal(
                f"config:{path.name}",
                f"Remove configuration: {path.name}",
                path,
                keep_reason=config_kept,
                depends_on=("anaconda-clean",),
            )
        )
    for path in cache_dirs:
        steps.append(
            _removal(f"cache:{path}", f"Remove cache directory: {path}", path, keep_reason=cache_kept)
        )
    for path in shell_files:
        steps.append(
            Step(
                name=f"shell-config:{path.name}",
                description=f"Clean conda/mamba configuration from {path.name}",
                action=edit_config(f"{NAME}:shell-config:{path.name}", path, _shell_cleanup_edits()),
                skip_when=skip_if_missing(path),
            )
        )
    for path in receipts:
        steps.append(_removal(f"receipt:{path.name}", f"Remove user receipt: {path.name}", path))

    steps += [
        Step(
            name="system-receipts",
            description="Remove system receipts for anaconda/conda/mamba",
            action=shell(f"{NAME}:system-receipts", _receipts_command(), sudo=True, capture=False),
            skip_when=skip_if_missing(catalog.SYSTEM_RECEIPTS_DIR),
        ),
        Step(
            name="pip-packages",
            description="Remove conda/mamba related Python packages",
            action=shell(
                f"{NAME}:pip-packages",
                ["python3", "-m", "pip", "uninstall", "-y", *catalog.CONDA_PIP_PACKAGES],
            ),
            skip_when=skip_unless_command("python3"),
        ),
        Step(
            name="environment",
            description="Clean PATH and conda/mamba environment variables",
            action=environment(
                f"{NAME}:environment",
                unset=list(catalog.CONDA_ENV_VARS),
                path_patterns=list(catalog.CONDA_PATH_PATTERNS),
            ),
        ),
    ]

    plan_notes = [
        "This will remove:",
        "  - All Anaconda/Miniconda/Miniforge installations",
        "  - All conda environments and packages",
        "  - Mamba and related tools",
    ]
    if not config.keep_config:
        plan_notes.append("  - Configuration files (.condarc, .mambarc)")
    if not config.keep_cache:
        plan_notes.append("  - Cache directories")
    plan_notes += ["  - Shell configuration modifications", "  - Installer receipts and logs"]

    def kept_or_absent(target: InstallationTarget, kept: bool) -> TargetExpectation:
        return TargetExpectation.preserve(target) if kept else TargetExpectation.absent(target)

    detected = [conda_cmd, mamba_cmd, *install_targets]
    return Workflow(
        name=NAME,
        title="Miniforge Uninstall",
        backup_prefix="miniforge_uninstall",
        targets=[*detected, *config_targets],
        preflight=_nothing_detected([t.name for t in detected]),
        preflight_prompt="Continue with cleanup anyway?",
        confirm_prompt="Do you want to proceed with the uninstall?",
        plan_notes=plan_notes,
        backup_sources=[
            *(BackupSource.of_path(p, group="config") for p in config_files),
            *(BackupSource.of_path(p, group="shell") for p in shell_files),
            BackupSource.of_command("conda_environment_names", ("conda", "env", "list")),
            BackupSource.of_command("conda_base_packages", ("conda", "list")),
        ],
        steps=steps,
        expectations=[
            TargetExpectation.absent(conda_cmd),
            TargetExpectation.absent(mamba_cmd),
            *(TargetExpectation.absent(t) for t in install_targets),
            *(kept_or_absent(t, config.keep_config) for t in config_targets),
            *(kept_or_absent(t, config.keep_cache) for t in cache_targets),
        ],
        next_steps=[
            "Close all terminal windows and open a new session (or run: exec zsh)",
            "Check: conda --version and mamba --version should report 'command not found'",
            "Update Python interpreter settings in IDEs that pointed at conda",
            "For a fresh Python consider: brew install python, then python3 -m venv myenv",
        ],
    )
