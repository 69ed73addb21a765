"""
install-miniforge — download the Miniforge installer for this machine's
architecture, run it in batch mode and initialise conda/mamba for the
user's shell.
"""

from __future__ import annotations

from pathlib import Path

from freshsetup.core.models.backup import BackupSource
from freshsetup.core.models.config import RunConfiguration
from freshsetup.core.models.report import ExitCode
from freshsetup.core.models.target import DetectionSnapshot, InstallationTarget, TargetExpectation
from freshsetup.core.services.platform import PlatformInfo
from freshsetup.core.workflows import catalog
from freshsetup.core.workflows.base import (
    Step,
    Workflow,
    download,
    filesystem,
    shell,
    skip_if_exists,
    skip_if_missing,
)

NAME = "install-miniforge"
LOG_NAME = "mamba_install.log"


def _conflicts(conda: InstallationTarget, mamba: InstallationTarget, install_dir: InstallationTarget):
    def preflight(snapshot: DetectionSnapshot) -> list[str]:
        warnings = []
        for target in (conda, mamba):
            result = snapshot.results.get(target.name)
            if result and result.present:
                warnings.append(f"Found existing {target.command} installation: {result.location}")
        if snapshot.is_present(install_dir.name):
            warnings.append(f"Target directory already exists: {install_dir.path}")
        if warnings:
            warnings.append("Existing installations detected. This may cause conflicts.")
        return warnings

    return preflight


def build(config: RunConfiguration, platform: PlatformInfo) -> Workflow:
    home = config.home
    install_path = config.resolved_install_path
    installer_name = catalog.miniforge_installer_name(platform.arch)
    installer = config.resolved_installer_dir / installer_name
    conda_bin = install_path / "bin" / "conda"
    mamba_bin = install_path / "bin" / "mamba"
    shell_name = config.shell_name

    conda_cmd = InstallationTarget.for_command("conda command", "conda")
    mamba_cmd = InstallationTarget.for_command("mamba command", "mamba")
    install_dir = InstallationTarget.for_directory("Miniforge directory", install_path)
    conda_exe = InstallationTarget.for_executable(
        "conda", conda_bin, version_command=(str(conda_bin), "--version")
    )
    mamba_exe = InstallationTarget.for_executable(
        "mamba", mamba_bin, version_command=(str(mamba_bin), "--version")
    )

    installer_args = ["bash", str(installer), "-b", "-p", str(install_path)]
    if install_path.exists():
        # batch mode refuses an existing prefix unless asked to update it
        installer_args.append("-u")

    init_kept = "existing shell configuration (--no-init)" if config.no_init else None
    steps = [
        Step(
            name="download",
            description=f"Download Miniforge installer {installer_name}",
            action=download(
                f"{NAME}:download",
                catalog.MINIFORGE_RELEASE_URL + installer_name,
                installer,
                min_size_bytes=catalog.MINIFORGE_MIN_SIZE_BYTES,
            ),
            policy="fatal",
            exit_code=ExitCode.DOWNLOAD_FAILED,
            retry=config.retry,
            skip_when=skip_if_exists(conda_bin, "conda"),
            confirm="Re-download installer?",
            confirm_when=installer.exists,
        ),
        Step(
            name="install",
            description=f"Install Miniforge to {install_path}",
            action=shell(f"{NAME}:install", installer_args, capture=False),
            policy="fatal",
            skip_when=skip_if_exists(conda_bin, "conda"),
        ),
        Step(
            name="remove-installer",
            description="Clean up installer file",
            action=filesystem(f"{NAME}:remove-installer", "remove", installer),
            skip_when=skip_if_missing(installer),
            depends_on=("download",),
            keep_reason=f"installer file {installer} (--keep-installer)" if config.keep_installer else None,
        ),
    ]
    for exe in (conda_bin, mamba_bin):
        steps.append(
            Step(
                name=f"init:{exe.name}",
                description=f"Initialize {exe.name} for {shell_name}",
                action=shell(f"{NAME}:init:{exe.name}", [str(exe), "init", shell_name]),
                policy="fatal",
                exit_code=ExitCode.SHELL_INIT_FAILED,
                keep_reason=init_kept,
            )
        )

    shell_files = [catalog.under_home(home, p) for p in catalog.SHELL_FILES]
    return Workflow(
        name=NAME,
        title="Miniforge Installation",
        backup_prefix="miniforge",
        supported_arch=catalog.MINIFORGE_SUPPORTED_ARCH,
        targets=[conda_cmd, mamba_cmd, install_dir],
        preflight=_conflicts(conda_cmd, mamba_cmd, install_dir),
        preflight_prompt="Continue with installation anyway?",
        confirm_prompt=f"Proceed with Miniforge installation to {install_path}?",
        backup_sources=[
            *(BackupSource.of_path(p) for p in shell_files),
            BackupSource.of_path(home / ".condarc"),
        ],
        steps=steps,
        expectations=[
            TargetExpectation.present(install_dir),
            TargetExpectation.present(conda_exe),
            TargetExpectation.present(mamba_exe),
            *(
                TargetExpectation.present(
                    InstallationTarget.for_directory(f"{name} directory", install_path / name),
                    advisory=True,
                )
                for name in ("pkgs", "envs", "bin", "lib")
            ),
        ],
        next_steps=_next_steps(install_path),
    )


def _next_steps(install_path: Path) -> list[str]:
    return [
        f"Miniforge is installed at {install_path}",
        "Restart your terminal or run: exec $SHELL",
        "Verify installation: conda --version && mamba --version",
        "Create your first environment: mamba create -n myenv python=3.11",
        "Activate environment: conda activate myenv",
    ]
