"""
install-terminal — Homebrew, Brewfile bundle, Oh My Zsh, Powerlevel10k,
MesloLGS NF fonts, zsh plugins and iTerm2 colour schemes.

Every step is guarded by a probe of its own result, so a second run on
an already provisioned machine skips everything and only re-verifies.
"""

from __future__ import annotations

import os
from pathlib import Path

from freshsetup.core.models.backup import BackupSource
from freshsetup.core.models.config import BUNDLE_RETRY, RunConfiguration
from freshsetup.core.models.report import ExitCode
from freshsetup.core.models.target import InstallationTarget, TargetExpectation
from freshsetup.core.services.platform import PlatformInfo
from freshsetup.core.workflows import catalog
from freshsetup.core.workflows.base import (
    Step,
    Workflow,
    download,
    edit_config,
    environment,
    filesystem,
    first_reason,
    shell,
    skip_if_command,
    skip_if_exists,
)

NAME = "install-terminal"
LOG_NAME = "terminal_setup.log"

HOMEBREW_PATH_ENTRIES = ("/opt/homebrew/bin", "/opt/homebrew/sbin")


def _skip_unless_arm64(platform: PlatformInfo):
    def check() -> str | None:
        if platform.arch != "arm64":
            return f"Homebrew lives on the default PATH on {platform.arch}"
        return None

    return check


def _skip_if_on_path(entries: tuple[str, ...]):
    def check() -> str | None:
        current = os.environ.get("PATH", "").split(os.pathsep)
        if all(e in current for e in entries):
            return "Homebrew already on PATH"
        return None

    return check


def build(config: RunConfiguration, platform: PlatformInfo) -> Workflow:
    home = config.home
    zshrc = home / ".zshrc"
    zprofile = home / ".zprofile"
    brewfile = config.resolved_brewfile
    colors_dir = config.resolved_colors_dir
    fonts_dir = config.resolved_fonts_dir
    zsh_custom = config.resolved_zsh_custom
    theme_dir = zsh_custom / "themes" / "powerlevel10k"
    plugins = config.zsh_plugins or catalog.ZSH_PLUGINS
    schemes = config.color_schemes or catalog.COLOR_SCHEMES
    retry = config.retry

    brew = InstallationTarget.for_command("Homebrew", "brew", version_command=("brew", "--version"))
    oh_my_zsh = InstallationTarget.for_directory("Oh My Zsh", home / ".oh-my-zsh")
    theme = InstallationTarget.for_directory("Powerlevel10k theme", theme_dir)

    homebrew_env = {"NONINTERACTIVE": "1"} if config.force else {}
    steps: list[Step] = [
        Step(
            name="homebrew",
            description="Install Homebrew",
            action=shell(
                f"{NAME}:homebrew",
                f'/bin/bash -c "$(curl -fsSL {catalog.HOMEBREW_INSTALL_URL})"',
                capture=False,
                env=homebrew_env,
            ),
            policy="fatal",
            exit_code=ExitCode.HOMEBREW_FAILED,
            retry=retry,
            skip_when=skip_if_command("brew", "Homebrew"),
        ),
        Step(
            name="homebrew-path",
            description="Add Homebrew to PATH for this session",
            action=environment(f"{NAME}:homebrew-path", prepend=list(HOMEBREW_PATH_ENTRIES)),
            skip_when=first_reason(_skip_unless_arm64(platform), _skip_if_on_path(HOMEBREW_PATH_ENTRIES)),
        ),
        Step(
            name="homebrew-shellenv",
            description="Add Homebrew shellenv to ~/.zprofile",
            action=edit_config(
                f"{NAME}:homebrew-shellenv",
                zprofile,
                [{"op": "append_line", "line": catalog.BREW_SHELLENV_LINE}],
                create=True,
            ),
            skip_when=_skip_unless_arm64(platform),
        ),
        Step(
            name="brew-bundle",
            description=f"Install Brewfile packages from {brewfile}",
            action=shell(
                f"{NAME}:brew-bundle",
                ["brew", "bundle", f"--file={brewfile}"],
                capture=False,
            ),
            retry=BUNDLE_RETRY,
        ),
        Step(
            name="oh-my-zsh",
            description="Install Oh My Zsh",
            action=shell(
                f"{NAME}:oh-my-zsh",
                f'sh -c "$(curl -fsSL {catalog.OH_MY_ZSH_INSTALL_URL})" "" --unattended',
                capture=False,
            ),
            policy="fatal",
            exit_code=ExitCode.OH_MY_ZSH_FAILED,
            retry=retry,
            skip_when=skip_if_exists(home / ".oh-my-zsh", "Oh My Zsh"),
        ),
        Step(
            name="powerlevel10k",
            description="Install Powerlevel10k theme",
            action=shell(
                f"{NAME}:powerlevel10k",
                ["git", "clone", "--depth=1", catalog.POWERLEVEL10K_REPO, str(theme_dir)],
            ),
            policy="fatal",
            exit_code=ExitCode.THEME_FAILED,
            retry=retry,
            skip_when=skip_if_exists(theme_dir, "Powerlevel10k theme"),
        ),
        Step(
            name="zsh-theme",
            description="Set Powerlevel10k as ZSH_THEME in ~/.zshrc",
            action=edit_config(
                f"{NAME}:zsh-theme",
                zshrc,
                [{"op": "set_assignment", "name": "ZSH_THEME", "value": catalog.POWERLEVEL10K_THEME}],
            ),
        ),
        Step(
            name="colors-dir",
            description=f"Create colour scheme directory {colors_dir}",
            action=filesystem(f"{NAME}:colors-dir", "mkdir", colors_dir),
            skip_when=skip_if_exists(colors_dir),
        ),
    ]

    for scheme in schemes:
        dest = colors_dir / catalog.color_scheme_file_name(scheme)
        steps.append(
            Step(
                name=f"color:{scheme}",
                description=f"Download colour scheme '{scheme}'",
                action=download(f"{NAME}:color:{scheme}", catalog.color_scheme_url(scheme), dest),
                policy="fatal",
                exit_code=ExitCode.DOWNLOAD_FAILED,
                retry=retry,
                skip_when=skip_if_exists(dest, f"Colour scheme '{scheme}'"),
            )
        )

    steps.append(
        Step(
            name="fonts-dir",
            description=f"Create font directory {fonts_dir}",
            action=filesystem(f"{NAME}:fonts-dir", "mkdir", fonts_dir),
            skip_when=skip_if_exists(fonts_dir),
        )
    )
    for font in catalog.FONTS:
        dest = fonts_dir / catalog.font_file_name(font)
        steps.append(
            Step(
                name=f"font:{font}",
                description=f"Download font '{font}'",
                action=download(f"{NAME}:font:{font}", catalog.font_url(font), dest),
                retry=retry,
                skip_when=skip_if_exists(dest, f"Font '{font}'"),
            )
        )

    for plugin in plugins:
        plugin_dir = zsh_custom / "plugins" / plugin
        steps.append(
            Step(
                name=f"plugin:{plugin}",
                description=f"Install zsh plugin '{plugin}'",
                action=shell(
                    f"{NAME}:plugin:{plugin}",
                    ["git", "clone", catalog.ZSH_PLUGIN_REPO_BASE + plugin, str(plugin_dir)],
                ),
                policy="fatal",
                exit_code=ExitCode.PLUGIN_FAILED,
                retry=retry,
                skip_when=skip_if_exists(plugin_dir, f"Plugin '{plugin}'"),
            )
        )
    for plugin in plugins:
        steps.append(
            Step(
                name=f"plugin-zshrc:{plugin}",
                description=f"Add zsh plugin '{plugin}' to ~/.zshrc",
                action=edit_config(
                    f"{NAME}:plugin-zshrc:{plugin}",
                    zshrc,
                    [{"op": "add_to_array", "name": "plugins", "item": plugin}],
                ),
            )
        )

    return Workflow(
        name=NAME,
        title="Terminal Setup",
        backup_prefix="terminal_setup",
        targets=[brew, oh_my_zsh, theme],
        prerequisites=[InstallationTarget.for_file("Brewfile", brewfile)],
        backup_sources=[BackupSource.of_path(zshrc), BackupSource.of_path(zprofile)],
        steps=steps,
        expectations=[
            TargetExpectation.present(brew),
            TargetExpectation.present(oh_my_zsh),
            TargetExpectation.present(theme),
        ],
        next_steps=_next_steps(colors_dir),
    )


def _next_steps(colors_dir: Path) -> list[str]:
    scheme = colors_dir / catalog.color_scheme_file_name("IC_Orange_PPL")
    return [
        "Restart iTerm2 or open a new terminal window",
        "In iTerm2 go to Preferences > Profiles > Text and set the font to 'MesloLGS NF'",
        f"Import the IC_Orange_PPL colour scheme: Profiles > Colors > Color Presets > Import, select {scheme}",
        "Run 'p10k configure' to customize your prompt",
    ]
