"""
uninstall-terminal — remove what install-terminal put in place.

Removals of nested artifacts (theme and plugin directories inside
``~/.oh-my-zsh``) carry no skip predicate: the parent removal may
already have taken them, and the filesystem adapter treats an absent
path as done.
"""

from __future__ import annotations

from freshsetup.core.models.backup import BackupSource
from freshsetup.core.models.config import RunConfiguration
from freshsetup.core.models.target import DetectionSnapshot, InstallationTarget, TargetExpectation
from freshsetup.core.services.platform import PlatformInfo
from freshsetup.core.workflows import catalog
from freshsetup.core.workflows.base import (
    Step,
    Workflow,
    edit_config,
    filesystem,
    first_reason,
    shell,
    skip_if_exists,
    skip_if_missing,
    skip_unless_command,
)

NAME = "uninstall-terminal"
LOG_NAME = "terminal_uninstall.log"

PLUGINS_BLOCK = {"op": "remove_block", "start": r"plugins=\(", "end": r"\)"}


def _nothing_detected(names: list[str]):
    def preflight(snapshot: DetectionSnapshot) -> list[str]:
        if any(snapshot.is_present(n) for n in names):
            return []
        return ["No terminal setup components detected"]

    return preflight


def build(config: RunConfiguration, platform: PlatformInfo) -> Workflow:
    home = config.home
    zshrc = home / ".zshrc"
    zprofile = home / ".zprofile"
    p10k_config = home / ".p10k.zsh"
    oh_my_zsh_dir = home / ".oh-my-zsh"
    zsh_custom = config.resolved_zsh_custom
    theme_dir = zsh_custom / "themes" / "powerlevel10k"
    colors_dir = config.resolved_colors_dir
    fonts_dir = config.resolved_fonts_dir
    brewfile = config.resolved_brewfile
    plugins = config.zsh_plugins or catalog.ZSH_PLUGINS
    schemes = config.color_schemes or catalog.COLOR_SCHEMES
    rc_files = (zshrc, zprofile)

    oh_my_zsh = InstallationTarget.for_directory("Oh My Zsh", oh_my_zsh_dir)
    theme = InstallationTarget.for_directory("Powerlevel10k theme", theme_dir)
    p10k = InstallationTarget.for_file("Powerlevel10k config", p10k_config)
    brew = InstallationTarget.for_command("Homebrew", "brew")
    plugin_targets = [
        InstallationTarget.for_directory(f"Plugin {p}", zsh_custom / "plugins" / p) for p in plugins
    ]
    scheme_targets = [
        InstallationTarget.for_file(
            f"Colour scheme {s}", colors_dir / catalog.color_scheme_file_name(s)
        )
        for s in schemes
    ]
    font_targets = [
        InstallationTarget.for_file(f"Font {f}", fonts_dir / catalog.font_file_name(f))
        for f in catalog.FONTS
    ]

    steps: list[Step] = [
        Step(
            name="oh-my-zsh",
            description="Remove Oh My Zsh directory",
            action=filesystem(f"{NAME}:oh-my-zsh", "remove", oh_my_zsh_dir),
            policy="fatal",
            skip_when=skip_if_missing(oh_my_zsh_dir, "Oh My Zsh"),
        ),
    ]
    for rc in rc_files:
        steps.append(
            Step(
                name=f"oh-my-zsh-config:{rc.name}",
                description=f"Clean Oh My Zsh configuration from {rc}",
                action=edit_config(
                    f"{NAME}:oh-my-zsh-config:{rc.name}",
                    rc,
                    [
                        {"op": "remove_lines", "patterns": list(catalog.OH_MY_ZSH_LINE_PATTERNS)},
                        PLUGINS_BLOCK,
                    ],
                ),
            )
        )

    steps += [
        Step(
            name="powerlevel10k",
            description="Remove Powerlevel10k theme directory",
            action=filesystem(f"{NAME}:powerlevel10k", "remove", theme_dir),
            policy="fatal",
        ),
        Step(
            name="p10k-config",
            description="Remove Powerlevel10k configuration",
            action=filesystem(f"{NAME}:p10k-config", "remove", p10k_config),
            skip_when=skip_if_missing(p10k_config),
        ),
    ]
    for rc in rc_files:
        steps.append(
            Step(
                name=f"p10k-lines:{rc.name}",
                description=f"Clean Powerlevel10k configuration from {rc}",
                action=edit_config(
                    f"{NAME}:p10k-lines:{rc.name}",
                    rc,
                    [{"op": "remove_lines", "patterns": list(catalog.P10K_LINE_PATTERNS)}],
                ),
            )
        )

    for plugin in plugins:
        steps.append(
            Step(
                name=f"plugin:{plugin}",
                description=f"Remove plugin: {plugin}",
                action=filesystem(f"{NAME}:plugin:{plugin}", "remove", zsh_custom / "plugins" / plugin),
            )
        )

    fonts_kept = "fonts (--keep-fonts)" if config.keep_fonts else None
    for font in catalog.FONTS:
        path = fonts_dir / catalog.font_file_name(font)
        steps.append(
            Step(
                name=f"font:{font}",
                description=f"Remove font: {font}",
                action=filesystem(f"{NAME}:font:{font}", "remove", path),
                skip_when=skip_if_missing(path),
                keep_reason=fonts_kept,
            )
        )

    for scheme in schemes:
        path = colors_dir / catalog.color_scheme_file_name(scheme)
        steps.append(
            Step(
                name=f"color:{scheme}",
                description=f"Remove colour scheme: {scheme}",
                action=filesystem(f"{NAME}:color:{scheme}", "remove", path),
                skip_when=skip_if_missing(path),
            )
        )
    steps.append(
        Step(
            name="colors-dir",
            description="Remove colour directory if empty",
            action=filesystem(f"{NAME}:colors-dir", "rmdir_if_empty", colors_dir),
        )
    )

    homebrew_kept = "Homebrew (--keep-homebrew)" if config.keep_homebrew else None
    homebrew_env = {"NONINTERACTIVE": "1"} if config.force else {}
    steps += [
        Step(
            name="brew-bundle-cleanup",
            description="Remove packages not listed in the Brewfile",
            action=shell(
                f"{NAME}:brew-bundle-cleanup",
                ["brew", "bundle", "cleanup", f"--file={brewfile}", "--force"],
                capture=False,
            ),
            skip_when=first_reason(skip_unless_command("brew"), skip_if_missing(brewfile, "Brewfile")),
            keep_reason=homebrew_kept,
        ),
        Step(
            name="homebrew",
            description="Uninstall Homebrew",
            action=shell(
                f"{NAME}:homebrew",
                f'/bin/bash -c "$(curl -fsSL {catalog.HOMEBREW_UNINSTALL_URL})"',
                capture=False,
                env=homebrew_env,
            ),
            skip_when=skip_unless_command("brew"),
            confirm="Are you sure you want to remove Homebrew completely?",
            keep_reason=homebrew_kept,
        ),
    ]
    for rc in rc_files:
        steps.append(
            Step(
                name=f"brew-shellenv:{rc.name}",
                description=f"Clean Homebrew configuration from {rc}",
                action=edit_config(
                    f"{NAME}:brew-shellenv:{rc.name}",
                    rc,
                    [{"op": "remove_lines", "patterns": [catalog.BREW_SHELLENV_PATTERN]}],
                ),
                keep_reason=homebrew_kept,
            )
        )

    steps.append(
        Step(
            name="minimal-zshrc",
            description="Create minimal ~/.zshrc",
            action=filesystem(
                f"{NAME}:minimal-zshrc", "write_if_missing", zshrc, content=catalog.MINIMAL_ZSHRC
            ),
            skip_when=skip_if_exists(zshrc),
        )
    )
    for legacy in catalog.LEGACY_SETUP_DIRS:
        path = home / legacy
        steps.append(
            Step(
                name=f"legacy-dir:{legacy}",
                description=f"Remove {path} if empty",
                action=filesystem(f"{NAME}:legacy-dir:{legacy}", "rmdir_if_empty", path),
                skip_when=skip_if_missing(path),
            )
        )

    plan_notes = [
        "This will remove:",
        "  - Oh My Zsh and all plugins",
        "  - Powerlevel10k theme",
        "  - iTerm2 colour schemes",
    ]
    if not config.keep_fonts:
        plan_notes.append("  - Powerlevel10k fonts")
    if not config.keep_homebrew:
        plan_notes.append("  - Homebrew and all packages")

    font_expectations = [
        TargetExpectation.preserve(t) if config.keep_fonts else TargetExpectation.absent(t)
        for t in font_targets
    ]

    return Workflow(
        name=NAME,
        title="Terminal Uninstall",
        backup_prefix="terminal",
        targets=[oh_my_zsh, theme, p10k, brew],
        preflight=_nothing_detected([oh_my_zsh.name, theme.name, p10k.name, brew.name]),
        preflight_prompt="Continue with cleanup anyway?",
        confirm_prompt="Do you want to proceed with the uninstall?",
        plan_notes=plan_notes,
        backup_sources=[
            BackupSource.of_path(zshrc),
            BackupSource.of_path(zprofile),
            BackupSource.of_path(p10k_config),
            BackupSource(name="oh-my-zsh-custom", path=zsh_custom),
        ],
        steps=steps,
        expectations=[
            TargetExpectation.absent(oh_my_zsh),
            TargetExpectation.absent(theme),
            *(TargetExpectation.absent(t) for t in plugin_targets),
            *(TargetExpectation.absent(t) for t in scheme_targets),
            *font_expectations,
        ],
        next_steps=[
            "Reset the iTerm2 font to the system default and remove imported colour presets",
            "Restart your terminal or run: exec zsh",
            "For a full reset delete ~/.zshrc and ~/.zprofile and restart the terminal",
        ],
    )
