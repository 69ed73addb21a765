"""
Static catalogs — URLs, names and well-known locations.

Paths under the home directory are stored relative to it and resolved
per run, so a test can point ``home`` at a temporary directory.
"""

from __future__ import annotations

from pathlib import Path
from urllib.parse import quote

# ── Homebrew / Oh My Zsh / Powerlevel10k ────────────────────────

HOMEBREW_INSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/install.sh"
HOMEBREW_UNINSTALL_URL = "https://raw.githubusercontent.com/Homebrew/install/HEAD/uninstall.sh"
HOMEBREW_BIN = "/opt/homebrew/bin/brew"
BREW_SHELLENV_LINE = f'eval "$({HOMEBREW_BIN} shellenv)"'

OH_MY_ZSH_INSTALL_URL = "https://raw.githubusercontent.com/ohmyzsh/ohmyzsh/master/tools/install.sh"
POWERLEVEL10K_REPO = "https://github.com/romkatv/powerlevel10k.git"
POWERLEVEL10K_THEME = "powerlevel10k/powerlevel10k"
ZSH_PLUGIN_REPO_BASE = "https://github.com/zsh-users/"

ZSH_PLUGINS: tuple[str, ...] = (
    "zsh-autosuggestions",
    "zsh-syntax-highlighting",
    "zsh-history-substring-search",
)

# ── Fonts / iTerm2 colour schemes ───────────────────────────────

FONT_BASE_URL = "https://github.com/romkatv/powerlevel10k-media/raw/master/"
FONTS: tuple[str, ...] = (
    "MesloLGS NF Regular",
    "MesloLGS NF Bold",
    "MesloLGS NF Italic",
    "MesloLGS NF Bold Italic",
)

COLOR_SCHEME_BASE_URL = "https://raw.githubusercontent.com/mbadolato/iTerm2-Color-Schemes/master/schemes/"
COLOR_SCHEMES: tuple[str, ...] = (
    "Afterglow",
    "Embark",
    "IC_Orange_PPL",
    "Monokai Pro Spectrum",
    "Firefly Traditional",
    "CyberpunkScarletProtocol",
)


def font_file_name(font: str) -> str:
    """Local file name of a font: ``MesloLGS_NF_Regular.ttf``."""
    return font.replace(" ", "_") + ".ttf"


def font_url(font: str) -> str:
    return FONT_BASE_URL + quote(f"{font}.ttf")


def color_scheme_file_name(scheme: str) -> str:
    return f"{scheme}.itermcolors"


def color_scheme_url(scheme: str) -> str:
    return COLOR_SCHEME_BASE_URL + quote(color_scheme_file_name(scheme))


# Shell config lines written by Oh My Zsh / p10k / Homebrew
OH_MY_ZSH_LINE_PATTERNS: tuple[str, ...] = (
    r"# Path to your oh-my-zsh installation",
    r"export ZSH=",
    r"source \$ZSH/oh-my-zsh\.sh",
    r"ZSH_THEME=",
)
P10K_LINE_PATTERNS: tuple[str, ...] = (
    r"# To customize prompt, run `p10k configure`",
    r"\[\[ ! -f ~/\.p10k\.zsh \]\] \|\| source ~/\.p10k\.zsh",
)
BREW_SHELLENV_PATTERN = r"eval.*homebrew.*shellenv"

MINIMAL_ZSHRC = "# Basic zsh configuration\nautoload -U compinit && compinit\n"

# Left behind by older layouts of the terminal setup
LEGACY_SETUP_DIRS: tuple[Path, ...] = (
    Path("setup") / "hbrew_ohmyzsh",
    Path("setup"),
    Path("iterm2"),
)

# ── Miniforge ───────────────────────────────────────────────────

MINIFORGE_RELEASE_URL = "https://github.com/conda-forge/miniforge/releases/latest/download/"
MINIFORGE_SUPPORTED_ARCH: tuple[str, ...] = ("x86_64", "arm64")
# A real installer is ~60-90 MB; anything this small is an error page
MINIFORGE_MIN_SIZE_BYTES = 10 * 1024 * 1024


def miniforge_installer_name(arch: str) -> str:
    return f"Miniforge3-Darwin-{arch}.sh"


# Absolute locations are kept as-is; relative ones live under home
CONDA_PATHS: tuple[Path, ...] = (
    Path("anaconda"),
    Path("anaconda2"),
    Path("anaconda3"),
    Path("miniconda"),
    Path("miniconda2"),
    Path("miniconda3"),
    Path("miniforge"),
    Path("miniforge3"),
    Path("mambaforge"),
    *(
        Path(root) / name
        for root in ("/opt", "/usr/local")
        for name in (
            "anaconda",
            "anaconda2",
            "anaconda3",
            "miniconda",
            "miniconda2",
            "miniconda3",
            "miniforge",
            "miniforge3",
            "mambaforge",
        )
    ),
)

CONDA_CONFIG_FILES: tuple[Path, ...] = (Path(".condarc"), Path(".mambarc"))

CONDA_CONFIG_DIRS: tuple[Path, ...] = (
    Path(".conda"),
    Path(".continuum"),
    Path(".anaconda"),
    Path(".anaconda_backup"),
    Path(".mamba"),
    Path(".mambaforge"),
)

CONDA_CACHE_DIRS: tuple[Path, ...] = (
    Path(".cache") / "conda",
    Path(".cache") / "pip",
    Path(".cache") / "mamba",
)

SHELL_FILES: tuple[Path, ...] = (
    Path(".bash_profile"),
    Path(".bashrc"),
    Path(".zshrc"),
    Path(".zprofile"),
    Path(".zshenv"),
    Path(".profile"),
)

CONDA_APP_DIRS: tuple[Path, ...] = (
    Path("/Applications/Anaconda-Navigator.app"),
    Path("/Applications/Anaconda3"),
)

CONDA_USER_RECEIPTS: tuple[Path, ...] = tuple(
    Path("Library") / "Receipts" / f"io.continuum.pkg.{pkg}.{ext}"
    for pkg in ("anaconda-client", "anaconda-navigator")
    for ext in ("bom", "plist")
)
SYSTEM_RECEIPTS_DIR = Path("/Library/Receipts")
RECEIPT_NAME_PATTERNS: tuple[str, ...] = ("*anaconda*", "*conda*", "*mamba*")

CONDA_PIP_PACKAGES: tuple[str, ...] = (
    "conda",
    "conda-env",
    "conda-build",
    "mamba",
    "micromamba",
    "anaconda-client",
    "anaconda-navigator",
)

CONDA_INIT_BLOCKS: tuple[tuple[str, str], ...] = (
    ("# >>> conda initialize >>>", "# <<< conda initialize <<<"),
    ("# >>> mamba initialize >>>", "# <<< mamba initialize <<<"),
)
CONDA_LINE_PATTERNS: tuple[str, ...] = (
    "anaconda",
    "miniconda",
    "miniforge",
    "mambaforge",
    "export.*conda",
    "export.*mamba",
    "alias.*conda",
    "alias.*mamba",
)

CONDA_ENV_VARS: tuple[str, ...] = (
    "CONDA_DEFAULT_ENV",
    "CONDA_EXE",
    "CONDA_PREFIX",
    "CONDA_PYTHON_EXE",
    "CONDA_SHLVL",
    "MAMBA_EXE",
    "MAMBA_ROOT_PREFIX",
    "CONDA_PROMPT_MODIFIER",
)
CONDA_PATH_PATTERNS: tuple[str, ...] = ("anaconda", "miniconda", "miniforge", "mambaforge")


def under_home(home: Path, path: Path) -> Path:
    """Resolve a catalog path against ``home`` unless it is absolute."""
    return path if path.is_absolute() else home / path
