"""
Tests for the settings file loader and RunConfiguration assembly.
"""

import textwrap
from pathlib import Path

import pytest

from freshsetup.core.config.loader import (
    CONFIG_ENV_VAR,
    ConfigError,
    Settings,
    build_run_configuration,
    find_settings_file,
    load_settings,
)
from freshsetup.core.models.config import RetryPolicy


class TestFindSettingsFile:
    def test_explicit_path(self, tmp_path: Path):
        cfg = tmp_path / "settings.yml"
        cfg.write_text("{}\n")
        assert find_settings_file(cfg, home=tmp_path, environ={}) == cfg

    def test_explicit_missing(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Config file not found"):
            find_settings_file(tmp_path / "nope.yml", home=tmp_path, environ={})

    def test_env_var(self, tmp_path: Path):
        cfg = tmp_path / "from-env.yml"
        cfg.write_text("{}\n")
        assert find_settings_file(home=tmp_path, environ={CONFIG_ENV_VAR: str(cfg)}) == cfg

    def test_env_var_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match=CONFIG_ENV_VAR):
            find_settings_file(home=tmp_path, environ={CONFIG_ENV_VAR: str(tmp_path / "x.yml")})

    def test_default_location_optional(self, fake_home: Path):
        assert find_settings_file(home=fake_home, environ={}) is None
        default = fake_home / ".config" / "fresh_setup" / "settings.yml"
        default.parent.mkdir(parents=True)
        default.write_text("{}\n")
        assert find_settings_file(home=fake_home, environ={}) == default


class TestLoadSettings:
    def test_none_is_empty(self):
        assert load_settings(None) == Settings()

    def test_empty_file(self, tmp_path: Path):
        cfg = tmp_path / "s.yml"
        cfg.write_text("")
        assert load_settings(cfg) == Settings()

    def test_full_file(self, tmp_path: Path):
        cfg = tmp_path / "s.yml"
        cfg.write_text(textwrap.dedent("""\
            retry:
              max_attempts: 5
              backoff_seconds: 1
            brewfile: ~/dotfiles/Brewfile
            zsh_plugins:
              - zsh-autosuggestions
            color_schemes: [Afterglow]
        """))
        settings = load_settings(cfg)
        assert settings.retry == RetryPolicy(max_attempts=5, backoff_seconds=1)
        assert settings.brewfile == Path("~/dotfiles/Brewfile")
        assert settings.zsh_plugins == ["zsh-autosuggestions"]
        assert settings.color_schemes == ["Afterglow"]

    def test_invalid_yaml(self, tmp_path: Path):
        cfg = tmp_path / "s.yml"
        cfg.write_text("retry: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_settings(cfg)

    def test_not_a_mapping(self, tmp_path: Path):
        cfg = tmp_path / "s.yml"
        cfg.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_settings(cfg)

    def test_unknown_key(self, tmp_path: Path):
        cfg = tmp_path / "s.yml"
        cfg.write_text("colour_schemes: [x]\n")
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings(cfg)

    def test_bad_retry(self, tmp_path: Path):
        cfg = tmp_path / "s.yml"
        cfg.write_text("retry:\n  max_attempts: 0\n")
        with pytest.raises(ConfigError):
            load_settings(cfg)


class TestBuildRunConfiguration:
    def test_defaults(self, fake_home: Path):
        config = build_run_configuration("sync-r", home=fake_home)
        assert config.workflow == "sync-r"
        assert config.home == fake_home
        assert config.log_file is None
        assert not config.dry_run
        assert config.retry == RetryPolicy()

    def test_log_file_under_home(self, fake_home: Path):
        config = build_run_configuration("sync-r", log_name="move_r_files.log", home=fake_home)
        assert config.log_file == fake_home / "move_r_files.log"

    def test_flags_win_over_settings(self, fake_home: Path, tmp_path: Path):
        settings = Settings(install_path=tmp_path / "from-settings", retry=RetryPolicy(max_attempts=1))
        config = build_run_configuration(
            "install-miniforge",
            settings,
            home=fake_home,
            install_path=tmp_path / "from-cli",
            dry_run=True,
            no_init=None,
        )
        assert config.install_path == tmp_path / "from-cli"
        assert config.retry.max_attempts == 1
        assert config.dry_run
        assert not config.no_init

    def test_settings_fill_unset_flags(self, fake_home: Path):
        settings = Settings(r_source=Path("~/r_src"), zsh_plugins=["a", "b"])
        config = build_run_configuration("sync-r", settings, home=fake_home, r_source=None)
        assert config.r_source == Path("~/r_src").expanduser()
        assert config.zsh_plugins == ("a", "b")

    def test_zsh_custom_from_environment(self, fake_home: Path, tmp_path: Path):
        custom = tmp_path / "omz-custom"
        config = build_run_configuration("install-terminal", home=fake_home, environ={"ZSH_CUSTOM": str(custom)})
        assert config.zsh_custom == custom
        assert config.resolved_zsh_custom == custom

    def test_zsh_custom_defaults_under_oh_my_zsh(self, fake_home: Path):
        config = build_run_configuration("install-terminal", home=fake_home, environ={"ZSH_CUSTOM": ""})
        assert config.zsh_custom is None
        assert config.resolved_zsh_custom == fake_home / ".oh-my-zsh" / "custom"
