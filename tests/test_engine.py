"""
Tests for engine components — probe, confirmation gate, backups, verification.
"""

import json
import os
from pathlib import Path

import click

from freshsetup.core.engine.backup import MANIFEST_FILE, BackupManager
from freshsetup.core.engine.gate import ConfirmationGate
from freshsetup.core.engine.probe import StateProbe
from freshsetup.core.engine.verify import Check, VerificationEngine
from freshsetup.core.models.backup import BackupSource
from freshsetup.core.models.target import (
    DetectionSnapshot,
    InstallationTarget,
    ProbeResult,
    TargetExpectation,
)
from freshsetup.core.observability.run_log import RunLogger

# ── State Probe ──────────────────────────────────────────────────────


class TestStateProbe:
    def test_command_present(self):
        result = StateProbe().detect(InstallationTarget.for_command("sh", "sh"))
        assert result.present
        assert result.location and result.location.endswith("/sh")

    def test_command_absent(self):
        result = StateProbe().detect(InstallationTarget.for_command("nope", "definitely-not-a-command-xyz"))
        assert not result.present
        assert result.location is None
        assert result.state == "absent"

    def test_file_and_directory(self, tmp_path: Path):
        f = tmp_path / "Brewfile"
        f.write_text("brew 'git'\n")
        probe = StateProbe()
        assert probe.detect(InstallationTarget.for_file("Brewfile", f)).present
        assert not probe.detect(InstallationTarget.for_directory("Brewfile", f)).present
        assert probe.detect(InstallationTarget.for_directory("tmp", tmp_path)).present
        assert probe.detect(InstallationTarget.for_path("either", f)).present

    def test_executable_needs_exec_bit(self, tmp_path: Path):
        exe = tmp_path / "conda"
        exe.write_text("#!/bin/sh\n")
        target = InstallationTarget.for_executable("conda", exe)
        assert not StateProbe().detect(target).present
        exe.chmod(0o755)
        assert StateProbe().detect(target).present

    def test_detect_many(self, tmp_path: Path):
        snapshot = StateProbe().detect_many(
            [
                InstallationTarget.for_directory("here", tmp_path),
                InstallationTarget.for_directory("gone", tmp_path / "missing"),
            ]
        )
        assert snapshot.present == ["here"]

    def test_version_first_line(self):
        target = InstallationTarget.for_command("sh", "sh", version_command=("sh", "-c", "echo 'conda 24.1.0'; echo more"))
        assert StateProbe().version(target) == "conda 24.1.0"

    def test_version_failures_are_none(self):
        probe = StateProbe()
        assert probe.version(InstallationTarget.for_command("sh", "sh")) is None
        failing = InstallationTarget.for_command("sh", "sh", version_command=("sh", "-c", "exit 3"))
        assert probe.version(failing) is None
        missing = InstallationTarget.for_command("x", "x", version_command=("definitely-not-a-command-xyz",))
        assert probe.version(missing) is None


# ── Confirmation Gate ────────────────────────────────────────────────


def _answers(*replies):
    it = iter(replies)
    return lambda prompt: next(it)


class TestConfirmationGate:
    def test_yes_variants(self):
        for reply in ("y", "Y", "yes", "YES", "  yes "):
            assert ConfirmationGate(read=_answers(reply)).confirm("Proceed?")

    def test_everything_else_declines(self):
        for reply in ("", "n", "no", "yeah", "sure", "1"):
            assert not ConfirmationGate(read=_answers(reply)).confirm("Proceed?")

    def test_end_of_input_declines(self):
        def eof(prompt):
            raise EOFError

        def abort(prompt):
            raise click.Abort()

        assert not ConfirmationGate(read=eof).confirm("Proceed?")
        assert not ConfirmationGate(read=abort).confirm("Proceed?")

    def test_force_never_reads(self):
        def fail(prompt):
            raise AssertionError("should not be asked")

        gate = ConfirmationGate(force=True, read=fail)
        assert gate.confirm("Proceed?")
        assert gate.asked == []

    def test_prompt_suffix_and_record(self):
        seen = []

        def read(prompt):
            seen.append(prompt)
            return "n"

        gate = ConfirmationGate(read=read)
        gate.confirm("Remove Homebrew?")
        assert seen == ["Remove Homebrew? [y/N]"]
        assert gate.asked == ["Remove Homebrew?"]


# ── Backup Manager ───────────────────────────────────────────────────


class TestBackupManager:
    def _sources(self, home: Path) -> list[BackupSource]:
        (home / ".zshrc").write_text("export ZSH=~/.oh-my-zsh\n")
        custom = home / ".oh-my-zsh" / "custom"
        (custom / "themes").mkdir(parents=True)
        (custom / "themes" / "mine.zsh-theme").write_text("PROMPT='%'\n")
        return [
            BackupSource.of_path(home / ".zshrc"),
            BackupSource(name="oh-my-zsh-custom", path=custom),
            BackupSource.of_path(home / ".zprofile"),
        ]

    def test_snapshot_copies_existing(self, make_config, fake_home: Path):
        log = RunLogger()
        manifest = BackupManager(make_config(), log).snapshot(self._sources(fake_home), "terminal")

        assert manifest is not None
        assert manifest.root.parent == fake_home
        assert manifest.root.name.startswith(".terminal_backup_")
        assert manifest.copied == 2
        assert manifest.failed == 0
        assert (manifest.root / ".zshrc").read_text() == "export ZSH=~/.oh-my-zsh\n"
        assert (manifest.root / "oh-my-zsh-custom" / "themes" / "mine.zsh-theme").is_file()
        assert f"Not backing up {fake_home / '.zprofile'} (not found)" in log.messages("INFO")

    def test_manifest_written(self, make_config, fake_home: Path):
        manifest = BackupManager(make_config(), RunLogger()).snapshot(self._sources(fake_home), "terminal")
        data = json.loads((manifest.root / MANIFEST_FILE).read_text())
        assert len(data["entries"]) == 2
        assert data["timestamp"] == manifest.timestamp

    def test_group_subdirectory(self, make_config, fake_home: Path):
        (fake_home / ".condarc").write_text("channels: [conda-forge]\n")
        source = BackupSource.of_path(fake_home / ".condarc", group="config")
        manifest = BackupManager(make_config(), RunLogger()).snapshot([source], "miniforge_uninstall")
        assert (manifest.root / "config" / ".condarc").is_file()

    def test_command_capture(self, make_config):
        source = BackupSource.of_command("conda_envs", ("sh", "-c", "echo base"))
        manifest = BackupManager(make_config(), RunLogger()).snapshot([source], "miniforge")
        assert (manifest.root / "conda_envs.txt").read_text() == "base\n"

    def test_failed_capture_is_a_warning(self, make_config, fake_home: Path):
        (fake_home / ".zshrc").write_text("x\n")
        log = RunLogger()
        manifest = BackupManager(make_config(), log).snapshot(
            [
                BackupSource.of_command("broken", ("sh", "-c", "exit 4")),
                BackupSource.of_path(fake_home / ".zshrc"),
            ],
            "miniforge",
        )
        assert manifest.failed == 1
        assert manifest.copied == 1
        assert any(m.startswith("Failed to back up sh -c exit 4") for m in log.messages("WARNING"))

    def test_no_backup_flag(self, make_config, fake_home: Path):
        log = RunLogger()
        manifest = BackupManager(make_config(no_backup=True), log).snapshot(self._sources(fake_home), "terminal")
        assert manifest is None
        assert "Skipping backup (--no-backup)" in log.messages("INFO")
        assert not list(fake_home.glob(".terminal_backup_*"))

    def test_dry_run_creates_nothing(self, make_config, fake_home: Path):
        log = RunLogger()
        manifest = BackupManager(make_config(dry_run=True), log).snapshot(self._sources(fake_home), "terminal")
        assert manifest is None
        assert not list(fake_home.glob(".terminal_backup_*"))
        assert log.messages("DRY-RUN")[0].startswith(f"Would create backup at {fake_home}/.terminal_backup_")
        assert f"Would back up: {fake_home / '.zshrc'}" in log.messages("DETECT")

    def test_nothing_to_back_up(self, make_config, fake_home: Path):
        log = RunLogger()
        manifest = BackupManager(make_config(), log).snapshot(
            [BackupSource.of_path(fake_home / ".zshrc")], "terminal"
        )
        assert manifest is None
        assert "Nothing to back up" in log.messages("INFO")


# ── Verification Engine ──────────────────────────────────────────────


def _snapshot(**present: bool) -> DetectionSnapshot:
    return DetectionSnapshot(
        results={name: ProbeResult(target=name, present=p) for name, p in present.items()}
    )


class TestVerificationEngine:
    def test_all_expectations_met(self, make_config, tmp_path: Path):
        log = RunLogger()
        present = InstallationTarget.for_directory("Oh My Zsh", tmp_path)
        absent = InstallationTarget.for_directory("Old", tmp_path / "gone")
        report = VerificationEngine(make_config(), StateProbe(), log).verify(
            [TargetExpectation.present(present), TargetExpectation.absent(absent)],
            _snapshot(),
        )
        assert report.passed
        assert not report.simulated
        assert "OK: Oh My Zsh is present" in log.messages("INFO")
        assert "OK: Old is absent" in log.messages("INFO")
        assert log.messages("INFO")[-1] == "Verification passed"

    def test_mismatch_counts_issue(self, make_config, tmp_path: Path):
        log = RunLogger()
        target = InstallationTarget.for_directory("Powerlevel10k theme", tmp_path)
        report = VerificationEngine(make_config(), StateProbe(), log).verify(
            [TargetExpectation.absent(target)], _snapshot()
        )
        assert report.issues == 1
        entry = report.entry("Powerlevel10k theme")
        assert entry.actual == "present"
        assert entry.expected == "absent"
        assert not entry.ok
        assert log.messages("ERROR") == [
            f"Powerlevel10k theme is present, expected absent: {tmp_path}",
            "Verification found 1 issue(s)",
        ]

    def test_advisory_mismatch_is_warning(self, make_config, tmp_path: Path):
        log = RunLogger()
        target = InstallationTarget.for_directory("pkgs", tmp_path / "pkgs")
        report = VerificationEngine(make_config(), StateProbe(), log).verify(
            [TargetExpectation.present(target, advisory=True)], _snapshot()
        )
        assert report.passed
        assert log.messages("WARNING") == [f"pkgs is absent, expected present: {tmp_path / 'pkgs'}"]

    def test_preserve_uses_detected_state(self, make_config, tmp_path: Path):
        (tmp_path / ".condarc").write_text("")
        kept = InstallationTarget.for_file(".condarc", tmp_path / ".condarc")
        report = VerificationEngine(make_config(), StateProbe(), RunLogger()).verify(
            [TargetExpectation.preserve(kept)], _snapshot(**{".condarc": True})
        )
        assert report.passed
        assert report.entry(".condarc").expected == "present"

        report = VerificationEngine(make_config(), StateProbe(), RunLogger()).verify(
            [TargetExpectation.preserve(kept)], _snapshot(**{".condarc": False})
        )
        assert report.issues == 1

    def test_version_recorded(self, make_config):
        log = RunLogger()
        target = InstallationTarget.for_command("sh", "sh", version_command=("sh", "-c", "echo v1.0"))
        report = VerificationEngine(make_config(), StateProbe(), log).verify(
            [TargetExpectation.present(target)], _snapshot()
        )
        assert report.entry("sh").version == "v1.0"
        assert "OK: sh is present (v1.0)" in log.messages("INFO")

    def test_checks(self, make_config):
        log = RunLogger()

        def boom():
            raise RuntimeError("disk on fire")

        report = VerificationEngine(make_config(), StateProbe(), log).verify(
            [],
            _snapshot(),
            [
                Check("R file count", lambda: (True, "source files: 2, target files: 2")),
                Check("mismatch", lambda: (False, "1 != 2")),
                Check("soft", lambda: (False, "meh"), advisory=True),
                Check("explodes", boom),
            ],
        )
        assert report.issues == 2
        assert "OK: R file count (source files: 2, target files: 2)" in log.messages("INFO")
        assert "mismatch failed: 1 != 2" in log.messages("ERROR")
        assert "soft failed: meh" in log.messages("WARNING")
        assert report.entry("explodes").detail == "check raised RuntimeError: disk on fire"

    def test_dry_run_probes_nothing(self, make_config, tmp_path: Path):
        calls = []

        class CountingProbe(StateProbe):
            def detect(self, target):
                calls.append(target.name)
                return super().detect(target)

        log = RunLogger()
        target = InstallationTarget.for_directory("Oh My Zsh", tmp_path / ".oh-my-zsh")
        report = VerificationEngine(make_config(dry_run=True), CountingProbe(), log).verify(
            [TargetExpectation.present(target)],
            _snapshot(),
            [Check("R file count", lambda: (False, "never run"))],
        )
        assert calls == []
        assert report.simulated
        assert report.passed
        assert report.entry("Oh My Zsh").actual == "not checked"
        assert log.messages("DRY-RUN") == ["Would verify final state"]
        assert log.messages("DETECT") == [
            f"Would verify Oh My Zsh is present: {tmp_path / '.oh-my-zsh'}",
            "Would check R file count",
        ]


def test_probe_respects_path(monkeypatch, tmp_path: Path):
    exe = tmp_path / "brew"
    exe.write_text("#!/bin/sh\necho 'Homebrew 4.2.0'\n")
    exe.chmod(0o755)
    monkeypatch.setenv("PATH", f"{tmp_path}{os.pathsep}{os.environ.get('PATH', '')}")
    result = StateProbe().detect(InstallationTarget.for_command("brew", "brew"))
    assert result.location == str(exe)
