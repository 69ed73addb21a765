"""
Tests for the workflow orchestrator — phases, aborts and exit codes.
"""

from pathlib import Path

from freshsetup.core.engine.gate import ConfirmationGate
from freshsetup.core.engine.orchestrator import WorkflowOrchestrator
from freshsetup.core.models.backup import BackupSource
from freshsetup.core.models.config import RetryPolicy
from freshsetup.core.models.report import ExitCode
from freshsetup.core.models.target import InstallationTarget, TargetExpectation
from freshsetup.core.observability.run_log import RunLogger
from freshsetup.core.services.platform import PlatformInfo
from freshsetup.core.workflows.base import (
    Step,
    Workflow,
    download,
    filesystem,
    shell,
    skip_if_exists,
    skip_if_missing,
)


class _Gate(ConfirmationGate):
    """Answers prompts from a script and records what was asked."""

    def __init__(self, *answers: str, force: bool = False):
        replies = iter(answers)
        super().__init__(force=force, read=lambda prompt: next(replies, "n"))


def _workflow(home: Path, **overrides) -> Workflow:
    target_dir = home / ".demo"
    defaults = dict(
        name="demo",
        title="Demo Setup",
        backup_prefix="demo",
        targets=[InstallationTarget.for_directory("demo dir", target_dir)],
        confirm_prompt="Proceed with demo?",
        backup_sources=[BackupSource.of_path(home / ".zshrc")],
        steps=[
            Step("first", "Running first step", shell("demo:first", ["true"])),
            Step("second", "Running second step", shell("demo:second", ["true"])),
        ],
        expectations=[],
        next_steps=["Restart your terminal"],
    )
    defaults.update(overrides)
    return Workflow(**defaults)


def _orchestrator(config, registry, gate=None, platform=None, log=None):
    return WorkflowOrchestrator(
        config,
        registry,
        log or RunLogger(),
        gate=gate or _Gate("y", "y", "y"),
        platform_info=platform or PlatformInfo("darwin", "arm64"),
        sleep=lambda s: None,
    )


class TestHappyPath:
    def test_runs_all_steps(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        orch = _orchestrator(make_config(), registry)
        report = orch.run(_workflow(fake_home))

        assert report.exit_code == ExitCode.OK
        assert report.status == "succeeded"
        assert [r.step for r in report.records] == ["first", "second"]
        assert mocks["shell"].call_count == 2
        assert report.next_steps == ["Restart your terminal"]
        assert report.verification is not None and report.verification.passed

    def test_log_sequence(self, make_config, mock_registry, fake_home: Path):
        registry, _ = mock_registry
        log = RunLogger()
        _orchestrator(make_config(), registry, log=log).run(_workflow(fake_home))
        messages = log.messages()
        assert messages[0] == "Starting Demo Setup"
        assert "Detecting existing state..." in messages
        assert "Not found: demo dir" in log.messages("DETECT")
        assert "Summary: 2 step(s) run, 0 skipped, 0 failed" in messages
        assert "Demo Setup completed successfully" in messages
        assert messages[-1] == "Next: Restart your terminal"

    def test_found_target_logged(self, make_config, mock_registry, fake_home: Path):
        (fake_home / ".demo").mkdir()
        registry, _ = mock_registry
        log = RunLogger()
        _orchestrator(make_config(), registry, log=log).run(_workflow(fake_home))
        assert f"Found demo dir: {fake_home / '.demo'}" in log.messages("DETECT")

    def test_backup_reported(self, make_config, mock_registry, fake_home: Path):
        (fake_home / ".zshrc").write_text("x\n")
        registry, _ = mock_registry
        log = RunLogger()
        report = _orchestrator(make_config(), registry, log=log).run(_workflow(fake_home))
        assert report.backup_path is not None
        assert report.backup_path.name.startswith(".demo_backup_")
        assert (report.backup_path / ".zshrc").is_file()
        assert f"Backup saved at {report.backup_path}" in log.messages("INFO")

    def test_mutations_visible_to_verification(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        target_dir = fake_home / ".demo"
        mocks["filesystem"].set_effect("demo:mkdir", lambda ctx: target_dir.mkdir())
        workflow = _workflow(
            fake_home,
            steps=[Step("mkdir", "Creating demo dir", filesystem("demo:mkdir", "mkdir", target_dir))],
            expectations=[TargetExpectation.present(InstallationTarget.for_directory("demo dir", target_dir))],
        )
        report = _orchestrator(make_config(), registry).run(workflow)
        assert report.exit_code == ExitCode.OK
        assert report.verification.entry("demo dir").actual == "present"


class TestDryRun:
    def test_no_mutation_no_prompt(self, make_config, mock_registry, fake_home: Path):
        (fake_home / ".zshrc").write_text("x\n")
        registry, mocks = mock_registry
        gate = _Gate()
        log = RunLogger()
        report = _orchestrator(make_config(dry_run=True), registry, gate=gate, log=log).run(_workflow(fake_home))

        assert report.exit_code == ExitCode.OK
        assert report.dry_run
        assert mocks["shell"].call_count == 0
        assert gate.asked == []
        assert report.backup_path is None
        assert not list(fake_home.glob(".demo_backup_*"))
        assert all(r.simulated for r in report.records)
        assert report.verification.simulated
        assert "DRY RUN MODE: no changes will be made" in log.messages("DRY-RUN")
        assert "Would proceed with Demo Setup (confirmation skipped)" in log.messages("DRY-RUN")
        assert "Demo Setup simulated successfully" in log.messages("INFO")

    def test_step_confirm_not_asked(self, make_config, mock_registry, fake_home: Path):
        registry, _ = mock_registry
        gate = _Gate()
        log = RunLogger()
        workflow = _workflow(
            fake_home,
            steps=[Step("wipe", "Removing Homebrew", shell("demo:wipe", ["true"]), confirm="Really?")],
        )
        _orchestrator(make_config(dry_run=True), registry, gate=gate, log=log).run(workflow)
        assert gate.asked == []
        assert "Would ask: Really?" in log.messages("DRY-RUN")


def _fetch_then_clean(home: Path) -> list[Step]:
    artifact = home / "installer.sh"
    return [
        Step("fetch", "Downloading installer", download("demo:fetch", "https://example.com/i.sh", artifact)),
        Step(
            "clean",
            "Removing installer",
            filesystem("demo:clean", "remove", artifact),
            skip_when=skip_if_missing(artifact),
            depends_on=("fetch",),
        ),
    ]


class TestStepDependencies:
    def test_dry_run_plans_what_real_run_does(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        mocks["download"].set_effect("demo:fetch", lambda ctx: (fake_home / "installer.sh").write_text("#!/bin/sh\n"))
        dry_log, real_log = RunLogger(), RunLogger()

        dry = _orchestrator(make_config(dry_run=True), registry, log=dry_log).run(
            _workflow(fake_home, steps=_fetch_then_clean(fake_home))
        )
        real = _orchestrator(make_config(), registry, log=real_log).run(
            _workflow(fake_home, steps=_fetch_then_clean(fake_home))
        )

        assert [r.outcome for r in dry.records] == ["simulated", "simulated"]
        assert [r.outcome for r in real.records] == ["success", "success"]
        assert dry_log.messages(tag="action") == real_log.messages(tag="action")
        assert mocks["filesystem"].calls_for("demo:clean") == 1

    def test_skip_check_used_when_dependency_did_not_run(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        steps = _fetch_then_clean(fake_home)
        steps[0] = Step(
            "fetch",
            "Downloading installer",
            steps[0].action,
            skip_when=lambda: "installer not needed",
        )
        report = _orchestrator(make_config(), registry).run(_workflow(fake_home, steps=steps))

        assert [r.outcome for r in report.records] == ["skipped", "skipped"]
        assert report.records[1].reason == f"{fake_home / 'installer.sh'} not found"
        assert mocks["filesystem"].call_count == 0


class TestPreExecutionAborts:
    def test_requires_macos(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        log = RunLogger()
        report = _orchestrator(
            make_config(), registry, platform=PlatformInfo("linux", "x86_64"), log=log
        ).run(_workflow(fake_home))
        assert report.exit_code == ExitCode.UNSUPPORTED_PLATFORM
        assert report.status == "failed"
        assert report.records == []
        assert report.verification is None
        assert mocks["shell"].call_count == 0
        assert "This workflow requires macOS (detected Linux)" in log.messages("ERROR")
        assert "Demo Setup failed (exit code 1)" in log.messages("ERROR")

    def test_platform_agnostic_workflow(self, make_config, mock_registry, fake_home: Path):
        registry, _ = mock_registry
        report = _orchestrator(make_config(), registry, platform=PlatformInfo("linux", "x86_64")).run(
            _workflow(fake_home, requires_macos=False)
        )
        assert report.exit_code == ExitCode.OK

    def test_unsupported_arch(self, make_config, mock_registry, fake_home: Path):
        registry, _ = mock_registry
        log = RunLogger()
        report = _orchestrator(
            make_config(), registry, platform=PlatformInfo("darwin", "ppc"), log=log
        ).run(_workflow(fake_home, supported_arch=("x86_64", "arm64")))
        assert report.exit_code == ExitCode.UNSUPPORTED_PLATFORM
        assert "Unsupported architecture: ppc (supported: x86_64, arm64)" in log.messages("ERROR")

    def test_prerequisite_missing(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        log = RunLogger()
        brewfile = fake_home / "Brewfile"
        report = _orchestrator(make_config(), registry, log=log).run(
            _workflow(fake_home, prerequisites=[InstallationTarget.for_file("Brewfile", brewfile)])
        )
        assert report.exit_code == ExitCode.PREREQUISITE_MISSING
        assert mocks["shell"].call_count == 0
        assert f"Required Brewfile not found: {brewfile}" in log.messages("ERROR")

    def test_decline_makes_no_changes(self, make_config, mock_registry, fake_home: Path):
        (fake_home / ".zshrc").write_text("x\n")
        registry, mocks = mock_registry
        gate = _Gate("n")
        log = RunLogger()
        report = _orchestrator(make_config(), registry, gate=gate, log=log).run(_workflow(fake_home))
        assert report.exit_code == ExitCode.USER_CANCELLED
        assert report.error == "Cancelled by user"
        assert gate.asked == ["Proceed with demo?"]
        assert mocks["shell"].call_count == 0
        assert not list(fake_home.glob(".demo_backup_*"))

    def test_preflight_warning_asked_first(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        gate = _Gate("no")
        log = RunLogger()
        workflow = _workflow(
            fake_home,
            preflight=lambda snapshot: ["Found existing conda installation: /opt/conda"],
            preflight_prompt="Continue with installation anyway?",
            plan_notes=["This will remove:", "  • Oh My Zsh"],
        )
        report = _orchestrator(make_config(), registry, gate=gate, log=log).run(workflow)
        assert report.exit_code == ExitCode.USER_CANCELLED
        assert gate.asked == ["Continue with installation anyway?"]
        assert log.messages("WARNING") == [
            "Found existing conda installation: /opt/conda",
            "This will remove:",
            "  • Oh My Zsh",
        ]

    def test_force_skips_prompts(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        gate = _Gate(force=True)
        log = RunLogger()
        report = _orchestrator(make_config(force=True), registry, gate=gate, log=log).run(
            _workflow(fake_home, preflight=lambda snapshot: ["conflict"])
        )
        assert report.exit_code == ExitCode.OK
        assert gate.asked == []
        assert "Skipping confirmation (--force)" in log.messages("INFO")


class TestStepPolicies:
    def test_fatal_failure_stops_run(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        mocks["download"].set_failure("demo:fetch", error="HTTP 404", return_code=22)
        log = RunLogger(log_file=fake_home / "demo.log")
        workflow = _workflow(
            fake_home,
            steps=[
                Step("first", "Running first step", shell("demo:first", ["true"])),
                Step(
                    "fetch",
                    "Downloading installer",
                    download("demo:fetch", "https://example.com/x.sh", fake_home / "x.sh"),
                    policy="fatal",
                    exit_code=ExitCode.DOWNLOAD_FAILED,
                ),
                Step("last", "Running last step", shell("demo:last", ["true"])),
            ],
        )
        report = _orchestrator(make_config(), registry, log=log).run(workflow)

        assert report.exit_code == ExitCode.DOWNLOAD_FAILED
        assert report.error == "Downloading installer failed"
        assert [r.step for r in report.records] == ["first", "fetch"]
        assert mocks["shell"].calls_for("demo:last") == 0
        assert report.verification is not None
        assert "Aborting: Downloading installer failed" in log.messages("ERROR")
        assert "Demo Setup failed (exit code 3)" in log.messages("ERROR")
        assert f"See the log for details: {fake_home / 'demo.log'}" in log.messages("ERROR")
        assert report.next_steps == []

    def test_soft_failure_continues(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        mocks["shell"].set_failure("demo:first")
        log = RunLogger()
        report = _orchestrator(make_config(), registry, log=log).run(_workflow(fake_home))
        assert report.exit_code == ExitCode.OK
        assert report.steps_failed == 1
        assert report.steps_run == 1
        assert "Continuing despite failure: Running first step" in log.messages("WARNING")
        assert "Summary: 1 step(s) run, 0 skipped, 1 failed" in log.messages("INFO")

    def test_fatal_code_wins_over_verification(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        mocks["shell"].set_failure("demo:init")
        workflow = _workflow(
            fake_home,
            steps=[
                Step(
                    "init",
                    "Initializing conda",
                    shell("demo:init", ["conda", "init"]),
                    policy="fatal",
                    exit_code=ExitCode.SHELL_INIT_FAILED,
                )
            ],
            expectations=[
                TargetExpectation.present(InstallationTarget.for_directory("missing", fake_home / "missing"))
            ],
        )
        report = _orchestrator(make_config(), registry).run(workflow)
        assert report.exit_code == ExitCode.SHELL_INIT_FAILED
        assert report.verification.issues == 1

    def test_verification_failure(self, make_config, mock_registry, fake_home: Path):
        registry, _ = mock_registry
        workflow = _workflow(
            fake_home,
            expectations=[
                TargetExpectation.present(InstallationTarget.for_directory("missing", fake_home / "missing"))
            ],
        )
        report = _orchestrator(make_config(), registry).run(workflow)
        assert report.exit_code == ExitCode.VERIFICATION_FAILED
        assert report.error == "Verification found 1 issue(s)"

    def test_keep_reason(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        log = RunLogger()
        workflow = _workflow(
            fake_home,
            steps=[
                Step(
                    "fonts",
                    "Removing fonts",
                    shell("demo:fonts", ["true"]),
                    keep_reason="fonts (--keep-fonts)",
                )
            ],
        )
        report = _orchestrator(make_config(), registry, log=log).run(workflow)
        assert mocks["shell"].call_count == 0
        assert report.records[0].skipped
        assert report.records[0].reason == "keeping fonts (--keep-fonts)"
        assert "Keeping fonts (--keep-fonts)" in log.messages("INFO")

    def test_skip_when(self, make_config, mock_registry, fake_home: Path):
        (fake_home / ".oh-my-zsh").mkdir()
        registry, mocks = mock_registry
        log = RunLogger()
        workflow = _workflow(
            fake_home,
            steps=[
                Step(
                    "omz",
                    "Installing Oh My Zsh",
                    shell("demo:omz", ["true"]),
                    skip_when=skip_if_exists(fake_home / ".oh-my-zsh", "Oh My Zsh"),
                )
            ],
        )
        report = _orchestrator(make_config(), registry, log=log).run(workflow)
        assert mocks["shell"].call_count == 0
        assert report.steps_skipped == 1
        assert "Skipping Installing Oh My Zsh: Oh My Zsh already exists" in log.messages("INFO")

    def test_step_decline_skips_only_that_step(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        gate = _Gate("y", "n")
        log = RunLogger()
        workflow = _workflow(
            fake_home,
            steps=[
                Step("brew", "Removing Homebrew", shell("demo:brew", ["true"]), confirm="Remove Homebrew?"),
                Step("after", "Running after", shell("demo:after", ["true"])),
            ],
        )
        report = _orchestrator(make_config(), registry, gate=gate, log=log).run(workflow)
        assert report.exit_code == ExitCode.OK
        assert gate.asked == ["Proceed with demo?", "Remove Homebrew?"]
        assert report.records[0].reason == "declined"
        assert mocks["shell"].calls_for("demo:brew") == 0
        assert mocks["shell"].calls_for("demo:after") == 1
        assert "Skipping Removing Homebrew: declined" in log.messages("INFO")

    def test_confirm_when_false_does_not_ask(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        gate = _Gate("y")
        workflow = _workflow(
            fake_home,
            steps=[
                Step(
                    "download",
                    "Downloading",
                    shell("demo:download", ["true"]),
                    confirm="Re-download installer?",
                    confirm_when=lambda: False,
                )
            ],
        )
        _orchestrator(make_config(), registry, gate=gate).run(workflow)
        assert gate.asked == ["Proceed with demo?"]
        assert mocks["shell"].calls_for("demo:download") == 1

    def test_retry_policy_honoured(self, make_config, mock_registry, fake_home: Path):
        registry, mocks = mock_registry
        mocks["shell"].fail_times("demo:flaky", 1)
        workflow = _workflow(
            fake_home,
            steps=[
                Step(
                    "flaky",
                    "Cloning",
                    shell("demo:flaky", ["git", "clone"]),
                    policy="fatal",
                    retry=RetryPolicy(max_attempts=2, backoff_seconds=0),
                )
            ],
        )
        report = _orchestrator(make_config(), registry).run(workflow)
        assert report.exit_code == ExitCode.OK
        assert report.records[0].attempts == 2
