"""
Workflow orchestrator — the provisioning state machine.

    Init -> Detecting -> Confirming -> BackingUp -> Executing(1..N)
         -> Verifying -> Reporting -> Succeeded | Failed(code)

Pre-execution aborts (platform, prerequisites, decline) raise
``WorkflowAbort`` internally; ``run`` is the only place that turns any
failure into an exit code, and it always returns a ``WorkflowReport``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from freshsetup.adapters.registry import AdapterRegistry
from freshsetup.core.engine.backup import BackupManager
from freshsetup.core.engine.executor import ActionExecutor
from freshsetup.core.engine.gate import ConfirmationGate
from freshsetup.core.engine.probe import StateProbe
from freshsetup.core.engine.verify import VerificationEngine
from freshsetup.core.models.action import ActionRecord
from freshsetup.core.models.config import RunConfiguration
from freshsetup.core.models.report import ExitCode, WorkflowReport
from freshsetup.core.models.target import DetectionSnapshot
from freshsetup.core.observability.run_log import RunLogger
from freshsetup.core.services.platform import PlatformInfo, detect_platform
from freshsetup.core.workflows.base import Step, Workflow

logger = logging.getLogger(__name__)


class WorkflowAbort(Exception):
    """Stop before any mutation, with a specific exit code."""

    def __init__(self, code: ExitCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class WorkflowOrchestrator:
    """Drives one workflow run from detection to the final report.

    Collaborators are injectable so tests can swap the registry, the
    probe, the gate's input and the executor's sleep.
    """

    def __init__(
        self,
        config: RunConfiguration,
        registry: AdapterRegistry,
        log: RunLogger,
        *,
        gate: ConfirmationGate | None = None,
        probe: StateProbe | None = None,
        platform_info: PlatformInfo | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        self.config = config
        self.registry = registry
        self.log = log
        self.gate = gate or ConfirmationGate(force=config.force)
        self.probe = probe or StateProbe()
        self.platform = platform_info or detect_platform()
        executor_kwargs = {"sleep": sleep} if sleep is not None else {}
        self.executor = ActionExecutor(config, registry, log, **executor_kwargs)
        self.backup = BackupManager(config, log)
        self.verifier = VerificationEngine(config, self.probe, log)

    # ── Entry point ──────────────────────────────────────────────

    def run(self, workflow: Workflow) -> WorkflowReport:
        report = WorkflowReport(
            workflow=workflow.name,
            dry_run=self.config.dry_run,
            log_file=self.log.log_file,
        )

        self.log.info(f"Starting {workflow.title}")
        if self.config.dry_run:
            self.log.dry_run("DRY RUN MODE: no changes will be made")

        try:
            self._check_platform(workflow)
            snapshot = self._detect(workflow)
            self._check_prerequisites(workflow)
            self._confirm(workflow, snapshot)
        except WorkflowAbort as abort:
            self.log.error(abort.message)
            return self._finish(workflow, report, abort.code, abort.message)

        manifest = self.backup.snapshot(workflow.backup_sources, workflow.backup_prefix)
        if manifest is not None:
            report.backup_path = manifest.root

        fatal: tuple[ExitCode, str] | None = None
        changed: set[str] = set()
        for step in workflow.steps:
            record = self._run_step(step, changed)
            report.records.append(record)
            if record.ok:
                changed.add(step.name)
            if not record.failed:
                continue
            if step.fatal:
                fatal = (step.exit_code, f"{step.description} failed")
                self.log.error(f"Aborting: {step.description} failed")
                break
            self.log.warning(f"Continuing despite failure: {step.description}")

        report.verification = self.verifier.verify(
            workflow.expectations, snapshot, workflow.checks
        )

        if fatal is not None:
            return self._finish(workflow, report, *fatal)
        if not report.verification.passed:
            return self._finish(
                workflow,
                report,
                ExitCode.VERIFICATION_FAILED,
                f"Verification found {report.verification.issues} issue(s)",
            )
        return self._finish(workflow, report, ExitCode.OK, None)

    # ── States ───────────────────────────────────────────────────

    def _check_platform(self, workflow: Workflow) -> None:
        if workflow.requires_macos and not self.platform.is_macos:
            raise WorkflowAbort(
                ExitCode.UNSUPPORTED_PLATFORM,
                f"This workflow requires macOS (detected {self.platform.display_name})",
            )
        if workflow.supported_arch and self.platform.arch not in workflow.supported_arch:
            raise WorkflowAbort(
                ExitCode.UNSUPPORTED_PLATFORM,
                f"Unsupported architecture: {self.platform.machine} "
                f"(supported: {', '.join(workflow.supported_arch)})",
            )

    def _detect(self, workflow: Workflow) -> DetectionSnapshot:
        self.log.info("Detecting existing state...")
        snapshot = self.probe.detect_many(workflow.probe_targets())
        for target in workflow.targets:
            result = snapshot.results[target.name]
            if result.present:
                self.log.detect(f"Found {target.name}: {result.location}")
            else:
                self.log.detect(f"Not found: {target.name}")
        return snapshot

    def _check_prerequisites(self, workflow: Workflow) -> None:
        for target in workflow.prerequisites:
            if not self.probe.detect(target).present:
                raise WorkflowAbort(
                    ExitCode.PREREQUISITE_MISSING,
                    f"Required {target.name} not found: {target.locator}",
                )

    def _confirm(self, workflow: Workflow, snapshot: DetectionSnapshot) -> None:
        warnings = workflow.preflight(snapshot)
        for warning in warnings:
            self.log.warning(warning)
        for note in workflow.plan_notes:
            self.log.warning(note)

        if self.config.force:
            self.log.info("Skipping confirmation (--force)")
            return
        if self.config.dry_run:
            self.log.dry_run(f"Would proceed with {workflow.title} (confirmation skipped)")
            return

        if warnings and not self.gate.confirm(workflow.preflight_prompt):
            raise WorkflowAbort(ExitCode.USER_CANCELLED, "Cancelled by user")
        if workflow.confirm_prompt and not self.gate.confirm(workflow.confirm_prompt):
            raise WorkflowAbort(ExitCode.USER_CANCELLED, "Cancelled by user")

    def _run_step(self, step: Step, changed: set[str]) -> ActionRecord:
        if step.keep_reason:
            self.log.info(f"Keeping {step.keep_reason}")
            return self._skipped(step, f"keeping {step.keep_reason}")

        upstream = [name for name in step.depends_on if name in changed]
        if upstream:
            logger.debug("%s follows %s, skip check not consulted", step.name, ", ".join(upstream))
        elif step.skip_when is not None:
            reason = step.skip_when()
            if reason:
                self.log.info(f"Skipping {step.description}: {reason}")
                return self._skipped(step, reason)

        if step.confirm and (step.confirm_when is None or step.confirm_when()):
            if self.config.dry_run:
                self.log.dry_run(f"Would ask: {step.confirm}")
            elif not self.gate.confirm(step.confirm):
                self.log.info(f"Skipping {step.description}: declined")
                return self._skipped(step, "declined")

        return self.executor.perform(step.description, step.action, step.retry, step=step.name)

    def _skipped(self, step: Step, reason: str) -> ActionRecord:
        return ActionRecord(
            step=step.name,
            description=step.description,
            command=self.registry.render(step.action),
            adapter=step.action.adapter,
            outcome="skipped",
            reason=reason,
        )

    # ── Reporting ────────────────────────────────────────────────

    def _finish(
        self,
        workflow: Workflow,
        report: WorkflowReport,
        code: ExitCode,
        error: str | None,
    ) -> WorkflowReport:
        report.exit_code = code
        report.status = "succeeded" if code == ExitCode.OK else "failed"
        report.error = error

        self.log.info(
            f"Summary: {report.steps_run} step(s) run, {report.steps_skipped} skipped, "
            f"{report.steps_failed} failed"
        )
        if report.backup_path is not None:
            self.log.info(f"Backup saved at {report.backup_path}")

        if code == ExitCode.OK:
            report.next_steps = list(workflow.next_steps)
            verb = "simulated" if self.config.dry_run else "completed"
            self.log.info(f"{workflow.title} {verb} successfully")
            for hint in report.next_steps:
                self.log.info(f"Next: {hint}")
        else:
            self.log.error(f"{workflow.title} failed (exit code {int(code)})")
            if self.log.log_file is not None:
                self.log.error(f"See the log for details: {self.log.log_file}")
        return report
