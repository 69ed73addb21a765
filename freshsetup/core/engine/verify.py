"""
Verification engine — re-probe targets and compare against expectations.

Runs after the mutation steps (also after a fatal abort) and produces
the terminal ``VerificationReport``. Each mismatch of a non-advisory
expectation is one issue; the run passes iff there are none.

In dry-run nothing is probed: every expectation is logged as
"Would verify ..." and the report is marked simulated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from freshsetup.core.engine.probe import StateProbe
from freshsetup.core.models.config import RunConfiguration
from freshsetup.core.models.report import VerificationEntry, VerificationReport
from freshsetup.core.models.target import DetectionSnapshot, Expectation, TargetExpectation
from freshsetup.core.observability.run_log import RunLogger

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Check:
    """A custom post-condition that isn't a plain Present/Absent probe.

    ``fn`` returns ``(ok, detail)``.
    """

    name: str
    fn: Callable[[], tuple[bool, str]]
    advisory: bool = False


class VerificationEngine:
    def __init__(self, config: RunConfiguration, probe: StateProbe, log: RunLogger):
        self.config = config
        self.probe = probe
        self.log = log

    def verify(
        self,
        expectations: Iterable[TargetExpectation],
        snapshot: DetectionSnapshot,
        checks: Iterable[Check] = (),
    ) -> VerificationReport:
        expectations = list(expectations)
        checks = list(checks)

        if self.config.dry_run:
            return self._simulate(expectations, snapshot, checks)

        self.log.info("Verifying final state...")
        report = VerificationReport()

        for exp in expectations:
            entry = self._verify_target(exp, snapshot)
            report.entries.append(entry)
            if not entry.ok and not entry.advisory:
                report.issues += 1

        for check in checks:
            entry = self._run_check(check)
            report.entries.append(entry)
            if not entry.ok and not entry.advisory:
                report.issues += 1

        if report.issues:
            self.log.error(f"Verification found {report.issues} issue(s)")
        else:
            self.log.info("Verification passed")
        return report

    # ── Internals ────────────────────────────────────────────────

    @staticmethod
    def _expected_state(exp: TargetExpectation, snapshot: DetectionSnapshot) -> str:
        if exp.expect is Expectation.PRESERVE:
            return "present" if snapshot.is_present(exp.target.name) else "absent"
        return exp.expect.value

    def _verify_target(self, exp: TargetExpectation, snapshot: DetectionSnapshot) -> VerificationEntry:
        target = exp.target
        result = self.probe.detect(target)
        expected = self._expected_state(exp, snapshot)
        ok = result.state == expected
        version = self.probe.version(target) if result.present else None

        entry = VerificationEntry(
            target=target.name,
            locator=result.location or target.locator,
            expected=expected,
            actual=result.state,
            version=version,
            ok=ok,
            advisory=exp.advisory,
        )

        if ok:
            suffix = f" ({version})" if version else ""
            self.log.info(f"OK: {target.name} is {result.state}{suffix}")
        elif exp.advisory:
            self.log.warning(f"{target.name} is {result.state}, expected {expected}: {target.locator}")
        else:
            self.log.error(f"{target.name} is {result.state}, expected {expected}: {target.locator}")
        return entry

    def _run_check(self, check: Check) -> VerificationEntry:
        try:
            ok, detail = check.fn()
        except Exception as e:
            logger.debug("Check %s raised", check.name, exc_info=True)
            ok, detail = False, f"check raised {type(e).__name__}: {e}"

        if ok:
            self.log.info(f"OK: {check.name}" + (f" ({detail})" if detail else ""))
        elif check.advisory:
            self.log.warning(f"{check.name} failed: {detail}")
        else:
            self.log.error(f"{check.name} failed: {detail}")

        return VerificationEntry(
            target=check.name,
            expected="pass",
            actual="pass" if ok else "fail",
            ok=ok,
            advisory=check.advisory,
            detail=detail,
        )

    def _simulate(
        self,
        expectations: list[TargetExpectation],
        snapshot: DetectionSnapshot,
        checks: list[Check],
    ) -> VerificationReport:
        self.log.dry_run("Would verify final state")
        report = VerificationReport(simulated=True)
        for exp in expectations:
            expected = self._expected_state(exp, snapshot)
            self.log.detect(f"Would verify {exp.target.name} is {expected}: {exp.target.locator}")
            report.entries.append(
                VerificationEntry(
                    target=exp.target.name,
                    locator=exp.target.locator,
                    expected=expected,
                    actual="not checked",
                    advisory=exp.advisory,
                )
            )
        for check in checks:
            self.log.detect(f"Would check {check.name}")
            report.entries.append(
                VerificationEntry(target=check.name, expected="pass", actual="not checked")
            )
        return report
