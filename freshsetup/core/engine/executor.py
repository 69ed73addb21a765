"""
Action executor — run (or simulate) one system mutation.

Every mutation a workflow performs goes through ``perform``:

    dry-run   DRY-RUN <description>
              DETECT  Would execute: <rendered command>
              -> outcome "simulated" (counts as success)

    real      INFO    <description>
              attempt 1..N through the adapter registry
              WARNING per failed attempt that will be retried
              ERROR   once, when the last attempt fails
              -> outcome "success" | "skipped" | "failed"

The description line is identical in both modes so a dry-run log reads
as the same plan the real run executes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from datetime import UTC, datetime

from freshsetup.adapters.registry import AdapterRegistry
from freshsetup.core.models.action import Action, ActionRecord, Receipt
from freshsetup.core.models.config import RetryPolicy, RunConfiguration
from freshsetup.core.observability.run_log import ACTION_TAG, RunLogger

logger = logging.getLogger(__name__)

_SINGLE_ATTEMPT = RetryPolicy(max_attempts=1, backoff_seconds=0)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _first_line(text: str | None) -> str:
    return (text or "").strip().splitlines()[0] if (text or "").strip() else ""


class ActionExecutor:
    """Dry-run interception and retry-with-backoff around the registry."""

    def __init__(
        self,
        config: RunConfiguration,
        registry: AdapterRegistry,
        log: RunLogger,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config
        self.registry = registry
        self.log = log
        self._sleep = sleep

    def perform(
        self,
        description: str,
        action: Action,
        retry: RetryPolicy | None = None,
        step: str = "",
    ) -> ActionRecord:
        """Execute ``action`` (or simulate it) and return its record.

        ``retry`` of None means a single attempt.
        """
        command = self.registry.render(action)

        if self.config.dry_run:
            self.log.dry_run(description, tag=ACTION_TAG)
            self.log.detect(f"Would execute: {command}")
            return ActionRecord(
                step=step,
                description=description,
                command=command,
                adapter=action.adapter,
                outcome="simulated",
                simulated=True,
            )

        self.log.info(description, tag=ACTION_TAG)
        policy = retry or _SINGLE_ATTEMPT
        started_at = _now_iso()

        attempt = 1
        receipt = self._attempt(action, attempt, policy)
        while receipt.failed and attempt < policy.max_attempts:
            code = receipt.return_code if receipt.return_code is not None else 1
            self.log.warning(
                f"Command failed (exit code {code}), retrying in "
                f"{policy.backoff_seconds:g}s... (attempt {attempt}/{policy.max_attempts})"
            )
            self._sleep(policy.backoff_seconds)
            attempt += 1
            receipt = self._attempt(action, attempt, policy)

        if not receipt.failed and attempt > 1:
            self.log.info(f"Command succeeded on attempt {attempt}")
        return self._finish(description, action, step, command, receipt, attempt, policy, started_at)

    def _attempt(self, action: Action, attempt: int, policy: RetryPolicy) -> Receipt:
        receipt = self.registry.execute_action(action, attempt=attempt)
        logger.debug(
            "%s attempt %d/%d -> %s (%dms)",
            action.id, attempt, policy.max_attempts, receipt.status, receipt.duration_ms,
        )
        return receipt

    def _finish(
        self,
        description: str,
        action: Action,
        step: str,
        command: str,
        receipt: Receipt,
        attempts: int,
        policy: RetryPolicy,
        started_at: str,
    ) -> ActionRecord:
        base = {
            "step": step,
            "description": description,
            "command": command,
            "adapter": action.adapter,
            "attempts": attempts,
            "exit_code": receipt.return_code,
            "output": receipt.output,
            "started_at": started_at,
            "ended_at": _now_iso(),
        }

        if receipt.failed:
            code = receipt.return_code if receipt.return_code is not None else 1
            detail = _first_line(receipt.error)
            if policy.max_attempts > 1:
                message = f"All {policy.max_attempts} attempts failed. Last exit code: {code}"
            else:
                message = f"Command failed (exit code {code})"
            self.log.error(f"{message}: {detail}" if detail else message)
            return ActionRecord(**{**base, "exit_code": code}, outcome="failed", error=receipt.error)

        if receipt.status == "skipped":
            self.log.info(f"Skipped: {receipt.output}")
            return ActionRecord(**base, outcome="skipped", reason=receipt.output)

        for warning in receipt.metadata.get("warnings") or []:
            self.log.warning(warning)
        if receipt.output:
            logger.debug("%s: %s", action.id, receipt.output)
        return ActionRecord(**base, outcome="success")
