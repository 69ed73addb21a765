"""
Action, Receipt and ActionRecord models — the execution contract.

Actions represent requested system mutations. Receipts represent what
an adapter observed while performing one attempt. ActionRecords are the
executor's final word on an action: how many attempts it took, whether
it was simulated, and how it ended.

Adapters return Receipts. Never exceptions.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class Action(BaseModel):
    """A requested operation to be executed by an adapter.

    The engine never inspects params; only the adapter named by
    ``adapter`` knows what they mean.
    """

    id: str                         # unique action identifier
    adapter: str                    # which adapter handles this
    params: dict[str, Any] = Field(default_factory=dict)


class Receipt(BaseModel):
    """Result of a single adapter attempt.

    The adapter NEVER raises exceptions — failures are captured here,
    with the underlying exit status in ``metadata["return_code"]``
    when there is one.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """Whether the action succeeded."""
        return self.status == "ok"

    @property
    def failed(self) -> bool:
        """Whether the action failed."""
        return self.status == "failed"

    @property
    def return_code(self) -> int | None:
        """Underlying exit status, if the adapter reported one."""
        code = self.metadata.get("return_code")
        return code if isinstance(code, int) else None

    @classmethod
    def success(
        cls,
        adapter: str,
        action_id: str,
        output: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a success receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="ok",
            output=output,
            **kwargs,
        )

    @classmethod
    def failure(
        cls,
        adapter: str,
        action_id: str,
        error: str,
        **kwargs: Any,
    ) -> Receipt:
        """Create a failure receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="failed",
            error=error,
            **kwargs,
        )

    @classmethod
    def skip(
        cls,
        adapter: str,
        action_id: str,
        reason: str = "",
        **kwargs: Any,
    ) -> Receipt:
        """Create a skip receipt."""
        return cls(
            adapter=adapter,
            action_id=action_id,
            status="skipped",
            output=reason,
            **kwargs,
        )


Outcome = Literal["success", "failed", "skipped", "simulated"]


class ActionRecord(BaseModel):
    """One attempted mutation, as seen by the workflow.

    Built by the executor once the action has finished (or been
    skipped/simulated) and frozen from then on. The orchestrator keeps
    these in execution order.
    """

    model_config = ConfigDict(frozen=True)

    step: str = ""
    description: str
    command: str = ""
    adapter: str = ""
    outcome: Outcome
    attempts: int = 0
    simulated: bool = False
    exit_code: int | None = None
    error: str | None = None
    reason: str = ""
    output: str = ""
    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)

    @property
    def ok(self) -> bool:
        """Success for sequencing purposes (simulated counts as success)."""
        return self.outcome in ("success", "simulated")

    @property
    def failed(self) -> bool:
        return self.outcome == "failed"

    @property
    def skipped(self) -> bool:
        return self.outcome == "skipped"
