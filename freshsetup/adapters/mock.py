"""
Mock adapter — universal test double for adapter operations.

Simulates adapter behavior without touching external tools.
Configurable to return success, failure, or custom responses per
action, and to run a side-effect callback so tests can mimic what
the real operation would leave on disk.
"""

from __future__ import annotations

from collections.abc import Callable

from freshsetup.adapters.base import Adapter, ExecutionContext
from freshsetup.core.models.action import Receipt


class MockAdapter(Adapter):
    """Universal mock adapter for testing.

    By default, returns success for everything. Can be configured
    with custom responses, transient failures and side effects per
    action ID.
    """

    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "[mock] executed",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._responses: dict[str, Receipt] = {}
        self._failures_left: dict[str, int] = {}
        self._effects: dict[str, Callable[[ExecutionContext], None]] = {}
        self._default_effect: Callable[[ExecutionContext], None] | None = None
        self._call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[ExecutionContext]:
        """All execution contexts this mock has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        """Number of times execute has been called."""
        return len(self._call_log)

    def calls_for(self, action_id: str) -> int:
        return sum(1 for ctx in self._call_log if ctx.action.id == action_id)

    def is_available(self) -> bool:
        return self._available

    def set_response(self, action_id: str, receipt: Receipt) -> None:
        """Set a custom response for a specific action ID."""
        self._responses[action_id] = receipt

    def set_failure(self, action_id: str, error: str = "Mock failure", return_code: int = 1) -> None:
        """Configure a specific action to always fail."""
        self._responses[action_id] = Receipt.failure(
            adapter=self._name,
            action_id=action_id,
            error=error,
            metadata={"return_code": return_code},
        )

    def fail_times(self, action_id: str, times: int) -> None:
        """Fail the first ``times`` attempts of an action, then succeed."""
        self._failures_left[action_id] = times

    def set_effect(self, action_id: str, effect: Callable[[ExecutionContext], None]) -> None:
        """Run ``effect`` whenever the action executes successfully."""
        self._effects[action_id] = effect

    def set_default_effect(self, effect: Callable[[ExecutionContext], None]) -> None:
        """Run ``effect`` for every successful action without its own effect."""
        self._default_effect = effect

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def render(self, context: ExecutionContext) -> str:
        return f"[mock] {self._name}:{context.action.id}"

    def execute(self, context: ExecutionContext) -> Receipt:
        self._call_log.append(context)
        action_id = context.action.id

        if self._failures_left.get(action_id, 0) > 0:
            self._failures_left[action_id] -= 1
            return Receipt.failure(
                adapter=self._name,
                action_id=action_id,
                error="Mock transient failure",
                metadata={"return_code": 1},
            )

        # Check for custom response
        if action_id in self._responses:
            return self._responses[action_id]

        effect = self._effects.get(action_id, self._default_effect)
        if effect is not None:
            effect(context)

        # Default: success
        return Receipt.success(
            adapter=self._name,
            action_id=action_id,
            output=self._default_output,
            metadata={"mock": True, "return_code": 0},
        )

    def reset(self) -> None:
        """Clear call log, custom responses and effects."""
        self._call_log.clear()
        self._responses.clear()
        self._failures_left.clear()
        self._effects.clear()
        self._default_effect = None
