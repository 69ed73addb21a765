"""
Adapter registry — central dispatch for all adapter operations.

The registry is the single point of adapter management. It handles
registration, lookup, rendering and action execution. The engine
never talks to adapters directly — always through the registry.
"""

from __future__ import annotations

import logging
import time

from freshsetup.adapters.base import Adapter, ExecutionContext
from freshsetup.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry and dispatcher for adapters."""

    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        """Register an adapter, replacing any with the same name."""
        name = adapter.name
        if name in self._adapters:
            logger.debug("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def unregister(self, name: str) -> None:
        """Remove an adapter from the registry."""
        self._adapters.pop(name, None)

    def get(self, name: str) -> Adapter | None:
        """Look up an adapter by name."""
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        """List all registered adapter names."""
        return list(self._adapters.keys())

    def render(self, action: Action) -> str:
        """Describe an action without executing it.

        Falls back to a generic description if the adapter is unknown
        or its renderer fails, so dry-run output never breaks.
        """
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return f"{action.adapter}: {action.params}"
        try:
            return adapter.render(ExecutionContext(action=action))
        except Exception as e:
            logger.debug("Render failed for %s: %s", action.id, e)
            return f"{action.adapter}: {action.params}"

    def execute_action(self, action: Action, attempt: int = 1) -> Receipt:
        """Execute an action through the appropriate adapter.

        This is the main dispatch method. It:
        1. Resolves the adapter and checks it is available
        2. Validates the action
        3. Executes
        4. Returns a Receipt (never raises)
        """
        start_time = time.monotonic()
        context = ExecutionContext(action=action, attempt=attempt)

        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
            )
        try:
            available = adapter.is_available()
        except Exception as e:
            logger.debug("Availability check for %s raised: %s", action.adapter, e)
            available = False
        if not available:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Adapter '{action.adapter}' is not available on this system",
            )

        # Validate
        try:
            is_valid, error_msg = adapter.validate(context)
            if not is_valid:
                return Receipt.failure(
                    adapter=action.adapter,
                    action_id=action.id,
                    error=f"Validation failed: {error_msg}",
                )
        except Exception as e:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation error: {e}",
            )

        # Execute
        try:
            receipt = adapter.execute(context)
        except Exception as e:
            # Adapters should never raise
            logger.error("Adapter %s raised during execution: %s", action.adapter, e)
            receipt = Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Unexpected error: {e}",
            )

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        receipt.duration_ms = elapsed_ms

        return receipt
