"""
Adapter registry — lookup and dispatch for package-manager backends.

The synchronizer never calls an adapter's ``execute`` directly; every
mutation goes through ``execute_action`` so dry-run and validation are
applied in exactly one place.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from modsync.adapters.base import ExecutionContext, PackageAdapter
from modsync.core.models.action import Action, Receipt
from modsync.core.models.errors import ErrorRecord

logger = logging.getLogger(__name__)


class AdapterRegistry:
    """Central registry and dispatcher for package adapters."""

    def __init__(self) -> None:
        self._adapters: dict[str, PackageAdapter] = {}

    def register(self, adapter: PackageAdapter) -> None:
        """Register an adapter under its name."""
        name = adapter.name
        if name in self._adapters:
            logger.warning("Overwriting existing adapter: %s", name)
        self._adapters[name] = adapter
        logger.debug("Registered adapter: %s", name)

    def unregister(self, name: str) -> None:
        """Remove an adapter from the registry."""
        self._adapters.pop(name, None)

    def get(self, name: str) -> PackageAdapter | None:
        """Look up an adapter by name."""
        return self._adapters.get(name)

    def list_adapters(self) -> list[str]:
        """List all registered adapter names."""
        return list(self._adapters.keys())

    def adapter_status(self) -> dict[str, dict[str, Any]]:
        """Availability of every registered backend, keyed by adapter name.

        Backends that wrap an external program also report which
        ``executable`` they would launch.
        """
        status = {}
        for name, adapter in self._adapters.items():
            try:
                available = adapter.is_available()
            except Exception as e:
                logger.warning("Availability check for %s failed: %s", name, e)
                available = False
            entry: dict[str, Any] = {
                "name": name,
                "available": available,
                "type": type(adapter).__name__,
            }
            executable = getattr(adapter, "executable", None)
            if executable:
                entry["executable"] = executable
            status[name] = entry
        return status

    def execute_action(self, action: Action, dry_run: bool = False) -> Receipt:
        """Execute a mutating action through the appropriate adapter.

        1. Resolves the adapter
        2. Validates the action
        3. Executes, or returns a skip receipt in dry-run
        4. Returns a Receipt (never raises)
        """
        start_time = time.monotonic()
        context = ExecutionContext(action=action, dry_run=dry_run)

        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"No adapter registered for '{action.adapter}'",
                record=ErrorRecord(
                    message=f"No adapter registered for '{action.adapter}'",
                    reason="AdapterNotFound",
                    target=action.target,
                ),
            )

        # Validate
        try:
            is_valid, error_msg = adapter.validate(context)
        except Exception as e:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation error: {e}",
                record=ErrorRecord.from_exception(e, target=action.target),
            )
        if not is_valid:
            return Receipt.failure(
                adapter=action.adapter,
                action_id=action.id,
                error=f"Validation failed: {error_msg}",
                record=ErrorRecord(
                    message=error_msg,
                    reason="InvalidArgument",
                    target=action.target,
                ),
            )

        # Dry run: validated, not executed
        if dry_run:
            return Receipt.skip(
                adapter=action.adapter,
                action_id=action.id,
                reason=f"[dry-run] Would {action.kind} {action.target}",
                metadata={"dry_run": True},
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
                record=ErrorRecord.from_exception(e, target=action.target),
            )

        receipt.duration_ms = int((time.monotonic() - start_time) * 1000)
        return receipt
