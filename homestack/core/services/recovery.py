"""
Recovery manager — ordered rollback of completed side effects.

Steps with externally visible side effects (network created, container
started, config file overwritten) register an undo action as they
complete.  On a fatal failure or operator interrupt the top-level driver
runs them newest first, best-effort: one failing action is logged and
the rest still run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from homestack.core.models.outcome import ExecutionOutcome

logger = logging.getLogger(__name__)


@dataclass
class RollbackAction:
    """A registered undo step.

    ``execute`` may return an ``ExecutionOutcome``; an unsuccessful one
    counts as a failed rollback, as does raising.
    """

    description: str
    execute: Callable[[], Any]


@dataclass
class RollbackReport:
    attempted: int = 0
    succeeded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "errors": self.errors,
        }


class RecoveryManager:
    """Append-only stack of rollback actions owned by one run."""

    def __init__(self) -> None:
        self._actions: list[RollbackAction] = []

    def add(self, description: str, execute: Callable[[], Any]) -> None:
        self._actions.append(RollbackAction(description, execute))
        logger.debug("Registered rollback: %s", description)

    def has_actions(self) -> bool:
        return bool(self._actions)

    @property
    def actions(self) -> list[RollbackAction]:
        return list(self._actions)

    def execute_rollback(self) -> RollbackReport:
        """Run every action in reverse registration order, then clear."""
        report = RollbackReport()
        if not self._actions:
            return report

        logger.warning("🔄 Rolling back %d step(s)...", len(self._actions))
        for action in reversed(self._actions):
            report.attempted += 1
            try:
                result = action.execute()
            except Exception as e:  # noqa: BLE001
                report.failed.append(action.description)
                report.errors.append(f"{action.description}: {e}")
                logger.error("✗ Rollback failed: %s: %s", action.description, e)
                continue

            if isinstance(result, ExecutionOutcome) and not result.success:
                report.failed.append(action.description)
                report.errors.append(f"{action.description}: {result.error_text}")
                logger.error("✗ Rollback failed: %s: %s", action.description, result.error_text)
                continue

            report.succeeded.append(action.description)
            logger.info("↩️  Rolled back: %s", action.description)

        self._actions.clear()
        return report

    def clear(self) -> None:
        self._actions.clear()
