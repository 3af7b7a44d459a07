"""
Executor base — the contract between the installer and the host shell.

Everything above this layer (runtime adapter, distribution strategies,
lifecycle manager) runs commands only through a ``CommandExecutor``.
Executors return an ``ExecutionOutcome`` for every invocation and never
raise for a non-zero exit unless the caller passes ``check=True``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from typing import Mapping

from homestack.core.errors import ShellExecutionError
from homestack.core.models.outcome import ExecutionOutcome

# Outcomes kept for diagnostics
HISTORY_SIZE = 100

# Passed as ``timeout`` to run a command without a time bound
NO_TIMEOUT = 0


class CommandExecutor(ABC):
    """Abstract base class for command executors.

    To create a new executor:
        1. Subclass CommandExecutor
        2. Implement name, is_available, _run
        3. Pass it to ``build_context``
    """

    def __init__(self, default_timeout: int = 30):
        self.default_timeout = default_timeout
        self._history: deque[ExecutionOutcome] = deque(maxlen=HISTORY_SIZE)

    @property
    @abstractmethod
    def name(self) -> str:
        """Executor identifier (e.g. 'shell', 'mock')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether commands can be run at all. Fast, never raises."""

    @abstractmethod
    def _run(
        self,
        command: str,
        cwd: str | None,
        env: Mapping[str, str] | None,
        timeout: int,
    ) -> ExecutionOutcome:
        """Run one command. MUST NOT raise; failures go in the outcome."""

    def execute(
        self,
        command: str,
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        timeout: int | None = None,
        check: bool = False,
    ) -> ExecutionOutcome:
        """Run a shell command and record its outcome.

        Args:
            command: Shell command string.
            cwd: Working directory.
            env: Extra environment variables, merged over the process env.
            timeout: Seconds. ``None`` uses the executor default,
                ``NO_TIMEOUT`` runs unbounded.
            check: Raise ``ShellExecutionError`` on failure.
        """
        effective = self.default_timeout if timeout is None else timeout
        outcome = self._run(command, cwd, env, effective)
        self._history.append(outcome)
        if check and not outcome.success:
            raise ShellExecutionError(outcome)
        return outcome

    def command_exists(self, name: str) -> bool:
        """Whether ``name`` resolves to an executable on the host."""
        return self.execute(f"command -v {name}", timeout=5).success

    @property
    def history(self) -> list[ExecutionOutcome]:
        """The most recent outcomes, oldest first."""
        return list(self._history)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
