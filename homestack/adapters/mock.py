"""
Mock executor — scripted test double for every command the installer runs.

Used by the test-suite and by ``homestack install --mock`` to walk the
whole pipeline without touching the host.  Every command succeeds with
empty output unless a response was registered for a matching pattern.
"""

from __future__ import annotations

import re
from typing import Mapping

from homestack.adapters.base import CommandExecutor
from homestack.core.models.outcome import ExecutionOutcome


class MockExecutor(CommandExecutor):
    """Mock executor for testing.

    Responses are registered against regular expressions searched in the
    command string.  Later registrations win over earlier ones, so a
    broad default can be narrowed afterwards.
    """

    def __init__(
        self,
        available: bool = True,
        default_output: str = "",
        default_timeout: int = 30,
    ):
        super().__init__(default_timeout=default_timeout)
        self._available = available
        self._default_output = default_output
        self._responses: list[tuple[re.Pattern[str], int, str, str]] = []
        self._call_log: list[str] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def call_log(self) -> list[str]:
        """Every command string this mock has received, in order."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    def is_available(self) -> bool:
        return self._available

    def set_response(
        self,
        pattern: str,
        stdout: str = "",
        exit_code: int = 0,
        stderr: str = "",
    ) -> None:
        """Script the result of commands matching ``pattern``."""
        self._responses.append((re.compile(pattern), exit_code, stdout, stderr))

    def set_failure(self, pattern: str, stderr: str = "Mock failure", exit_code: int = 1) -> None:
        """Configure commands matching ``pattern`` to fail."""
        self.set_response(pattern, exit_code=exit_code, stderr=stderr)

    def calls_matching(self, pattern: str) -> list[str]:
        rx = re.compile(pattern)
        return [c for c in self._call_log if rx.search(c)]

    def _run(
        self,
        command: str,
        cwd: str | None,
        env: Mapping[str, str] | None,
        timeout: int,
    ) -> ExecutionOutcome:
        self._call_log.append(command)

        for rx, exit_code, stdout, stderr in reversed(self._responses):
            if rx.search(command):
                return ExecutionOutcome(
                    command=command,
                    exit_code=exit_code,
                    stdout=stdout,
                    stderr=stderr,
                )

        return ExecutionOutcome.ok(command, stdout=self._default_output)

    def reset(self) -> None:
        """Clear call log and scripted responses."""
        self._call_log.clear()
        self._responses.clear()
