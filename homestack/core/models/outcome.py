"""
Execution outcome and step result models — the execution contract.

``ExecutionOutcome`` is what the command executor returns for every shell
invocation; it never carries an exception.  ``StepResult`` is what the
lifecycle manager returns for one service phase, with an explicit
``FailureClass`` so callers never have to pattern-match error text to
decide whether the run continues.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field, computed_field


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


# Synthetic exit code for invocations that never produced one
# (timeout, spawn failure).
EXIT_NOT_RUN = -1


class ExecutionOutcome(BaseModel):
    """Result of one shell command invocation."""

    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    duration_ms: int = 0
    started_at: str = Field(default_factory=_now_iso)
    timed_out: bool = False

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.timed_out

    @property
    def error_text(self) -> str:
        """Best available description of what went wrong."""
        text = self.stderr.strip() or self.stdout.strip()
        if text:
            return text
        if self.timed_out:
            return "command timed out"
        return f"exit code {self.exit_code}"

    @classmethod
    def ok(cls, command: str, stdout: str = "", **kwargs: Any) -> ExecutionOutcome:
        return cls(command=command, exit_code=0, stdout=stdout, **kwargs)

    @classmethod
    def failed(
        cls,
        command: str,
        stderr: str,
        exit_code: int = 1,
        **kwargs: Any,
    ) -> ExecutionOutcome:
        return cls(command=command, exit_code=exit_code, stderr=stderr, **kwargs)


class FailureClass(StrEnum):
    """How a failed step affects the overall run."""

    FATAL = "fatal"
    RECOVERABLE_SKIP = "recoverable_skip"


class StepResult(BaseModel):
    """Outcome of one lifecycle phase (install or configure) of one service."""

    service: str
    type_id: str
    phase: Literal["install", "configure"]
    status: Literal["ok", "already_running", "skipped", "failed"] = "ok"
    failure_class: FailureClass | None = None

    commands_run: int = 0
    outcome: ExecutionOutcome | None = None   # the failing invocation, if any
    message: str = ""
    diagnostics: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Whether the phase left the service usable."""
        return self.status in ("ok", "already_running")

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @classmethod
    def success(
        cls,
        service: str,
        type_id: str,
        phase: Literal["install", "configure"],
        commands_run: int = 0,
        **kwargs: Any,
    ) -> StepResult:
        return cls(
            service=service,
            type_id=type_id,
            phase=phase,
            status="ok",
            commands_run=commands_run,
            **kwargs,
        )

    @classmethod
    def already_running(
        cls,
        service: str,
        type_id: str,
        phase: Literal["install", "configure"],
    ) -> StepResult:
        return cls(
            service=service,
            type_id=type_id,
            phase=phase,
            status="already_running",
            message="container already exists",
        )

    @classmethod
    def skip(
        cls,
        service: str,
        type_id: str,
        phase: Literal["install", "configure"],
        reason: str,
        **kwargs: Any,
    ) -> StepResult:
        """A recoverable failure: this service stops, the run continues."""
        return cls(
            service=service,
            type_id=type_id,
            phase=phase,
            status="skipped",
            failure_class=FailureClass.RECOVERABLE_SKIP,
            message=reason,
            **kwargs,
        )
