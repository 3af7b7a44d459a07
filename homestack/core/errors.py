"""
Error taxonomy — every failure the installer can report.

All errors derive from ``HomestackError`` and carry a stable ``code``,
a ``recoverable`` flag and a free-form ``context`` dict.  The CLI prints
``message`` (plus ``hint`` when present); ``to_dict()`` is used for
``--json`` output and the audit ledger.

Classification:
    CircularDependencyError   fatal, raised before any command runs
    RuntimeDetectionError     fatal, no usable container engine
    TemplateError             fatal for service templates
    ServiceInstallationError  fatal unless ``recoverable`` is set
    ShellExecutionError       recoverable unless marked otherwise
    InstallationCancelled     operator interrupt
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from homestack.core.models.outcome import ExecutionOutcome


class HomestackError(Exception):
    """Base class for all installer errors."""

    code = "HOMESTACK_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        recoverable: bool = False,
        context: dict[str, Any] | None = None,
        hint: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.recoverable = recoverable
        self.context = context or {}
        self.hint = hint

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "recoverable": self.recoverable,
        }
        if self.hint:
            data["hint"] = self.hint
        if self.context:
            data["context"] = self.context
        return data


class ConfigError(HomestackError):
    """Raised when homelab.yml is missing, unreadable or invalid."""

    code = "CONFIG_INVALID"


class CircularDependencyError(HomestackError):
    """Service dependencies form a cycle; the run cannot be ordered."""

    code = "CIRCULAR_DEPENDENCY"

    def __init__(self, cycle: list[str]):
        self.cycle = list(cycle)
        super().__init__(
            f"Circular dependency detected: {' → '.join(self.cycle)}",
            context={"cycle": self.cycle},
        )


class ServiceInstallationError(HomestackError):
    """A service failed to install or configure.

    ``recoverable`` distinguishes "log and continue the run" from
    "abort the run".
    """

    code = "SERVICE_INSTALL_FAILED"

    def __init__(
        self,
        service: str,
        cause: str,
        *,
        recoverable: bool = False,
        phase: str = "",
        command: str = "",
        hint: str | None = None,
    ):
        self.service = service
        self.cause = cause
        self.phase = phase
        self.command = command
        super().__init__(
            f"Failed to {phase or 'install'} {service}: {cause}",
            recoverable=recoverable,
            context={"service": service, "phase": phase, "command": command, "cause": cause},
            hint=hint,
        )


class RuntimeDetectionError(HomestackError):
    """Neither container engine is installed and responding."""

    code = "RUNTIME_NOT_AVAILABLE"

    def __init__(self, message: str, suggestions: list[str] | None = None):
        self.suggestions = suggestions or []
        super().__init__(
            message,
            context={"suggestions": self.suggestions},
            hint="\n".join(self.suggestions) or None,
        )


class TemplateError(HomestackError):
    """A template is malformed or cannot be read."""

    code = "TEMPLATE_ERROR"

    def __init__(self, template: str, cause: str):
        self.template = template
        super().__init__(
            f"Template error in {template}: {cause}",
            context={"template": template, "cause": cause},
        )


class TemplateNotFoundError(TemplateError):
    """No template file exists for the requested id."""

    code = "TEMPLATE_NOT_FOUND"


class TemplateVariableError(TemplateError):
    """A template references placeholders the install context does not define."""

    code = "TEMPLATE_VARIABLE_MISSING"

    def __init__(self, template: str, missing: list[str]):
        self.missing = sorted(missing)
        super().__init__(
            template,
            f"unresolved placeholders: {', '.join('{{' + m + '}}' for m in self.missing)}",
        )


class ShellExecutionError(HomestackError):
    """A shell command exited non-zero while the caller asked to check it."""

    code = "SHELL_EXECUTION_FAILED"

    def __init__(self, outcome: ExecutionOutcome, *, recoverable: bool = True):
        self.outcome = outcome
        super().__init__(
            f"Shell command failed: {outcome.command} (exit code: {outcome.exit_code})",
            recoverable=recoverable,
            context={
                "command": outcome.command,
                "exit_code": outcome.exit_code,
                "stderr": outcome.stderr[-500:],
            },
        )


class DistributionError(HomestackError):
    """A distribution setup step (runtime install, firewall, DNS) failed."""

    code = "DISTRIBUTION_STEP_FAILED"

    def __init__(self, distribution: str, step: str, cause: str):
        self.distribution = distribution
        self.step = step
        super().__init__(
            f"{distribution}: {step} failed: {cause}",
            context={"distribution": distribution, "step": step, "cause": cause},
        )


class InstallationCancelled(HomestackError):
    """The operator interrupted the run."""

    code = "CANCELLED"

    def __init__(self, reason: str = "Installation interrupted by operator"):
        super().__init__(reason, recoverable=False)


def is_recoverable(error: BaseException) -> bool:
    """Whether an error allows the overall run to continue."""
    return isinstance(error, HomestackError) and error.recoverable


def error_code(error: BaseException) -> str:
    if isinstance(error, HomestackError):
        return error.code
    return "UNKNOWN_ERROR"
