"""
Domain models — Pydantic types for the installer.

    from homestack.core.models import HomelabConfig, ServiceDescriptor, ExecutionOutcome
"""

from homestack.core.models.config import HomelabConfig
from homestack.core.models.outcome import (
    ExecutionOutcome,
    FailureClass,
    StepResult,
)
from homestack.core.models.service import (
    ConfigFileTemplate,
    ConfigTemplate,
    GeneratedFile,
    ServiceDescriptor,
    ServiceState,
    ServiceTemplate,
    TemplateCommands,
)

__all__ = [
    "ConfigFileTemplate",
    "ConfigTemplate",
    "ExecutionOutcome",
    "FailureClass",
    "GeneratedFile",
    "HomelabConfig",
    "ServiceDescriptor",
    "ServiceState",
    "ServiceTemplate",
    "StepResult",
    "TemplateCommands",
]
