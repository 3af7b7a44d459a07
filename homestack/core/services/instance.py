"""
Service instance — a descriptor bound to live configuration for one run.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from homestack.core.config.template_loader import TemplateSource
from homestack.core.models.config import HomelabConfig
from homestack.core.models.service import ServiceDescriptor, ServiceState, ServiceTemplate


@dataclass
class ServiceInstance:
    """Runtime object for one selected service.

    Owned by the ``ServiceRegistry``; the lifecycle manager mutates
    ``state`` as it drives the instance.
    """

    descriptor: ServiceDescriptor
    config: HomelabConfig
    templates: TemplateSource
    state: ServiceState = ServiceState.NOT_LOADED
    template: ServiceTemplate | None = None
    failure: str = ""
    diagnostics: list[str] = field(default_factory=list)
    started_container: bool = False   # True when this run created the container

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def type_id(self) -> str:
        return self.descriptor.type_id

    @property
    def is_core(self) -> bool:
        return self.descriptor.is_core

    @property
    def dependencies(self) -> tuple[str, ...]:
        return self.descriptor.dependencies

    @property
    def container_name(self) -> str:
        return self.descriptor.type_id

    @property
    def failed(self) -> bool:
        return self.state is ServiceState.FAILED

    def load_template(self) -> ServiceTemplate:
        """Load and cache the command template."""
        if self.template is None:
            self.template = self.templates.load(self.type_id)
            if self.state is ServiceState.NOT_LOADED:
                self.state = ServiceState.TEMPLATE_LOADED
        return self.template

    def mark_failed(self, reason: str, diagnostics: list[str] | None = None) -> None:
        self.state = ServiceState.FAILED
        self.failure = reason
        if diagnostics:
            self.diagnostics.extend(diagnostics)

    def __repr__(self) -> str:
        return f"<ServiceInstance {self.type_id} state={self.state.value}>"
