"""
Service registry — lazily instantiates and caches service instances.

One ``ServiceInstance`` per type id per registry.  The registry lives on
the run context, so separate runs (and tests) never share instances.
"""

from __future__ import annotations

import logging

from homestack.core.config.loader import validate_selection
from homestack.core.config.template_loader import TemplateSource
from homestack.core.data import DataRegistry, get_registry
from homestack.core.errors import ConfigError
from homestack.core.models.config import HomelabConfig
from homestack.core.services.instance import ServiceInstance

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Create and cache service instances bound to one configuration."""

    def __init__(
        self,
        config: HomelabConfig,
        templates: TemplateSource,
        catalog: DataRegistry | None = None,
    ):
        self._config = config
        self._templates = templates
        self._catalog = catalog or get_registry()
        self._instances: dict[str, ServiceInstance] = {}

    @property
    def catalog(self) -> DataRegistry:
        return self._catalog

    def get(self, type_id: str) -> ServiceInstance:
        """Return the instance for ``type_id``, creating it on first use.

        Raises:
            ConfigError: ``type_id`` is not in the catalog.
        """
        type_id = type_id.strip().lower()
        if type_id in self._instances:
            return self._instances[type_id]

        descriptor = self._catalog.get(type_id)
        if descriptor is None:
            raise ConfigError(
                f"Unknown service type: {type_id}",
                context={"service": type_id, "available": self._catalog.type_ids},
            )

        instance = ServiceInstance(descriptor=descriptor, config=self._config, templates=self._templates)
        self._instances[type_id] = instance
        logger.debug("Created service instance %s", type_id)
        return instance

    def create_services(self, selected: list[str] | None = None) -> list[ServiceInstance]:
        """Core services first, then the selected optional ones.

        ``selected`` defaults to the configured services.  Duplicates and
        explicitly selected core services appear once.
        """
        selected = self._config.services if selected is None else selected
        type_ids = [d.type_id for d in self._catalog.core_services]
        for type_id in selected:
            key = type_id.strip().lower()
            if key not in type_ids:
                type_ids.append(key)
        return [self.get(type_id) for type_id in type_ids]

    def validate_configuration(self, selected: list[str] | None = None) -> None:
        """Reject unknown services and storage services without a password.

        Raises:
            ConfigError: listing every problem found.
        """
        config = self._config
        if selected is not None:
            config = config.model_copy(update={"services": selected})
        errors = validate_selection(config, self._catalog)
        if errors:
            raise ConfigError(
                "Invalid service selection: " + "; ".join(errors),
                context={"errors": errors},
            )

    def instances(self) -> list[ServiceInstance]:
        """Every instance created so far, in creation order."""
        return list(self._instances.values())

    def clear_cache(self) -> None:
        self._instances.clear()
