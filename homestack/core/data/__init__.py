"""
Central data registry for the static service catalog.

Loads ``catalogs/services.json`` once at first access and caches the
parsed descriptors for the lifetime of the registry.  The service
registry, config validation and the CLI all read from this single
source of truth.

Usage::

    from homestack.core.data import get_registry

    catalog = get_registry()
    catalog.core_services            # list[ServiceDescriptor]
    catalog.get("postgresql")        # ServiceDescriptor | None
"""

from __future__ import annotations

import json
import logging
from functools import cached_property
from pathlib import Path

from homestack.core.models.service import ServiceDescriptor

logger = logging.getLogger(__name__)

_DATA_DIR = Path(__file__).parent

TEMPLATES_DIR = _DATA_DIR / "templates"


def _load_json(relative_path: str) -> list | dict:
    """Load a JSON file relative to the data directory."""
    path = _DATA_DIR / relative_path
    if not path.exists():
        logger.warning("Data file not found: %s", path)
        return []
    with open(path, encoding="utf-8") as f:
        return json.load(f)


class DataRegistry:
    """Registry of every installable service descriptor.

    ``descriptors`` may be passed explicitly (tests build small
    catalogs, including deliberately cyclic ones); otherwise the
    packaged catalog is loaded lazily.
    """

    def __init__(self, descriptors: list[ServiceDescriptor] | None = None):
        if descriptors is not None:
            self.__dict__["services"] = list(descriptors)

    @cached_property
    def services(self) -> list[ServiceDescriptor]:
        """All catalog entries, core first, in catalog order."""
        data = _load_json("catalogs/services.json")
        services = [ServiceDescriptor.model_validate(item) for item in data]
        logger.debug("Loaded %d service descriptors", len(services))
        return services

    @cached_property
    def _by_type_id(self) -> dict[str, ServiceDescriptor]:
        return {d.type_id: d for d in self.services}

    @property
    def core_services(self) -> list[ServiceDescriptor]:
        return [d for d in self.services if d.is_core]

    @property
    def optional_services(self) -> list[ServiceDescriptor]:
        return [d for d in self.services if not d.is_core]

    @property
    def type_ids(self) -> list[str]:
        return [d.type_id for d in self.services]

    def get(self, type_id: str) -> ServiceDescriptor | None:
        return self._by_type_id.get(type_id.strip().lower())

    def storage_type_ids(self) -> frozenset[str]:
        """Services that refuse to install without a storage password."""
        return frozenset(d.type_id for d in self.services if d.needs_storage_password)


# ── Module-level singleton ───────────────────────────────────────

_registry: DataRegistry | None = None


def get_registry() -> DataRegistry:
    """Return the process-level packaged catalog.

    The catalog is read-only data; run state (detected runtime, service
    instances) lives on the per-run context instead.
    """
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = DataRegistry()
    return _registry
