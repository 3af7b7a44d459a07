"""
Config check use case — validate homelab.yml and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from homestack.core.config.loader import (
    CONFIG_FILE,
    find_config_file,
    load_config,
    validate_selection,
)
from homestack.core.config.template_loader import TemplateSource
from homestack.core.data import DataRegistry, get_registry
from homestack.core.errors import CircularDependencyError, ConfigError
from homestack.core.models.config import HomelabConfig
from homestack.core.services.ordering import resolve_installation_order, unmet_dependencies


@dataclass
class ConfigCheckResult:
    """Result of configuration validation."""

    valid: bool = False
    config: HomelabConfig | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "domain": self.config.domain if self.config else None,
            "services": self.config.services if self.config else [],
        }


def check_config(
    config_path: Path | None = None,
    catalog: DataRegistry | None = None,
) -> ConfigCheckResult:
    """Validate configuration, service selection and templates.

    Args:
        config_path: Optional explicit path to homelab.yml.
        catalog: Service catalog; defaults to the packaged one.
    """
    result = ConfigCheckResult()
    catalog = catalog or get_registry()

    if config_path is None:
        config_path = find_config_file()
    if config_path is None:
        result.errors.append(f"No {CONFIG_FILE} found.")
        return result
    result.config_path = config_path

    try:
        config = load_config(config_path)
        result.config = config
    except ConfigError as e:
        result.errors.append(e.message)
        return result

    result.errors.extend(validate_selection(config, catalog))

    selected = [catalog.get(t) for t in config.services]
    descriptors = catalog.core_services + [d for d in selected if d is not None and not d.is_core]

    try:
        resolve_installation_order(descriptors)
    except CircularDependencyError as e:
        result.errors.append(e.message)

    for name, missing in unmet_dependencies(descriptors).items():
        result.warnings.append(
            f"{name} depends on {', '.join(missing)}, which is not selected "
            "(it must already be running)"
        )

    templates = TemplateSource(config.templates_dir)
    for d in descriptors:
        if not templates.exists(d.type_id):
            result.errors.append(f"No command template for {d.name} ({d.type_id})")

    if not config.services:
        result.warnings.append("No optional services selected; only core services will be installed.")
    if not config.configure_dns:
        result.warnings.append("configure_dns is off; clients need hosts-file entries.")

    result.valid = not result.errors
    return result
