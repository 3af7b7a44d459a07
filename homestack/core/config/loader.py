"""
Configuration loader — reads homelab.yml into a HomelabConfig.

Reads YAML, fills secrets from the environment, validates against the
Pydantic schema and returns the typed config.  Catalog-level checks
(unknown services, missing storage password) live in
``validate_selection`` so ``config check`` can report them without
aborting on the first one.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from homestack.core.data import DataRegistry, get_registry
from homestack.core.errors import ConfigError
from homestack.core.models.config import HomelabConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "homelab.yml"

# Keeps the storage secret out of the YAML file
ENV_STORAGE_PASSWORD = "HOMESTACK_STORAGE_PASSWORD"


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for homelab.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to homelab.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def read_config_data(path: Path) -> dict:
    """Read the raw mapping from a config file, unwrapping ``homelab:``."""
    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}", context={"path": str(path)})

    logger.debug("Loading homelab config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}", context={"path": str(path)}) from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}", context={"path": str(path)}) from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected a YAML mapping in {path}, got {type(data).__name__}",
            context={"path": str(path)},
        )

    # The YAML may wrap everything under a "homelab" key or be flat
    if isinstance(data.get("homelab"), dict):
        data = data["homelab"]

    return dict(data)


def load_config(path: Path | None = None) -> HomelabConfig:
    """Load and validate the homelab configuration.

    Args:
        path: Explicit path to homelab.yml. If None, searches upward.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(
            f"No {CONFIG_FILE} found. Create one in the current directory, "
            "or specify --config."
        )

    data = read_config_data(path)

    if not data.get("storage_password") and os.environ.get(ENV_STORAGE_PASSWORD):
        data["storage_password"] = os.environ[ENV_STORAGE_PASSWORD]

    try:
        config = HomelabConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid homelab configuration in {path}: {'; '.join(_format_validation(e))}",
            context={"path": str(path), "errors": _format_validation(e)},
        ) from e

    logger.info(
        "Loaded homelab config for %s (%s) with %d optional services",
        config.domain, config.ip, len(config.services),
    )
    return config


def validate_selection(
    config: HomelabConfig,
    catalog: DataRegistry | None = None,
) -> list[str]:
    """Check the selected services against the catalog.

    Returns:
        Human-readable problems; empty when the selection is installable.
    """
    catalog = catalog or get_registry()
    errors: list[str] = []

    for type_id in config.services:
        descriptor = catalog.get(type_id)
        if descriptor is None:
            errors.append(f"Unknown service type: {type_id}")
            continue
        if descriptor.needs_storage_password and not config.storage_password:
            errors.append(
                f"Storage password is required for {descriptor.name} "
                f"(set storage_password or {ENV_STORAGE_PASSWORD})"
            )

    return errors


def _format_validation(error: ValidationError) -> list[str]:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item["loc"]) or "config"
        parts.append(f"{loc}: {item['msg']}")
    return parts
