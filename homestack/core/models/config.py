"""
Homelab configuration model.

Everything the installer needs to know about the target host and the
operator's choices, validated once at load time.
"""

from __future__ import annotations

import ipaddress
import re
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

NETWORK_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_-]*$")

DEFAULT_CONFIG_DIR = "~/.homestack/config"
DEFAULT_COMMAND_TIMEOUT = 30


class HomelabConfig(BaseModel):
    """Validated contents of ``homelab.yml``."""

    ip: str
    domain: str
    network_name: str = "homelab"
    storage_password: str | None = Field(default=None, min_length=8)
    services: list[str] = Field(default_factory=list)   # optional type ids

    distribution: str = "ubuntu"
    runtime: Literal["auto", "docker", "podman"] = "auto"
    templates_dir: str | None = None                     # None = packaged templates
    config_dir: str = DEFAULT_CONFIG_DIR
    command_timeout: int = Field(default=DEFAULT_COMMAND_TIMEOUT, ge=0)
    configure_dns: bool = False

    @field_validator("ip")
    @classmethod
    def _valid_ipv4(cls, v: str) -> str:
        try:
            ipaddress.IPv4Address(v.strip())
        except ValueError as e:
            raise ValueError(f"not a valid IPv4 address: {v!r}") from e
        return v.strip()

    @field_validator("domain")
    @classmethod
    def _non_empty_domain(cls, v: str) -> str:
        v = v.strip().rstrip(".").lower()
        if not v:
            raise ValueError("domain must not be empty")
        return v

    @field_validator("network_name")
    @classmethod
    def _valid_network_name(cls, v: str) -> str:
        if not NETWORK_NAME_PATTERN.match(v):
            raise ValueError(
                "network name must start with a letter or digit and contain "
                "only letters, digits, '_' or '-'"
            )
        return v

    @field_validator("services")
    @classmethod
    def _dedupe_services(cls, v: list[str]) -> list[str]:
        seen: list[str] = []
        for item in v:
            key = item.strip().lower()
            if key and key not in seen:
                seen.append(key)
        return seen

    @property
    def config_path(self) -> Path:
        """Expanded directory generated config files are written to."""
        return Path(self.config_dir).expanduser()

    @property
    def state_path(self) -> Path:
        """Directory holding run state (audit ledger), next to config_dir."""
        return self.config_path.parent
