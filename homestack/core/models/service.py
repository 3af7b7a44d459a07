"""
Service models — descriptors, lifecycle states and command templates.

A ``ServiceDescriptor`` is the static identity of an installable unit.
A ``ServiceTemplate`` is the typed command record loaded for it: what to
run to install, set up and start the service.  Behaviour differences
between services live in templates, never in subclasses.
"""

from __future__ import annotations

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


class ServiceDescriptor(BaseModel):
    """Static, immutable definition of one catalog service.

    Attributes:
        name:         Unique display name. Dependencies refer to this.
        type_id:      Stable key; template file name and container name.
        is_core:      Core services are always installed, before optional ones.
        dependencies: Display names of services that must install first.
        subdomain:    Reverse-proxy host label (``<subdomain>.<domain>``).
        port:         Container port the reverse proxy forwards to.
        needs_storage_password: Requires ``storage_password`` in config.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type_id: str
    is_core: bool = False
    dependencies: tuple[str, ...] = ()
    subdomain: str = ""
    port: int | None = None
    needs_storage_password: bool = False
    description: str = ""


class ServiceState(StrEnum):
    """Lifecycle state of a service instance within one run."""

    NOT_LOADED = "not_loaded"
    TEMPLATE_LOADED = "template_loaded"
    ALREADY_RUNNING = "already_running"
    INSTALLING = "installing"
    INSTALLED = "installed"
    CONFIGURING = "configuring"
    CONFIGURED = "configured"
    FAILED = "failed"


class TemplateCommands(BaseModel):
    """The three command groups of a service template."""

    install: list[str] = Field(default_factory=list)
    setup: list[str] = Field(default_factory=list)
    run: str = ""


class ServiceTemplate(BaseModel):
    """Parsed command template for one service.

    Commands are shell strings with ``{{NAME}}`` placeholders resolved
    against the install context right before execution.
    """

    id: str
    description: str = ""
    commands: TemplateCommands = Field(default_factory=TemplateCommands)
    access_url: str = ""

    @property
    def install(self) -> list[str]:
        return self.commands.install

    @property
    def setup(self) -> list[str]:
        return self.commands.setup

    @property
    def run(self) -> str:
        return self.commands.run

    def placeholders(self) -> set[str]:
        """Every placeholder name referenced anywhere in the template."""
        names: set[str] = set()
        for text in [*self.install, *self.setup, self.run, self.access_url]:
            names.update(PLACEHOLDER_PATTERN.findall(text))
        return names


class ConfigFileTemplate(BaseModel):
    """One file of an optional per-service config template."""

    path: str
    content: str


class ConfigTemplate(BaseModel):
    """Optional config files a service wants generated before it starts."""

    id: str
    files: list[ConfigFileTemplate] = Field(default_factory=list)

    def placeholders(self) -> set[str]:
        names: set[str] = set()
        for f in self.files:
            names.update(PLACEHOLDER_PATTERN.findall(f.path))
            names.update(PLACEHOLDER_PATTERN.findall(f.content))
        return names


class GeneratedFile(BaseModel):
    """A config file rendered for a service.

    Attributes:
        path:      Path relative to the config directory.
        content:   Full file content.
        overwrite: Whether an existing file is replaced (after backup).
        reason:    Why this file was generated.
    """

    path: str
    content: str
    overwrite: bool = True
    reason: str = ""
