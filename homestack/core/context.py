"""
Run context — everything one installation run shares, built once.

The detected container runtime and the service-instance cache live here,
not in module globals: each run (and each test) builds its own context
with ``build_context`` and passes it to the orchestrator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from homestack.adapters.base import CommandExecutor
from homestack.adapters.containers.runtime import ContainerRuntimeAdapter
from homestack.adapters.distribution.base import DistributionStrategy
from homestack.adapters.distribution.strategy import get_strategy
from homestack.core.config.template_loader import TemplateSource
from homestack.core.data import DataRegistry
from homestack.core.engine.cancellation import CancellationToken
from homestack.core.models.config import HomelabConfig
from homestack.core.services.config_files import ConfigFileGenerator
from homestack.core.services.lifecycle import ServiceLifecycleManager
from homestack.core.services.recovery import RecoveryManager
from homestack.core.services.registry import ServiceRegistry

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    config: HomelabConfig
    executor: CommandExecutor
    runtime: ContainerRuntimeAdapter
    templates: TemplateSource
    registry: ServiceRegistry
    lifecycle: ServiceLifecycleManager
    recovery: RecoveryManager
    distribution: DistributionStrategy
    config_files: ConfigFileGenerator
    cancel: CancellationToken
    mock: bool = False


def build_context(
    config: HomelabConfig,
    executor: CommandExecutor | None = None,
    *,
    mock: bool = False,
    cancel: CancellationToken | None = None,
    catalog: DataRegistry | None = None,
) -> RunContext:
    """Wire up every collaborator for one run.

    Args:
        config: Validated homelab configuration.
        executor: Defaults to a ``MockExecutor`` when ``mock`` is set,
            otherwise a ``ShellExecutor``.
        mock: Simulate every command instead of touching the host.
        cancel: Token the CLI's signal handlers set.
        catalog: Service catalog; defaults to the packaged one.

    Raises:
        DistributionError: ``config.distribution`` has no recipe.
    """
    if executor is None:
        if mock:
            from homestack.adapters.mock import MockExecutor

            executor = MockExecutor(default_timeout=config.command_timeout)
        else:
            from homestack.adapters.shell.command import ShellExecutor

            executor = ShellExecutor(default_timeout=config.command_timeout)

    cancel = cancel or CancellationToken()
    templates = TemplateSource(config.templates_dir)
    runtime = ContainerRuntimeAdapter(executor, preferred=config.runtime)

    logger.debug("Built run context (executor=%s, mock=%s)", executor.name, mock)
    return RunContext(
        config=config,
        executor=executor,
        runtime=runtime,
        templates=templates,
        registry=ServiceRegistry(config, templates, catalog),
        lifecycle=ServiceLifecycleManager(executor, runtime, config, cancel),
        recovery=RecoveryManager(),
        distribution=get_strategy(config.distribution, executor),
        config_files=ConfigFileGenerator(config.config_path),
        cancel=cancel,
        mock=mock,
    )
