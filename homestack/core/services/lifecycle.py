"""
Service lifecycle manager — drives one service through install → configure.

Behaviour per service comes from its template; this manager is the only
code path.  Per-instance states::

    NOT_LOADED → TEMPLATE_LOADED → ALREADY_RUNNING (short-circuit)
                                 → INSTALLING → INSTALLED
                                 → CONFIGURING → CONFIGURED
    any step → FAILED

Failures are classified, not guessed at by callers: a recoverable skip
marks the instance FAILED and returns a skipped ``StepResult``; anything
else raises ``ServiceInstallationError`` (or the ``TemplateError`` that
caused it) for the orchestrator to roll back.
"""

from __future__ import annotations

import logging
from typing import Callable, Literal

from homestack.adapters.base import NO_TIMEOUT, CommandExecutor
from homestack.adapters.containers.runtime import ContainerRuntimeAdapter
from homestack.core.engine.cancellation import CancellationToken
from homestack.core.errors import ServiceInstallationError, TemplateVariableError
from homestack.core.models.config import HomelabConfig
from homestack.core.models.outcome import ExecutionOutcome, FailureClass, StepResult
from homestack.core.models.service import ServiceState, ServiceTemplate
from homestack.core.services.failure_analysis import (
    classify_failure,
    collect_diagnostics,
    is_runtime_operation,
    port_in_use,
    suggest_remediation,
)
from homestack.core.services.instance import ServiceInstance
from homestack.core.services.interpolation import (
    build_install_context,
    context_keys,
    render,
    render_all,
)

logger = logging.getLogger(__name__)

Phase = Literal["install", "configure"]

_DONE_STATES = (ServiceState.INSTALLED, ServiceState.CONFIGURED, ServiceState.ALREADY_RUNNING)


class ServiceLifecycleManager:
    """Install and configure service instances through the executor.

    Args:
        executor: Runs every command.
        runtime: Rewrites commands for the detected engine and answers
            container/network/image queries.
        config: Source of placeholder values.
        cancel: Checked before each command and after each failure.
        port_probe: Used by diagnostics to test host ports.
    """

    def __init__(
        self,
        executor: CommandExecutor,
        runtime: ContainerRuntimeAdapter,
        config: HomelabConfig,
        cancel: CancellationToken | None = None,
        port_probe: Callable[[int], bool] = port_in_use,
    ):
        self._executor = executor
        self._runtime = runtime
        self._config = config
        self._cancel = cancel or CancellationToken()
        self._port_probe = port_probe

    # ── Install ─────────────────────────────────────────────────

    def install(self, instance: ServiceInstance) -> StepResult:
        """Pull and prepare a service: install commands, then setup commands.

        Raises:
            TemplateError: template missing, malformed, or referencing
                placeholders the context cannot supply.
            ServiceInstallationError: a command failed fatally.
            InstallationCancelled: the operator interrupted the run.
        """
        if instance.state in _DONE_STATES:
            logger.debug("%s already %s, nothing to install", instance.name, instance.state.value)
            return self._short_circuit(instance, "install")

        if instance.failed:
            return StepResult.skip(
                instance.name, instance.type_id, "install",
                f"skipped: {instance.failure}",
            )

        template = self._load(instance)

        if self._runtime.container_exists(instance.container_name):
            logger.info("⏭️  %s container already exists, skipping installation", instance.name)
            instance.state = ServiceState.ALREADY_RUNNING
            return StepResult.already_running(instance.name, instance.type_id, "install")

        logger.info("📦 Installing %s...", instance.name)
        context = build_install_context(self._config, instance.name)
        commands = render_all([*template.install, *template.setup], context, instance.type_id)

        instance.state = ServiceState.INSTALLING
        count, skipped = self._run_commands(instance, "install", commands)
        if skipped is not None:
            return skipped

        instance.state = ServiceState.INSTALLED
        logger.info("✅ %s installed", instance.name)
        return StepResult.success(instance.name, instance.type_id, "install", commands_run=count)

    # ── Configure ───────────────────────────────────────────────

    def configure(self, instance: ServiceInstance) -> StepResult:
        """Start the service with a freshly generated install context."""
        if instance.failed:
            logger.info("⏭️  %s failed earlier in this run, not configuring", instance.name)
            return StepResult.skip(
                instance.name, instance.type_id, "configure",
                f"skipped: {instance.failure}",
            )

        if instance.state in (ServiceState.ALREADY_RUNNING, ServiceState.CONFIGURED):
            return self._short_circuit(instance, "configure")

        template = self._load(instance)

        if instance.state is not ServiceState.INSTALLED and self._runtime.container_exists(
            instance.container_name
        ):
            logger.info("⏭️  %s already configured and running, skipping", instance.name)
            instance.state = ServiceState.ALREADY_RUNNING
            return StepResult.already_running(instance.name, instance.type_id, "configure")

        logger.info("⚙️  Configuring %s...", instance.name)
        context = build_install_context(self._config, instance.name)
        command = render(template.run, context, instance.type_id)

        instance.state = ServiceState.CONFIGURING
        count, skipped = self._run_commands(instance, "configure", [command])
        if skipped is not None:
            return skipped

        instance.state = ServiceState.CONFIGURED
        instance.started_container = True
        logger.info("✅ %s configured", instance.name)
        return StepResult.success(instance.name, instance.type_id, "configure", commands_run=count)

    # ── Access URL ──────────────────────────────────────────────

    def get_access_url(self, instance: ServiceInstance) -> str:
        """Where the operator reaches the service once it runs."""
        template = instance.template
        if template is None and instance.templates.exists(instance.type_id):
            template = instance.load_template()

        if template is not None and template.access_url:
            context = build_install_context(self._config, instance.name)
            try:
                return render(template.access_url, context, instance.type_id)
            except TemplateVariableError as e:
                logger.debug("Access URL for %s not renderable: %s", instance.name, e)

        descriptor = instance.descriptor
        if descriptor.subdomain:
            return f"https://{descriptor.subdomain}.{self._config.domain}"
        if descriptor.port:
            return f"http://{self._config.ip}:{descriptor.port}"
        return f"https://{self._config.domain}"

    # ── Internals ───────────────────────────────────────────────

    def _load(self, instance: ServiceInstance) -> ServiceTemplate:
        """Load the template and check its placeholders up front."""
        template = instance.load_template()
        available = context_keys(self._config)
        missing = sorted(template.placeholders() - available)
        if missing:
            instance.mark_failed(f"unresolved placeholders: {', '.join(missing)}")
            raise TemplateVariableError(instance.type_id, missing)
        return template

    def _short_circuit(self, instance: ServiceInstance, phase: Phase) -> StepResult:
        if instance.state is ServiceState.ALREADY_RUNNING:
            return StepResult.already_running(instance.name, instance.type_id, phase)
        return StepResult.success(instance.name, instance.type_id, phase, message="already done")

    def _run_commands(
        self,
        instance: ServiceInstance,
        phase: Phase,
        commands: list[str],
    ) -> tuple[int, StepResult | None]:
        """Execute in order, stopping at the first failure.

        Returns the number of commands run and, for a recoverable
        failure, the skip result.
        """
        count = 0
        for command in commands:
            self._cancel.raise_if_cancelled()

            processed = self._runtime.process_command(command)
            if self._runtime.pulls_image(processed):
                self._runtime.check_disk_space()

            # Service commands (image pulls, first starts) are not time-bounded
            outcome = self._executor.execute(processed, timeout=NO_TIMEOUT)
            count += 1
            if outcome.success:
                continue

            # A command killed by the operator's interrupt is a cancellation
            self._cancel.raise_if_cancelled()
            return count, self._handle_failure(instance, phase, outcome, count)

        return count, None

    def _handle_failure(
        self,
        instance: ServiceInstance,
        phase: Phase,
        outcome: ExecutionOutcome,
        count: int,
    ) -> StepResult:
        cause = f"`{outcome.command}` exited with code {outcome.exit_code}: {outcome.error_text}"

        if classify_failure(outcome) is FailureClass.RECOVERABLE_SKIP:
            diagnostics = collect_diagnostics(
                outcome, self._runtime, self._config.network_name, self._port_probe
            )
            instance.mark_failed(cause, diagnostics)
            logger.warning("⚠️  %s: %s step failed, skipping this service", instance.name, phase)
            logger.warning("   %s", cause)
            for line in diagnostics:
                logger.warning("   • %s", line)
            return StepResult.skip(
                instance.name, instance.type_id, phase, cause,
                outcome=outcome, diagnostics=diagnostics, commands_run=count,
            )

        instance.mark_failed(cause)
        remediation = suggest_remediation(outcome, self._config.network_name)
        hint = None
        if remediation:
            hint = f"{remediation['cause']} → {remediation['suggestion']}"
        elif is_runtime_operation(outcome.command):
            hint = f"Inspect the container runtime: `{self._runtime.current_runtime or 'docker'} info`"

        logger.error("✗ %s: %s failed: %s", instance.name, phase, cause)
        raise ServiceInstallationError(
            instance.name,
            cause,
            recoverable=False,
            phase=phase,
            command=outcome.command,
            hint=hint,
        )
