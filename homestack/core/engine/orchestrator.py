"""
Orchestrator — the installation run, start to finish.

Flow:
    plan (validate + order) → host setup (runtime, firewall)
    → detect runtime → network → per service: install, config files,
    configure → reconcile (Caddyfile, DNS, access URLs)

Every step with a visible side effect registers a rollback action.  A
fatal error or operator cancellation unwinds them, newest first, then
re-raises to the caller.  Recoverable skips are collected in the report
and the run continues.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from homestack.core.context import RunContext
from homestack.core.errors import (
    DistributionError,
    HomestackError,
    InstallationCancelled,
    ServiceInstallationError,
    TemplateError,
)
from homestack.core.models.outcome import StepResult
from homestack.core.services.config_files import CADDYFILE_PATH
from homestack.core.services.failure_analysis import BENIGN_PATTERNS, suggest_remediation
from homestack.core.services.instance import ServiceInstance
from homestack.core.services.interpolation import build_install_context, render_all
from homestack.core.services.ordering import resolve_installation_order, unmet_dependencies
from homestack.core.services.recovery import RollbackReport

logger = logging.getLogger(__name__)

PROXY_TYPE_ID = "caddy"
_SECRET_KEYS = ("STORAGE_PASSWORD", "ADMIN_TOKEN")
_MASK = "********"


def generate_operation_id() -> str:
    """Generate a unique operation ID."""
    now = datetime.now(UTC).strftime("%Y%m%d-%H%M%S")
    short = uuid.uuid4().hex[:6]
    return f"op-{now}-{short}"


# ── Reports ─────────────────────────────────────────────────────


@dataclass
class InstallPlan:
    """Validated, ordered set of services for one run."""

    order: list[ServiceInstance] = field(default_factory=list)
    unmet: dict[str, list[str]] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "order": [
                {
                    "name": i.name,
                    "type_id": i.type_id,
                    "core": i.is_core,
                    "dependencies": list(i.dependencies),
                }
                for i in self.order
            ],
            "unmet_dependencies": self.unmet,
        }


@dataclass
class InstallReport:
    """Result of an installation run."""

    operation_id: str = ""
    runtime: str = ""
    order: list[str] = field(default_factory=list)
    results: list[StepResult] = field(default_factory=list)
    access_urls: dict[str, str] = field(default_factory=dict)
    skipped: dict[str, list[str]] = field(default_factory=dict)   # name → cause + diagnostics
    warnings: list[str] = field(default_factory=list)
    dns_configured: bool = False
    dns_fallback: str | None = None
    rollback: RollbackReport | None = None
    error: dict | None = None
    duration_ms: int = 0

    @property
    def status(self) -> str:
        if self.error:
            return "failed"
        if self.skipped:
            return "partial"
        return "ok"

    @property
    def commands_run(self) -> int:
        return sum(r.commands_run for r in self.results)

    def to_dict(self) -> dict:
        return {
            "operation_id": self.operation_id,
            "status": self.status,
            "runtime": self.runtime,
            "order": self.order,
            "results": [r.model_dump(mode="json") for r in self.results],
            "access_urls": self.access_urls,
            "skipped": self.skipped,
            "warnings": self.warnings,
            "dns_configured": self.dns_configured,
            "dns_fallback": self.dns_fallback,
            "rollback": self.rollback.to_dict() if self.rollback else None,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


# ── Orchestrator ────────────────────────────────────────────────


class Orchestrator:
    """Sequence a full installation over one ``RunContext``."""

    def __init__(self, ctx: RunContext):
        self._ctx = ctx
        self.report = InstallReport()

    # ── Planning ────────────────────────────────────────────────

    def plan(self, selected: list[str] | None = None) -> InstallPlan:
        """Validate the selection and order it. Runs no commands.

        Raises:
            ConfigError: unknown service or missing storage password.
            CircularDependencyError: the selection cannot be ordered.
        """
        registry = self._ctx.registry
        registry.validate_configuration(selected)
        instances = registry.create_services(selected)
        order = resolve_installation_order(instances)
        unmet = unmet_dependencies(order)
        for name, missing in unmet.items():
            logger.info("%s depends on %s (not selected, assumed available)", name, ", ".join(missing))
        return InstallPlan(order=order, unmet=unmet)

    def preview(self, selected: list[str] | None = None) -> list[dict]:
        """Rendered commands per service, secrets masked. Runs no commands."""
        plan = self.plan(selected)
        preview = []
        for instance in plan.order:
            template = instance.load_template()
            context = build_install_context(self._ctx.config, instance.name)
            for key in _SECRET_KEYS:
                if key in context:
                    context[key] = _MASK
            preview.append({
                "name": instance.name,
                "type_id": instance.type_id,
                "install": render_all([*template.install, *template.setup], context, instance.type_id),
                "run": render_all([template.run], context, instance.type_id)[0],
                "access_url": self._ctx.lifecycle.get_access_url(instance),
            })
        return preview

    # ── Run ─────────────────────────────────────────────────────

    def run(self, selected: list[str] | None = None) -> InstallReport:
        """Install everything. Re-raises fatal errors after rolling back.

        ``self.report`` holds the partial report when an error escapes.
        """
        ctx = self._ctx
        report = InstallReport(operation_id=generate_operation_id())
        self.report = report
        start = time.monotonic()

        try:
            plan = self.plan(selected)
            report.order = [i.name for i in plan.order]

            self._prepare_host()
            report.runtime = ctx.runtime.detect_runtime().value
            for warning in ctx.runtime.runtime_warnings():
                logger.warning("⚠️  %s", warning)
                report.warnings.append(warning)

            self._ensure_network()

            for instance in plan.order:
                ctx.cancel.raise_if_cancelled()
                self._install_service(instance, plan, report)

            self._reconcile(plan, report)

        except KeyboardInterrupt as e:
            cancelled = InstallationCancelled()
            self._fail(report, cancelled)
            raise cancelled from e
        except HomestackError as e:
            self._fail(report, e)
            raise
        except OSError as e:
            error = HomestackError(
                f"Host I/O error: {e}",
                code="HOST_IO_ERROR",
                context={"path": str(e.filename) if e.filename else None},
            )
            self._fail(report, error)
            raise error from e
        else:
            ctx.recovery.clear()
        finally:
            report.duration_ms = int((time.monotonic() - start) * 1000)

        logger.info("🏁 Installation %s in %dms", report.status, report.duration_ms)
        return report

    def _fail(self, report: InstallReport, error: HomestackError) -> None:
        report.error = error.to_dict()
        logger.error("✗ %s", error.message)
        recovery = self._ctx.recovery
        if recovery.has_actions():
            report.rollback = recovery.execute_rollback()
            for line in report.rollback.errors:
                logger.error("   rollback: %s", line)
        else:
            logger.info("Nothing to roll back")

    # ── Host setup ──────────────────────────────────────────────

    def _prepare_host(self) -> None:
        distribution = self._ctx.distribution
        logger.info("🖥️  Preparing %s host...", distribution.name)
        distribution.install_container_runtime()
        self._ctx.cancel.raise_if_cancelled()
        distribution.configure_firewall()
        self._ctx.cancel.raise_if_cancelled()

    def _ensure_network(self) -> None:
        ctx = self._ctx
        name = ctx.config.network_name
        if ctx.runtime.network_exists(name):
            logger.info("🌐 Network %s already exists", name)
            return

        outcome = ctx.runtime.create_network(name)
        if outcome.success:
            logger.info("🌐 Created network %s", name)
            ctx.recovery.add(f"Remove network {name}", lambda: ctx.runtime.remove_network(name))
            return

        if any(p.search(outcome.error_text) for p in BENIGN_PATTERNS):
            logger.info("🌐 Network %s already exists", name)
            return

        remediation = suggest_remediation(outcome, name)
        raise ServiceInstallationError(
            f"network {name}",
            outcome.error_text,
            phase="create",
            command=outcome.command,
            hint=f"{remediation['cause']} → {remediation['suggestion']}" if remediation else None,
        )

    # ── Per service ─────────────────────────────────────────────

    def _install_service(self, instance: ServiceInstance, plan: InstallPlan, report: InstallReport) -> None:
        ctx = self._ctx

        result = ctx.lifecycle.install(instance)
        report.results.append(result)
        if result.skipped:
            report.skipped[instance.name] = [result.message, *result.diagnostics]
            return

        self._write_config_files(instance, plan)

        result = ctx.lifecycle.configure(instance)
        report.results.append(result)
        if result.skipped:
            report.skipped[instance.name] = [result.message, *result.diagnostics]
            return

        if instance.started_container:
            container = instance.container_name
            ctx.recovery.add(
                f"Remove container {container}",
                lambda: ctx.runtime.remove_container(container),
            )

    def _write_config_files(self, instance: ServiceInstance, plan: InstallPlan) -> None:
        """Generate optional config files; template problems only warn."""
        ctx = self._ctx
        context = build_install_context(ctx.config, instance.name)
        try:
            files = ctx.config_files.render_service(instance.type_id, ctx.templates, context)
        except TemplateError as e:
            logger.warning("⚠️  %s: config template ignored: %s", instance.name, e.message)
            files = []

        if instance.type_id == PROXY_TYPE_ID:
            files.append(ctx.config_files.caddyfile(ctx.config, [i.descriptor for i in plan.order]))

        if not files:
            return
        if ctx.mock:
            for f in files:
                logger.info("[mock] would write %s", ctx.config_files.root / f.path)
            return

        written = ctx.config_files.write(files, service=instance.name)
        if written.changed:
            ctx.recovery.add(f"Restore config files for {instance.name}", written.restore)

    # ── Reconcile ───────────────────────────────────────────────

    def _reconcile(self, plan: InstallPlan, report: InstallReport) -> None:
        ctx = self._ctx
        usable = [i for i in plan.order if not i.failed]

        if report.skipped and any(i.type_id == PROXY_TYPE_ID for i in usable):
            self._refresh_proxy(usable)

        if ctx.config.configure_dns:
            try:
                ctx.distribution.configure_dns_resolution(
                    ctx.config.domain, ctx.config.ip, [i.type_id for i in usable]
                )
                report.dns_configured = True
            except DistributionError as e:
                logger.warning("⚠️  DNS setup failed: %s", e.message)
                report.warnings.append(f"DNS setup failed: {e.message}")
                report.dns_fallback = self._hosts_hint(usable)
        else:
            report.dns_fallback = self._hosts_hint(usable)

        for instance in usable:
            report.access_urls[instance.name] = ctx.lifecycle.get_access_url(instance)

    def _refresh_proxy(self, usable: list[ServiceInstance]) -> None:
        """Drop routes for skipped services and reload the proxy. Warning-only."""
        ctx = self._ctx
        caddyfile = ctx.config_files.caddyfile(ctx.config, [i.descriptor for i in usable])
        if ctx.mock:
            logger.info("[mock] would rewrite %s", ctx.config_files.root / CADDYFILE_PATH)
            return
        try:
            ctx.config_files.write([caddyfile], service="Caddy")
        except ServiceInstallationError as e:
            logger.warning("⚠️  Could not refresh Caddy routes: %s", e.cause)
            return
        outcome = ctx.runtime.reload_container(
            PROXY_TYPE_ID, "caddy reload --config /etc/caddy/Caddyfile"
        )
        if not outcome.success:
            logger.warning("⚠️  Could not reload Caddy: %s", outcome.error_text)

    def _hosts_hint(self, usable: list[ServiceInstance]) -> str:
        domain = self._ctx.config.domain
        hosts = [domain] + [
            f"{i.descriptor.subdomain}.{domain}" for i in usable if i.descriptor.subdomain
        ]
        return f"Add to /etc/hosts on each client:\n{self._ctx.config.ip} {' '.join(hosts)}"
