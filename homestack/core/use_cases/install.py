"""
Install use case — the full vertical slice from homelab.yml to running
services, with the run recorded in the audit ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from homestack.adapters.base import CommandExecutor
from homestack.core.config.loader import load_config
from homestack.core.context import build_context
from homestack.core.engine.cancellation import CancellationToken
from homestack.core.engine.orchestrator import InstallReport, Orchestrator
from homestack.core.errors import HomestackError, InstallationCancelled
from homestack.core.models.config import HomelabConfig
from homestack.core.persistence.audit import AuditEntry, AuditWriter

logger = logging.getLogger(__name__)


@dataclass
class InstallResult:
    """Result of an install run."""

    report: InstallReport | None = None
    preview: list[dict] | None = None
    error: HomestackError | None = None

    @property
    def cancelled(self) -> bool:
        return isinstance(self.error, InstallationCancelled)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error.to_dict()
        if self.report:
            result["report"] = self.report.to_dict()
        if self.preview is not None:
            result["dry_run"] = True
            result["services"] = self.preview
        return result


def run_install(
    config_path: Path | None = None,
    services: list[str] | None = None,
    dry_run: bool = False,
    mock_mode: bool = False,
    cancel: CancellationToken | None = None,
    executor: CommandExecutor | None = None,
    config: HomelabConfig | None = None,
) -> InstallResult:
    """Install the configured (or given) services.

    Args:
        config_path: Optional explicit path to homelab.yml.
        services: Optional service type ids overriding the configured list.
        dry_run: Plan and render commands without executing anything.
        mock_mode: Run the whole pipeline against a mock executor.
        cancel: Token set by the CLI's signal handlers.
        executor: Pre-configured executor (tests).
        config: Pre-loaded configuration (tests); skips loading the file.
    """
    result = InstallResult()

    try:
        if config is None:
            config = load_config(config_path)
        ctx = build_context(config, executor, mock=mock_mode or dry_run, cancel=cancel)
    except HomestackError as e:
        result.error = e
        return result

    orchestrator = Orchestrator(ctx)

    if dry_run:
        try:
            result.preview = orchestrator.preview(services)
        except HomestackError as e:
            result.error = e
        return result

    try:
        result.report = orchestrator.run(services)
    except HomestackError as e:
        result.error = e
        result.report = orchestrator.report

    _write_audit(result.report, config, mock_mode)
    return result


def _write_audit(report: InstallReport | None, config: HomelabConfig, mock_mode: bool) -> None:
    if report is None:
        return
    entry = AuditEntry.from_report(
        report,
        "install-mock" if mock_mode else "install",
        domain=config.domain,
        distribution=config.distribution,
    )
    AuditWriter(state_dir=config.state_path).write(entry)
