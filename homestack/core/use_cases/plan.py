"""
Plan use case — installation order and rendered commands, no execution.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from homestack.core.config.loader import load_config
from homestack.core.context import build_context
from homestack.core.engine.orchestrator import InstallPlan, Orchestrator
from homestack.core.errors import HomestackError

logger = logging.getLogger(__name__)


@dataclass
class PlanResult:
    plan: InstallPlan | None = None
    commands: list[dict] = field(default_factory=list)
    error: dict | None = None

    def to_dict(self) -> dict:
        if self.error:
            return {"error": self.error}
        result = self.plan.to_dict() if self.plan else {}
        if self.commands:
            result["commands"] = self.commands
        return result


def plan_installation(
    config_path: Path | None = None,
    services: list[str] | None = None,
    with_commands: bool = False,
) -> PlanResult:
    """Resolve the install order, optionally with masked rendered commands."""
    result = PlanResult()
    try:
        config = load_config(config_path)
        ctx = build_context(config, mock=True)
        orchestrator = Orchestrator(ctx)
        result.plan = orchestrator.plan(services)
        if with_commands:
            result.commands = orchestrator.preview(services)
    except HomestackError as e:
        result.error = e.to_dict()
    return result
