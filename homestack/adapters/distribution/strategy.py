"""
Recipe-driven distribution strategy and strategy lookup.

The distribution is chosen by name from configuration; this module does
not inspect the host to guess it.
"""

from __future__ import annotations

import logging

from homestack.adapters.base import NO_TIMEOUT, CommandExecutor
from homestack.adapters.distribution.base import DistributionStrategy
from homestack.adapters.distribution.recipes import RECIPES, DistributionRecipe
from homestack.core.errors import DistributionError

logger = logging.getLogger(__name__)


class RecipeDistribution(DistributionStrategy):
    """Run a ``DistributionRecipe`` through a command executor."""

    def __init__(self, recipe: DistributionRecipe, executor: CommandExecutor):
        self._recipe = recipe
        self._executor = executor

    @property
    def name(self) -> str:
        return self._recipe.name

    @property
    def package_manager(self) -> str:
        return self._recipe.package_manager

    def install_container_runtime(self) -> None:
        if self._executor.command_exists(self._recipe.runtime_binary):
            logger.info("✅ %s already installed, ensuring it is running", self._recipe.runtime_binary)
            self._run_all("install container runtime", self._recipe.runtime_ensure)
            return

        logger.info("📦 Installing container runtime on %s...", self.name)
        self._run_all("install container runtime", self._recipe.runtime_install)

    def install_packages(self, names: list[str]) -> None:
        if not names:
            return
        logger.info("📦 Installing packages: %s", ", ".join(names))
        self._run_all(
            "install packages",
            (self._recipe.install_packages,),
            packages=" ".join(names),
        )

    def configure_firewall(self) -> None:
        if not self._recipe.firewall:
            logger.info("No firewall recipe for %s, skipping", self.name)
            return

        if self._recipe.firewall_status:
            status = self._executor.execute(self._recipe.firewall_status)
            if status.success and all(m in status.stdout for m in self._recipe.firewall_markers):
                logger.info("✅ Firewall rules already in place, skipping")
                return

        logger.info("🔥 Configuring firewall (22, 80, 443)...")
        self._run_all("configure firewall", self._recipe.firewall)

    def configure_dns_resolution(self, domain: str, ip: str, type_ids: list[str]) -> None:
        if not self._recipe.dns:
            raise DistributionError(self.name, "configure DNS", "no DNS recipe for this distribution")

        logger.info("🌐 Configuring dnsmasq: *.%s → %s (%d services)", domain, ip, len(type_ids))
        self.install_packages(list(self._recipe.dns_packages))
        self._run_all("configure DNS", self._recipe.dns, domain=domain, ip=ip)

    def _run_all(self, step: str, commands: tuple[str, ...], **fields: str) -> None:
        for template in commands:
            command = template.format(**fields) if fields else template
            outcome = self._executor.execute(command, timeout=NO_TIMEOUT)
            if not outcome.success:
                raise DistributionError(self.name, step, f"`{command}`: {outcome.error_text}")


def available_distributions() -> list[str]:
    return sorted(RECIPES)


def get_strategy(name: str, executor: CommandExecutor) -> DistributionStrategy:
    """Look up the strategy for a configured distribution name.

    Raises:
        DistributionError: no recipe exists for ``name``.
    """
    recipe = RECIPES.get(name.strip().lower())
    if recipe is None:
        raise DistributionError(
            name,
            "select distribution",
            f"unsupported distribution (available: {', '.join(available_distributions())})",
        )
    return RecipeDistribution(recipe, executor)
