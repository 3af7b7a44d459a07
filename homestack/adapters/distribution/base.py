"""
Distribution strategy base — host preparation contract.

A strategy knows how to install the container runtime, install packages,
open the firewall and (optionally) make ``*.<domain>`` resolve to the
homelab IP on one operating system.  Every operation either succeeds or
raises ``DistributionError`` with a human-readable cause.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class DistributionStrategy(ABC):
    """Abstract base class for distribution strategies."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Distribution identifier (e.g. 'ubuntu')."""

    @property
    @abstractmethod
    def package_manager(self) -> str:
        """Package manager command (e.g. 'apt')."""

    @abstractmethod
    def install_container_runtime(self) -> None:
        """Install and start the container engine if it is missing."""

    @abstractmethod
    def install_packages(self, names: list[str]) -> None:
        """Install system packages. An empty list is a no-op."""

    @abstractmethod
    def configure_firewall(self) -> None:
        """Allow SSH, HTTP and HTTPS through the host firewall."""

    @abstractmethod
    def configure_dns_resolution(self, domain: str, ip: str, type_ids: list[str]) -> None:
        """Resolve ``domain`` and every subdomain of it to ``ip``."""

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"
