"""Adapters — command executors, container runtimes and host distributions.

Public re-exports for convenient access.
"""

from homestack.adapters.base import CommandExecutor
from homestack.adapters.mock import MockExecutor
from homestack.adapters.shell.command import ShellExecutor

__all__ = [
    "CommandExecutor",
    "MockExecutor",
    "ShellExecutor",
]
