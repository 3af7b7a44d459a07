"""Shell adapter — run commands through ``sh -c``."""

from homestack.adapters.shell.command import ShellExecutor

__all__ = ["ShellExecutor"]
