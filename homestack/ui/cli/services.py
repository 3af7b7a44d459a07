"""
CLI commands for the service catalog.

Thin wrappers over ``homestack.core.data``.
"""

from __future__ import annotations

import json

import click


@click.group("services")
def services() -> None:
    """Service catalog — what homestack can install."""


@services.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def list_services(as_json: bool) -> None:
    """List core and optional services with their dependencies."""
    from homestack.core.data import get_registry

    catalog = get_registry()

    if as_json:
        click.echo(json.dumps([d.model_dump(mode="json") for d in catalog.services], indent=2))
        return

    click.secho("📦 Core services (always installed):", fg="cyan", bold=True)
    for d in catalog.core_services:
        click.echo(f"   {d.type_id:<12} {d.name:<14} {d.description}")

    click.echo()
    click.secho("🧩 Optional services:", fg="cyan", bold=True)
    for d in catalog.optional_services:
        flags = []
        if d.dependencies:
            flags.append(f"needs {', '.join(d.dependencies)}")
        if d.needs_storage_password:
            flags.append("storage password")
        suffix = f"  ({'; '.join(flags)})" if flags else ""
        click.echo(f"   {d.type_id:<12} {d.name:<14} {d.description}{suffix}")
    click.echo()
