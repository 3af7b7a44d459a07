"""
CLI commands for the container runtime.

Thin wrappers over ``homestack.adapters.containers``.
"""

from __future__ import annotations

import json
import sys

import click


@click.group("runtime")
def runtime() -> None:
    """Container runtime — detection and image names."""


@runtime.command("detect")
@click.option(
    "--prefer",
    type=click.Choice(["auto", "docker", "podman"]),
    default="auto",
    show_default=True,
    help="Probe only this engine.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def detect(prefer: str, as_json: bool) -> None:
    """Find a working container engine (docker first, then podman)."""
    from homestack.adapters.containers.runtime import ContainerRuntimeAdapter
    from homestack.adapters.shell.command import ShellExecutor
    from homestack.core.errors import RuntimeDetectionError

    adapter = ContainerRuntimeAdapter(ShellExecutor(), preferred=prefer)
    try:
        detected = adapter.detect_runtime()
    except RuntimeDetectionError as e:
        if as_json:
            click.echo(json.dumps({"error": e.to_dict()}, indent=2))
        else:
            click.secho(f"❌ {e.message}", fg="red", bold=True)
            for line in e.suggestions:
                click.secho(f"   💡 {line}", fg="yellow")
        sys.exit(1)

    warnings = adapter.runtime_warnings()
    if as_json:
        click.echo(json.dumps({"runtime": detected.value, "warnings": warnings}, indent=2))
        return

    click.secho(f"✅ Container runtime: {detected.value}", fg="green", bold=True)
    for line in warnings:
        click.secho(f"   ⚠️  {line}", fg="yellow")


@runtime.command("normalize")
@click.argument("image")
@click.option(
    "--runtime",
    "engine",
    type=click.Choice(["docker", "podman"]),
    default="podman",
    show_default=True,
)
def normalize(image: str, engine: str) -> None:
    """Print the image reference ENGINE needs for IMAGE."""
    from homestack.adapters.containers.runtime import normalize_image_name

    click.echo(normalize_image_name(image, engine))
