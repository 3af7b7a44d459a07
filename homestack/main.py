"""
homestack — CLI entrypoint.

Usage:
    homestack --help
    homestack config check
    homestack plan
    homestack install --dry-run
    homestack install
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from homestack import __version__
from homestack.core.observability.logging_config import setup_logging

EXIT_CANCELLED = 130


@click.group()
@click.version_option(version=__version__, prog_name="homestack")
@click.option("--verbose", "-v", is_flag=True, help="Show each lifecycle step.")
@click.option("--quiet", "-q", is_flag=True, help="Only show errors.")
@click.option("--debug", is_flag=True, help="Log every command (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to homelab.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """homestack — provision a self-hosted server stack."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = None   # HOMESTACK_LOG_LEVEL or WARNING

    setup_logging(level=level, quiet_third_party=not debug)


# ── install ─────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--service", "-s", "services", multiple=True,
    help="Optional service to install (repeatable). Default: services from homelab.yml.",
)
@click.option("--dry-run", is_flag=True, help="Show the plan and commands without running anything.")
@click.option("--mock", is_flag=True, help="Simulate every command (no host changes).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    services: tuple[str, ...],
    dry_run: bool,
    mock: bool,
    as_json: bool,
) -> None:
    """Install the container runtime, firewall and services."""
    from homestack.core.engine.cancellation import CancellationToken, cancel_on_signals
    from homestack.core.use_cases.install import run_install

    token = CancellationToken()
    with cancel_on_signals(token):
        result = run_install(
            config_path=ctx.obj.get("config_path"),
            services=list(services) or None,
            dry_run=dry_run,
            mock_mode=mock,
            cancel=token,
        )

    exit_code = 0
    if result.cancelled:
        exit_code = EXIT_CANCELLED
    elif result.error:
        exit_code = 1

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(exit_code)

    if result.preview is not None:
        _print_preview(result.preview)

    report = result.report
    if report is not None:
        _print_report(report, quiet=ctx.obj.get("quiet", False))

    if result.error:
        _print_error(result.error, report)
        sys.exit(exit_code)

    click.echo()


def _print_preview(preview: list[dict]) -> None:
    click.secho("\n📋 Dry run — nothing will be executed", fg="cyan", bold=True)
    for i, svc in enumerate(preview, start=1):
        click.echo()
        click.secho(f"   {i}. {svc['name']}", fg="white", bold=True)
        for command in svc["install"]:
            click.echo(f"      $ {command}")
        click.echo(f"      $ {svc['run']}")
        click.echo(f"      → {svc['access_url']}")


def _print_report(report, quiet: bool = False) -> None:
    if not quiet and report.order:
        click.secho(f"\n📦 Installation order ({report.runtime or 'no runtime'}):", fg="cyan", bold=True)
        click.echo(f"   {' → '.join(report.order)}")

    for warning in report.warnings:
        click.secho(f"   ⚠️  {warning}", fg="yellow")

    if report.skipped:
        click.echo()
        click.secho("⏭️  Skipped for this run:", fg="yellow", bold=True)
        for name, lines in report.skipped.items():
            click.secho(f"   • {name}", fg="yellow")
            for line in lines:
                click.echo(f"       {line}")

    if report.access_urls:
        click.echo()
        click.secho("🔗 Access URLs:", fg="green", bold=True)
        for name, url in report.access_urls.items():
            click.echo(f"   {name:<14} {url}")

    if report.dns_fallback:
        click.echo()
        click.secho("🌐 DNS:", fg="cyan")
        for line in report.dns_fallback.splitlines():
            click.echo(f"   {line}")

    if report.status != "failed":
        color = "green" if report.status == "ok" else "yellow"
        click.echo()
        click.secho(f"✅ Installation {report.status} ({report.duration_ms}ms)", fg=color, bold=True)


def _print_error(error, report) -> None:
    click.echo()
    click.secho(f"❌ {error.message}", fg="red", bold=True)
    service = error.context.get("service") if error.context else None
    if service:
        click.echo(f"   Service: {service}")
    if error.context and error.context.get("cause"):
        click.echo(f"   Cause:   {error.context['cause']}")
    if error.hint:
        for line in error.hint.splitlines():
            click.secho(f"   💡 {line}", fg="yellow")

    rollback = report.rollback if report else None
    if rollback and rollback.attempted:
        click.echo()
        click.secho(f"🔄 Rolled back {len(rollback.succeeded)}/{rollback.attempted} step(s)", fg="cyan")
        for line in rollback.errors:
            click.secho(f"   ✗ {line}", fg="red")


# ── plan ────────────────────────────────────────────────────────


@cli.command()
@click.option("--service", "-s", "services", multiple=True, help="Override the configured services.")
@click.option("--commands", "with_commands", is_flag=True, help="Include rendered commands.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, services: tuple[str, ...], with_commands: bool, as_json: bool) -> None:
    """Show the installation order."""
    from homestack.core.use_cases.plan import plan_installation

    result = plan_installation(
        config_path=ctx.obj.get("config_path"),
        services=list(services) or None,
        with_commands=with_commands,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error['message']}", fg="red")
        sys.exit(1)

    assert result.plan is not None
    click.secho("\n📋 Installation order:", fg="cyan", bold=True)
    for i, instance in enumerate(result.plan.order, start=1):
        kind = "core" if instance.is_core else "optional"
        deps = f"  (after {', '.join(instance.dependencies)})" if instance.dependencies else ""
        click.echo(f"   {i:>2}. {instance.name} [{kind}]{deps}")

    for name, missing in result.plan.unmet.items():
        click.secho(f"   ⚠️  {name} expects {', '.join(missing)} to be running already", fg="yellow")

    for svc in result.commands:
        click.echo()
        click.secho(f"   {svc['name']}", fg="white", bold=True)
        for command in [*svc["install"], svc["run"]]:
            click.echo(f"      $ {command}")
    click.echo()


# ── config ──────────────────────────────────────────────────────


@cli.group()
def config() -> None:
    """Homelab configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate homelab.yml configuration."""
    from homestack.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None  # guaranteed when valid
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Domain:   {result.config.domain} ({result.config.ip})")
        click.echo(f"   Network:  {result.config.network_name}")
        click.echo(f"   Services: {', '.join(result.config.services) or '(core only)'}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


# ── Register sub-command groups from homestack/ui/cli/ ────────────

from homestack.ui.cli.runtime import runtime  # noqa: E402
from homestack.ui.cli.services import services as services_group  # noqa: E402

cli.add_command(runtime)
cli.add_command(services_group)


if __name__ == "__main__":
    cli()
