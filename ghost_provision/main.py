"""
Ghost Provision — CLI entrypoint.

Usage:
    ghost-provision --help
    ghost-provision profile
    ghost-provision plan config.json
    sudo ghost-provision install config.json
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from ghost_provision import __version__
from ghost_provision.core.config.settings import Settings
from ghost_provision.core.errors import ProvisionError
from ghost_provision.core.observability.logging_config import setup_logging

_OUTCOME_COLORS = {
    "fully_operational": "green",
    "operational_with_warnings": "yellow",
    "failed": "red",
    "cancelled": "yellow",
}


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _fail(message: str) -> None:
    click.secho(f"❌ {message}", fg="red", err=True)
    sys.exit(1)


def _current_profile(settings: Settings):
    """Profile exchange file if a previous step wrote one, else probe."""
    from ghost_provision.core.persistence.profile_file import read_profile_file
    from ghost_provision.core.services.hardware import profile

    return read_profile_file(settings.profile_file) or profile()


@click.group()
@click.version_option(version=__version__, prog_name="ghost-provision")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """Ghost Provision — set up an offline AI workstation."""
    ctx.ensure_object(dict)

    try:
        settings = Settings.from_env()
    except ProvisionError as e:
        _fail(str(e))
        return

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = settings.log_level

    ctx.obj["settings"] = settings
    ctx.obj["level"] = level
    setup_logging(level=level)


# ── install ─────────────────────────────────────────────────────


@cli.command()
@click.argument("config_path", required=False, type=click.Path(path_type=Path))
@click.option("--yes", "-y", "assume_yes", is_flag=True, help="Answer yes to every confirmation.")
@click.option("--mock", "mock_mode", is_flag=True, help="Use mock adapters (no changes to this machine).")
@click.option("--skip-isolation", is_flag=True, help="Leave the network online when done.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output the run summary as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    config_path: Path | None,
    assume_yes: bool,
    mock_mode: bool,
    skip_isolation: bool,
    as_json: bool,
) -> None:
    """Provision this machine (optionally from a CONFIG document)."""
    from ghost_provision.core.use_cases.install import run_install

    settings = _settings(ctx)
    log_file = settings.log_file if mock_mode else settings.log_path
    opened = setup_logging(
        level=ctx.obj["level"],
        log_file=log_file,
        owner=None if mock_mode else settings.target_user,
    )
    if opened:
        click.echo(f"Logging to {opened}", err=True)

    summary = run_install(
        config_path,
        settings=settings,
        mock_mode=mock_mode,
        assume_yes=assume_yes,
        skip_isolation=skip_isolation,
        confirm=lambda message: click.confirm(message, default=False),
    )

    if as_json:
        click.echo(json.dumps(summary.to_dict(), indent=2))
        sys.exit(summary.exit_code)

    click.echo()
    if summary.pipeline:
        for outcome in summary.pipeline.outcomes:
            result = outcome.result
            marker = {"ok": "✓", "skipped": "⊘"}.get(result.status, "✗")
            color = {"ok": "green", "skipped": "white"}.get(result.status, "red")
            if outcome.warning:
                color = "yellow"
            click.secho(f"   {marker} {outcome.index}. {outcome.name}", fg=color)

    if summary.verification:
        report = summary.verification
        click.echo(f"\n   Checks: {report.passed} passed, {report.failed} failed")
        for name in report.failing_required:
            click.secho(f"     ✗ {name}", fg="red")

    color = _OUTCOME_COLORS.get(summary.outcome.value, "white")
    click.echo()
    click.secho(summary.headline, fg=color, bold=True)
    if summary.error:
        click.echo(f"   {summary.error}")
    sys.exit(summary.exit_code)


# ── profile / plan / verify ─────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option(
    "--output", "-o", type=click.Path(path_type=Path), default=None,
    help="Also write the KEY=value profile file here.",
)
def profile(as_json: bool, output: Path | None) -> None:
    """Detect and show this machine's hardware."""
    from ghost_provision.core.persistence.profile_file import write_profile_file
    from ghost_provision.core.services.hardware import profile as detect
    from ghost_provision.core.services.tiers import tier_for_ram

    hw = detect()
    tier = tier_for_ram(hw.ram_gb)

    if output:
        try:
            write_profile_file(hw, output)
        except OSError as e:
            _fail(f"Cannot write {output}: {e}")

    if as_json:
        click.echo(json.dumps({**hw.model_dump(mode="json"), "recommended_tier": tier.value}, indent=2))
        return

    click.secho("\n🖥  Hardware profile", fg="cyan", bold=True)
    click.echo(f"   Architecture: {hw.architecture}")
    click.echo(f"   RAM:          {hw.ram_gb}GB")
    click.echo(f"   GPU:          {hw.gpu_type}")
    click.echo(f"   CPU cores:    {hw.cpu_cores}")
    click.echo(f"   Free disk:    {hw.disk_available_gb}GB")
    click.echo(f"   Recommended:  {tier}")
    if not hw.supported:
        click.secho("   ⚠️  Unsupported architecture", fg="yellow")
    if output:
        click.echo(f"   Written to {output}")
    click.echo()


@cli.command()
@click.argument("config_path", required=False, type=click.Path(path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, config_path: Path | None, as_json: bool) -> None:
    """Show what an install would do, without changing anything."""
    from ghost_provision.core.config.loader import load_user_config
    from ghost_provision.core.errors import SpaceError
    from ghost_provision.core.models.plan import FEATURE_IMAGE_GEN
    from ghost_provision.core.services import space, tiers

    hw = _current_profile(_settings(ctx))
    try:
        resolved = tiers.resolve(hw, load_user_config(config_path))
    except ProvisionError as e:
        _fail(str(e))
        return

    budget = space.budget(resolved)
    try:
        space.check(budget, hw)
        space_error = None
    except SpaceError as e:
        space_error = str(e)

    if as_json:
        click.echo(json.dumps({
            "plan": resolved.model_dump(mode="json"),
            "budget": budget.model_dump(mode="json"),
            "disk_available_gb": hw.disk_available_gb,
            "fits": space_error is None,
        }, indent=2))
        sys.exit(0 if space_error is None else 1)

    click.secho(f"\n📋 Tier: {resolved.tier}", fg="cyan", bold=True)
    for name, enabled in resolved.feature_flags.items():
        click.echo(f"   {'✓' if enabled else '·'} {name}")
    if resolved.enabled(FEATURE_IMAGE_GEN) and not resolved.image_generation_available:
        click.secho("   ⚠️  No GPU acceleration for image generation", fg="yellow")
    if resolved.large_models:
        click.echo("   Large models enabled (RAM > 32GB)")

    click.echo()
    click.echo(f"   Base system:  {budget.base_gb}GB")
    click.echo(f"   Models:       {budget.tier_increment_gb}GB")
    for feature, size in budget.per_feature_increment_gb.items():
        click.echo(f"   {feature + ':':<13} {size}GB")
    click.secho(
        f"   Total:        {budget.total_required_gb}GB of {hw.disk_available_gb}GB free",
        bold=True,
    )
    click.echo()
    if space_error:
        _fail(space_error)


@cli.command()
@click.argument("config_path", required=False, type=click.Path(path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def verify(ctx: click.Context, config_path: Path | None, as_json: bool) -> None:
    """Check an installed system."""
    from ghost_provision.core.config.loader import load_user_config
    from ghost_provision.core.services import tiers
    from ghost_provision.core.services.verification import default_checks, run_checks
    from ghost_provision.core.use_cases.install import build_context

    settings = _settings(ctx)
    hw = _current_profile(settings)
    run_ctx = build_context(settings, profile=hw)
    try:
        run_ctx.plan = tiers.resolve(hw, load_user_config(config_path))
    except ProvisionError as e:
        _fail(str(e))
        return

    report = run_checks(default_checks(run_ctx))

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
        sys.exit(0 if report.operational else 1)

    click.echo()
    for result in report.results:
        if result.passed:
            click.secho(f"   ✓ {result.name}", fg="green")
        elif result.required:
            click.secho(f"   ✗ {result.name}", fg="red")
        else:
            click.secho(f"   ⚠ {result.name} (optional)", fg="yellow")

    click.echo(f"\n   Results: {report.passed} passed, {report.failed} failed\n")
    if report.operational and not report.failed:
        click.secho("✅ System is fully operational", fg="green", bold=True)
    elif report.operational:
        click.secho("⚠️  System is operational with warnings", fg="yellow", bold=True)
    else:
        _fail("Some required components failed verification")


# ── network ─────────────────────────────────────────────────────


def _controller():
    from ghost_provision.adapters.shell import SubprocessRunner
    from ghost_provision.adapters.systemd import SystemdManager
    from ghost_provision.core.services.network import NetworkIsolationController

    runner = SubprocessRunner()
    return NetworkIsolationController(runner, SystemdManager(runner))


@cli.group()
def network() -> None:
    """Network isolation commands."""


@network.command("ghost")
def network_ghost() -> None:
    """Disable all networking (ghost mode)."""
    from ghost_provision.core.models.network import NetworkState

    try:
        _controller().set_state(NetworkState.GHOST)
    except ProvisionError as e:
        _fail(str(e))
    click.secho("✓ Network disabled, system is now offline", fg="green")


@network.command("online")
def network_online() -> None:
    """Re-enable networking (use with caution)."""
    from ghost_provision.core.models.network import NetworkState

    try:
        _controller().set_state(NetworkState.ONLINE)
    except ProvisionError as e:
        _fail(str(e))
    click.secho("⚠️  Network enabled. Run 'ghost-provision network ghost' to go offline.", fg="yellow")


@network.command("randomize-mac")
@click.argument("interface", default="wlan0")
def network_randomize_mac(interface: str) -> None:
    """Give INTERFACE a random MAC address."""
    try:
        _controller().randomize_identity(interface)
    except ProvisionError as e:
        _fail(str(e))
    click.secho(f"✓ MAC address randomized for {interface}", fg="green")


@network.command("erase")
@click.argument("target", type=click.Path(path_type=Path))
def network_erase(target: Path) -> None:
    """Securely erase TARGET (file or directory). Cannot be undone."""
    from ghost_provision.core.errors import ConfirmationDeclined

    click.secho("WARNING: this will irrecoverably erase data", fg="red", bold=True)
    try:
        files = _controller().secure_erase(
            target,
            prompt=lambda message: click.prompt(message, default="", show_default=False),
        )
    except ConfirmationDeclined as e:
        click.echo(f"{e}.")
        return
    except ProvisionError as e:
        _fail(str(e))
        return
    click.secho(f"✓ Secure erase complete ({len(files)} file(s))", fg="green")


if __name__ == "__main__":
    cli()
