"""
apkforge — CLI entrypoint.

Usage:
    python -m apkforge.main --help
    python -m apkforge.main build
    python -m apkforge.main run --device emulator-5554
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable
from functools import wraps
from pathlib import Path
from typing import Any

import click

from apkforge import __version__
from apkforge.adapters.base import ToolchainAdapter
from apkforge.adapters.sdk import SdkToolchain, ToolchainNotFound
from apkforge.core.errors import ApkError
from apkforge.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    resolve_level,
    setup_logging,
)


def make_toolchain() -> ToolchainAdapter:
    """Toolchain used by every command (patched in tests)."""
    return SdkToolchain.from_env(build_tools_version=os.environ.get("APKFORGE_BUILD_TOOLS"))


def _fails_cleanly(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Report pipeline errors in red and exit 1 instead of a traceback."""

    @wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except (ApkError, ToolchainNotFound) as e:
            click.secho(f"❌ {e}", fg="red", err=True)
            sys.exit(1)

    return wrapper


def _load(ctx: click.Context):
    from apkforge.core.config.loader import load_build_config

    return load_build_config(make_toolchain(), ctx.obj.get("config_path"))


def _build(ctx: click.Context):
    from apkforge.core.use_cases.build import build_apk

    settings, config = _load(ctx)
    apk = build_apk(settings, config)
    click.secho(f"📦 {apk.path}", fg="green")
    return apk


device_option = click.option(
    "--device", "-d", default=None, help="Device serial (default: the only attached device)."
)


@click.group()
@click.version_option(version=__version__, prog_name="apkforge")
@click.option("--verbose", "-v", is_flag=True, help="Log each build step.")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors.")
@click.option("--debug", is_flag=True, help="Log every tool invocation.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to apk.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """apkforge — package native libraries into a signed Android APK."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_logging(
        level=resolve_level(debug=debug, verbose=verbose, quiet=quiet),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )


@cli.command()
@click.pass_context
@_fails_cleanly
def build(ctx: click.Context) -> None:
    """Assemble, align and sign the APK."""
    _build(ctx)


@cli.command()
@device_option
@click.pass_context
@_fails_cleanly
def install(ctx: click.Context, device: str | None) -> None:
    """Build the APK and install it on a device."""
    apk = _build(ctx)
    apk.install(device)
    click.echo(f"Installed {apk.package_name}")


@cli.command()
@device_option
@click.option("--clean", is_flag=True, help="Uninstall the previous version first.")
@click.pass_context
@_fails_cleanly
def run(ctx: click.Context, device: str | None, clean: bool) -> None:
    """Build, install, forward ports and start the app."""
    apk = _build(ctx)
    if clean:
        apk.uninstall(device)
    apk.install(device)
    apk.reverse_port_forwarding(device)
    apk.start(device)
    uid = apk.uidof(device)
    click.echo(f"Started {apk.package_name} (uid {uid})")


@cli.command()
@device_option
@click.pass_context
@_fails_cleanly
def uid(ctx: click.Context, device: str | None) -> None:
    """Print the uid the configured package runs as."""
    from apkforge.core.services.device import Apk

    _, config = _load(ctx)
    click.echo(Apk.from_config(config).uidof(device))


if __name__ == "__main__":
    cli()
