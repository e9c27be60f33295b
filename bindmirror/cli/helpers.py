"""
Shared helpers for CLI commands.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

import click

from ..config import MirrorSettings
from ..core.controller import MirrorController
from ..declaration import Declaration, load_declaration, save_declaration
from ..errors import MirrorError
from ..system.linux import LinuxHost

logger = logging.getLogger(__name__)

STATUS_STYLE = {
    "full": ("✅", "green"),
    "partial": ("⚠️", "yellow"),
    "none": ("⏸", "white"),
    "invalid": ("❌", "red"),
}


def reports_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Print MirrorError as a red message and exit 1."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except MirrorError as e:
            logger.debug("Command failed", exc_info=True)
            click.secho(f"❌ {e}", fg="red", err=True)
            raise SystemExit(1)

    return wrapper


def get_settings(ctx: click.Context) -> MirrorSettings:
    settings = (ctx.obj or {}).get("settings")
    if settings is None:
        settings = MirrorSettings.from_env()
    return settings


def open_controller(ctx: click.Context) -> MirrorController:
    """Load the declaration and build a controller on the live host."""
    settings = get_settings(ctx)
    declaration = load_declaration(settings.declaration_path)
    host = (ctx.obj or {}).get("host") or LinuxHost(timeout=settings.mount_timeout)
    return MirrorController(
        declaration.source,
        declaration.target,
        declaration.to_path_set(),
        host=host,
        cache_ttl=settings.cache_ttl,
    )


def save_controller(ctx: click.Context, controller: MirrorController) -> None:
    """Write the controller's declared points back to the declaration file."""
    settings = get_settings(ctx)
    save_declaration(Declaration.from_controller(controller), settings.declaration_path)


def echo_status(label: str, value: str) -> None:
    icon, color = STATUS_STYLE.get(value, ("❓", "white"))
    click.echo(f"  {label:<10} ", nl=False)
    click.secho(f"{icon} {value.upper()}", fg=color, bold=True)
