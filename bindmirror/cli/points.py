"""
CLI point commands — add and remove declared points.

Usage:
    bindmirror add /etc/ssh/ [--dry-run]
    bindmirror remove /etc/ssh/ [--dry-run]

Both commands save the declaration file unless --dry-run is given.
"""

from __future__ import annotations

import click

from ..core.controller import PointChange
from .helpers import open_controller, reports_errors, save_controller


def _echo_change(change: PointChange) -> None:
    prefix = "(dry run) " if change.dry_run else ""
    if not change.changed:
        click.echo(f"{prefix}Nothing to change.")
        return
    for point in change.removed:
        click.secho(f"{prefix}- {point}", fg="red")
    for point in change.inserted:
        click.secho(f"{prefix}+ {point}", fg="green")


@click.command("add")
@click.argument("path")
@click.option("--dry-run", is_flag=True, help="Show what would change")
@click.pass_context
@reports_errors
def add(ctx: click.Context, path: str, dry_run: bool) -> None:
    """Declare PATH (trailing / for a directory) and mount it if live."""
    controller = open_controller(ctx)
    change = controller.insert_point(path, dry_run=dry_run)
    if change.changed and not dry_run:
        save_controller(ctx, controller)
    _echo_change(change)


@click.command("remove")
@click.argument("path")
@click.option("--dry-run", is_flag=True, help="Show what would change")
@click.pass_context
@reports_errors
def remove(ctx: click.Context, path: str, dry_run: bool) -> None:
    """Unmount and undeclare PATH, or every declared point inside it."""
    controller = open_controller(ctx)
    change = controller.remove_point(path, dry_run=dry_run)
    if change.changed and not dry_run:
        save_controller(ctx, controller)
    _echo_change(change)
