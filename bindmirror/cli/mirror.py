"""
CLI mirror commands — status, listing and bulk mount/unmount.

Usage:
    bindmirror status [--json]
    bindmirror list
    bindmirror mount
    bindmirror unmount
    bindmirror force-unmount
"""

from __future__ import annotations

import json

import click

from ..core.pathset import sort_key
from ..core.status import MirrorStatus, is_unparseable
from .helpers import echo_status, open_controller, reports_errors


@click.command("status")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
@reports_errors
def status(ctx: click.Context, as_json: bool) -> None:
    """Show declared vs mounted points."""
    controller = open_controller(ctx)
    current = controller.status()
    observed = controller.observed()
    unparseable = is_unparseable(observed)
    mounted = [] if unparseable else sorted(observed, key=sort_key)
    declared = controller.points()

    result = {
        "status": current.value,
        "source": controller.source_root,
        "target": controller.target_root,
        "declared": declared,
        "mounted": mounted,
        "undeclared": [p for p in mounted if p not in controller.declared],
        "unparseable": unparseable,
    }

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    click.echo("\n🔀 Mirror Status\n")
    click.echo(f"  Source:    {controller.source_root}")
    click.echo(f"  Target:    {controller.target_root}")
    echo_status("Status:", current.value)
    click.echo()

    if unparseable:
        click.secho("  Live mounts could not be determined; run force-unmount.", fg="red")
        click.echo()

    for point in declared:
        icon = "✅" if point in observed else "⏳"
        click.echo(f"  {icon} {point}")
    for point in result["undeclared"]:
        click.secho(f"  ❌ {point} (mounted, not declared)", fg="red")
    click.echo()


@click.command("list")
@click.pass_context
@reports_errors
def list_points(ctx: click.Context) -> None:
    """Print declared points, one per line."""
    controller = open_controller(ctx)
    for point in controller.points():
        click.echo(point)


@click.command("mount")
@click.pass_context
@reports_errors
def mount(ctx: click.Context) -> None:
    """Mount every declared point that is not mounted yet."""
    controller = open_controller(ctx)
    final = controller.mount_all()
    echo_status("Status:", final.value)
    if final is not MirrorStatus.FULL:
        raise SystemExit(1)


@click.command("unmount")
@click.pass_context
@reports_errors
def unmount(ctx: click.Context) -> None:
    """Unmount every mounted point."""
    controller = open_controller(ctx)
    final = controller.unmount_all()
    echo_status("Status:", final.value)
    if final is not MirrorStatus.NONE:
        raise SystemExit(1)


@click.command("force-unmount")
@click.pass_context
@reports_errors
def force_unmount(ctx: click.Context) -> None:
    """Unmount everything backed by the source, ignoring the declaration."""
    controller = open_controller(ctx)
    report = controller.force_unmount()

    click.echo(f"  Passes:    {report.passes}")
    click.echo(f"  Unmounted: {report.unmounted}")
    echo_status("Status:", report.status.value)

    if not report.complete:
        click.secho("\n⚠️  Incomplete; needs operator intervention:", fg="yellow", bold=True)
        for mount_point in report.remaining:
            click.echo(f"    {mount_point}")
        raise SystemExit(1)
