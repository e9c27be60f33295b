"""
bindmirror — CLI Entry Point

Usage:
    bindmirror status [--json]
    bindmirror list
    bindmirror mount
    bindmirror unmount
    bindmirror force-unmount
    bindmirror add PATH [--dry-run]
    bindmirror remove PATH [--dry-run]
"""

from __future__ import annotations

# Load .env file FIRST, before any other imports that might read env vars
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

from typing import Optional

import click

from . import __version__
from .cli.mirror import force_unmount, list_points, mount, status, unmount
from .cli.points import add, remove
from .config import MirrorSettings
from .errors import ConfigurationError
from .logging_config import setup_logging


@click.group()
@click.version_option(__version__, prog_name="bindmirror")
@click.option(
    "--declaration", "-d",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Declaration file (default: $BINDMIRROR_DECLARATION or /etc/bindmirror/mirror.yaml)",
)
@click.option("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR")
@click.option("--log-format", type=click.Choice(["text", "json"]), default=None)
@click.pass_context
def cli(
    ctx: click.Context,
    declaration: Optional[Path],
    log_level: Optional[str],
    log_format: Optional[str],
) -> None:
    """Mirror paths from a source root into a target root with bind mounts."""
    setup_logging(level=log_level, format_type=log_format)

    try:
        settings = MirrorSettings.from_env()
    except ConfigurationError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        raise SystemExit(1)
    if declaration is not None:
        settings.declaration_path = declaration

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings


cli.add_command(status)
cli.add_command(list_points)
cli.add_command(mount)
cli.add_command(unmount)
cli.add_command(force_unmount)
cli.add_command(add)
cli.add_command(remove)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
