"""
Endpoint Materialization — Make both ends of a point exist before mounting.

A bind mount needs an existing source and an existing target of the same
kind. Missing ends are created to match the end that exists; when neither
exists the point's directory tag decides.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from ..errors import SubsumptionError, SymlinkUnsupportedError, TypeConflictError
from ..system.host import KIND_DIR, KIND_FILE, Host, join_root, path_under
from .pathset import ROOT, as_dir, is_dir_point, strip_tag

logger = logging.getLogger(__name__)


def point_kind(point: str) -> str:
    return KIND_DIR if is_dir_point(point) else KIND_FILE


def resolve_point(host: Host, source_root: str, target_root: str, path: str) -> str:
    """
    Turn a user-supplied path into a tagged point.

    A trailing "/" forces a directory. Otherwise the kind of an existing
    source (then target) endpoint decides; with neither present there is
    no type hint and the point becomes a directory.
    """
    if path == ROOT or is_dir_point(path):
        return as_dir(path)
    name = strip_tag(path)
    for root in (source_root, target_root):
        kind = host.kind(join_root(root, name))
        if kind == KIND_FILE:
            return name
        if kind == KIND_DIR:
            return as_dir(name)
    return as_dir(name)


def _create(host: Host, path: str, kind: str) -> None:
    if kind == KIND_DIR:
        host.make_dir(path)
    else:
        host.make_file(path)


def materialize(
    host: Host,
    source_root: str,
    target_root: str,
    point: str,
    dry_run: bool = False,
) -> List[str]:
    """
    Ensure source and target of ``point`` exist with matching kinds.

    Returns the paths that were (or, with dry_run, would be) created.

    Raises:
        SymlinkUnsupportedError: If either end is a symbolic link
        TypeConflictError: If the ends disagree in kind, or with the point
        SubsumptionError: If the new target directory would contain the
            source root
    """
    source = join_root(source_root, point)
    target = join_root(target_root, point)

    for path in (source, target):
        if host.is_symlink(path):
            raise SymlinkUnsupportedError(
                f"Cannot mirror symbolic link {path}", path=path
            )

    wanted = point_kind(point)
    source_kind: Optional[str] = host.kind(source)
    target_kind: Optional[str] = host.kind(target)

    if source_kind and target_kind and source_kind != target_kind:
        raise TypeConflictError(
            f"{point}: source is a {source_kind} but target is a {target_kind}",
            path=target,
        )
    existing = source_kind or target_kind
    if existing and existing != wanted:
        raise TypeConflictError(
            f"{point} is declared as a {wanted} but exists as a {existing}",
            path=source if source_kind else target,
        )

    created: List[str] = []
    if target_kind is None and wanted == KIND_DIR and path_under(source_root, target):
        raise SubsumptionError(
            f"Creating directory {target} would contain source root {source_root}",
            path=target,
        )

    if source_kind is None:
        created.append(source)
    if target_kind is None:
        created.append(target)

    if dry_run:
        return created

    for path in created:
        logger.info(f"[mirror] Creating {wanted} {path} for {point}", extra={"point": point})
        _create(host, path, wanted)
    return created
