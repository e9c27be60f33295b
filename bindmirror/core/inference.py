"""
Observed-State Inference — Which live mounts did we create?

The kernel does not record who made a bind mount, so ownership is guessed:
a mount at target/p is ours if its backing device and mount root are
exactly what binding source/p there would have produced.

Any doubt fails closed. A mount table that cannot be read, a heuristic
that raises, or a point mounted more than once all yield UNPARSEABLE,
which classifies as INVALID and blocks everything but force_unmount.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import FrozenSet, List, Optional, Sequence, Tuple

from ..system.host import KIND_DIR, Host, MountEntry, join_root, path_under, relative_point
from .pathset import ROOT, as_dir
from .status import UNPARSEABLE

logger = logging.getLogger(__name__)


def find_source_mounts(
    host: Host,
    source_root: str,
    target_root: str,
    mounts: Optional[Sequence[MountEntry]] = None,
) -> List[Tuple[str, MountEntry]]:
    """
    Live mounts under the target that are backed by the matching source.

    Returns (point, entry) pairs in mount order. Stacked mounts appear once
    per layer.
    """
    if mounts is None:
        mounts = host.read_mount_table()

    matches: List[Tuple[str, MountEntry]] = []
    for entry in mounts:
        if not path_under(entry.mount_point, target_root):
            continue

        rel = relative_point(entry.mount_point, target_root)
        source = join_root(source_root, rel)
        kind = host.kind(source)
        if kind is None:
            logger.debug(f"[observe] Ignoring {entry.mount_point}: no source at {source}")
            continue

        try:
            expected = host.device_offset(source, mounts)
        except LookupError:
            logger.debug(f"[observe] Ignoring {entry.mount_point}: {source} is on no known mount")
            continue

        if (entry.device, entry.root) != expected:
            logger.debug(
                f"[observe] Ignoring unrelated mount at {entry.mount_point} "
                f"({entry.device}:{entry.root}, expected {expected[0]}:{expected[1]})"
            )
            continue

        point = as_dir(rel) if kind == KIND_DIR or rel == ROOT else rel
        matches.append((point, entry))
    return matches


def infer_observed(host: Host, source_root: str, target_root: str) -> FrozenSet[str]:
    """Set of points currently mounted by this tool, or UNPARSEABLE."""
    try:
        matches = find_source_mounts(host, source_root, target_root)
    except Exception as e:
        logger.error(f"[observe] Cannot determine live mounts, treating state as invalid: {e}")
        return UNPARSEABLE

    counts = Counter(point for point, _ in matches)
    stacked = sorted(point for point, count in counts.items() if count > 1)
    if stacked:
        logger.warning(
            f"[observe] Stacked mounts at {', '.join(stacked)}; "
            "treating state as invalid"
        )
        return UNPARSEABLE

    return frozenset(counts)
