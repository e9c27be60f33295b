"""
Mirror Status — Classify declared vs observed points.

## States

- FULL: everything declared is mounted, nothing else is
- PARTIAL: some declared points are mounted, nothing else is
- NONE: nothing is mounted
- INVALID: something is mounted that is not declared, or the live
  state could not be determined. Only force_unmount runs here.
"""

from __future__ import annotations

from enum import Enum
from typing import AbstractSet, FrozenSet

# Observed state for a mount table that could not be read or interpreted.
# Its single element is not an absolute path, so it is never declared and
# the set always classifies as INVALID.
UNPARSEABLE: FrozenSet[str] = frozenset({"<unparseable>"})


class MirrorStatus(str, Enum):
    """Reconciliation status."""
    FULL = "full"
    PARTIAL = "partial"
    NONE = "none"
    INVALID = "invalid"

    def __str__(self) -> str:
        return self.value.upper()


def is_unparseable(observed: AbstractSet[str]) -> bool:
    return observed is UNPARSEABLE or observed == UNPARSEABLE


def classify(declared: AbstractSet[str], observed: AbstractSet[str]) -> MirrorStatus:
    """Pure function of the two point sets."""
    if is_unparseable(observed) or not set(observed) <= set(declared):
        return MirrorStatus.INVALID
    if not observed:
        return MirrorStatus.NONE
    if set(observed) == set(declared):
        return MirrorStatus.FULL
    return MirrorStatus.PARTIAL
