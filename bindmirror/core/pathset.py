"""
Path Set — Ordered, disjoint collection of mirror points.

A mirror point is an absolute path. A trailing "/" marks a directory
(mirror it and everything under it); without it the point is one file.
"/" is the directory point covering everything.

## Ordering

Points are sorted child-aware: a directory sorts immediately before
everything inside it, so a directory and its descendants are contiguous:

    /x  <  /x/  <  /x/a  <  /x/b/c  <  /x-suffix

This is plain string order after mapping "/" to NUL, which sorts below
every other character.

## Invariant

No point is a strict ancestor directory of another, and no path is
declared both as a file and as a directory. Because descendants are
contiguous, checking a new point against its sorted neighbours is enough.
"""

from __future__ import annotations

import bisect
from typing import Iterator, List, Optional

from ..errors import ConflictError, InvalidPointError, NotFoundError

ROOT = "/"
SEP = "/"


def validate_point(point: str) -> str:
    """Check that a string is a well-formed point and return it."""
    if not isinstance(point, str) or not point.startswith(SEP):
        raise InvalidPointError(f"Mirror point must be an absolute path: {point!r}")
    if "\0" in point:
        raise InvalidPointError(f"Mirror point contains NUL: {point!r}")
    if point == ROOT:
        return point
    body = point[1:-1] if point.endswith(SEP) else point[1:]
    for part in body.split(SEP):
        if part in ("", ".", ".."):
            raise InvalidPointError(f"Mirror point is not normalized: {point!r}")
    return point


def is_dir_point(point: str) -> bool:
    return point.endswith(SEP)


def strip_tag(point: str) -> str:
    """Path without the directory tag ("/" stays "/")."""
    if point == ROOT:
        return ROOT
    return point.rstrip(SEP)


def as_dir(path: str) -> str:
    """Directory-tagged form of a path."""
    name = strip_tag(path)
    return name if name == ROOT else name + SEP


def sort_key(point: str) -> str:
    return point.replace(SEP, "\0")


def contains(directory: str, path: str) -> bool:
    """True if ``path`` lies strictly inside directory point ``directory``."""
    return (
        is_dir_point(directory)
        and path != directory
        and sort_key(path).startswith(sort_key(directory))
    )


def _clashes(lower: str, upper: str) -> Optional[str]:
    """Reason why two neighbours (``lower`` sorted first) conflict, if any."""
    if strip_tag(lower) == strip_tag(upper):
        return "is declared as both file and directory with"
    if contains(lower, upper):
        return "is inside declared directory"
    return None


class PathSet:
    """
    Ordered collection of mirror points with the disjointness invariant.

    Lookups are binary searches over the child-aware order.
    """

    def __init__(self, points: Optional[List[str]] = None):
        self._points: List[str] = []
        self._keys: List[str] = []
        for point in points or []:
            self.insert(point)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._points))

    def __len__(self) -> int:
        return len(self._points)

    def __contains__(self, point: object) -> bool:
        if not isinstance(point, str):
            return False
        key = sort_key(point)
        i = bisect.bisect_left(self._keys, key)
        return i < len(self._keys) and self._keys[i] == key

    def __repr__(self) -> str:
        return f"PathSet({self._points!r})"

    def points(self) -> List[str]:
        """Points in order (a copy)."""
        return list(self._points)

    def insert(self, point: str) -> bool:
        """
        Add a point.

        Returns False if the identical point is already present.

        Raises:
            InvalidPointError: If the point is malformed
            ConflictError: If the point overlaps a neighbour
        """
        validate_point(point)
        key = sort_key(point)
        i = bisect.bisect_left(self._keys, key)
        if i < len(self._keys) and self._keys[i] == key:
            return False

        self._points.insert(i, point)
        self._keys.insert(i, key)
        try:
            if i > 0:
                reason = _clashes(self._points[i - 1], point)
                if reason:
                    raise ConflictError(point, self._points[i - 1], reason)
            if i + 1 < len(self._points):
                reason = _clashes(point, self._points[i + 1])
                if reason:
                    raise ConflictError(self._points[i + 1], point, reason)
        except ConflictError:
            del self._points[i]
            del self._keys[i]
            raise
        return True

    def remove(self, point: str) -> None:
        """Remove an exact point; NotFoundError if absent."""
        key = sort_key(point)
        i = bisect.bisect_left(self._keys, key)
        if i >= len(self._keys) or self._keys[i] != key:
            raise NotFoundError(point)
        del self._points[i]
        del self._keys[i]

    def ancestor_of(self, path: str) -> Optional[str]:
        """
        The directory point strictly containing ``path``, if any.

        Any point sorted between an ancestor and ``path`` would itself be
        inside that ancestor, which the invariant forbids, so only the
        immediate predecessor needs checking.
        """
        i = bisect.bisect_left(self._keys, sort_key(path))
        if i == 0:
            return None
        candidate = self._points[i - 1]
        if contains(candidate, path):
            return candidate
        return None

    def self_of(self, path: str) -> Optional[str]:
        """The point equal to ``path`` as a file or as a directory."""
        name = strip_tag(path)
        for candidate in (name, as_dir(name)):
            if candidate in self:
                return candidate
        return None

    def descendants_of(self, path: str) -> List[str]:
        """Points lying inside ``path`` taken as a directory."""
        directory = as_dir(path)
        prefix = sort_key(directory)
        i = bisect.bisect_left(self._keys, prefix)
        found: List[str] = []
        while i < len(self._keys) and self._keys[i].startswith(prefix):
            if self._points[i] != directory:
                found.append(self._points[i])
            i += 1
        return found

    def copy(self) -> "PathSet":
        clone = PathSet()
        clone._points = list(self._points)
        clone._keys = list(self._keys)
        return clone
