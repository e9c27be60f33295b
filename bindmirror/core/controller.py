"""
Mirror Controller — Reconcile declared points against live mounts.

This is the main entry point of the engine. It owns the source root, the
target root and the declared PathSet, reads the live state through a Host,
and converges the two.

## Usage

    from bindmirror.core.controller import MirrorController
    from bindmirror.core.pathset import PathSet
    from bindmirror.core.status import MirrorStatus

    controller = MirrorController("/persist", "/", PathSet(["/etc/ssh/"]))
    if controller.status() is not MirrorStatus.FULL:
        controller.mount_all()

## Error policy

Structural and precondition errors are raised and abort the operation.
Per-point mount/unmount failures during bulk operations are logged and
show up in the returned status instead; re-running makes further progress.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional, Tuple

from ..errors import (
    AncestorConflictError,
    ConflictError,
    HostError,
    MaterializationError,
    StatePreconditionError,
)
from ..system.host import Host, join_root
from .endpoints import materialize, resolve_point
from .inference import find_source_mounts, infer_observed
from .pathset import PathSet, is_dir_point, sort_key, validate_point
from .status import MirrorStatus, classify

logger = logging.getLogger(__name__)

DEFAULT_CACHE_TTL = 0.3


@dataclass
class PointChange:
    """Points added to and removed from the declaration by one operation."""

    inserted: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.inserted or self.removed)

    def to_dict(self) -> dict:
        return {
            "inserted": list(self.inserted),
            "removed": list(self.removed),
            "dry_run": self.dry_run,
        }


@dataclass
class ForceUnmountReport:
    """Outcome of force_unmount."""

    passes: int = 0
    unmounted: int = 0
    remaining: List[str] = field(default_factory=list)
    status: MirrorStatus = MirrorStatus.INVALID

    @property
    def complete(self) -> bool:
        return not self.remaining

    def to_dict(self) -> dict:
        return {
            "passes": self.passes,
            "unmounted": self.unmounted,
            "remaining": list(self.remaining),
            "status": self.status.value,
            "complete": self.complete,
        }


def _normalize_root(root: str, name: str) -> str:
    if not root or not os.path.isabs(root):
        raise ValueError(f"{name} root must be an absolute path: {root!r}")
    return os.path.normpath(root)


class MirrorController:
    """
    Keeps a declared PathSet and the live mount table converged.

    The observed state is cached for ``cache_ttl`` seconds and dropped after
    every mutation, so external changes are picked up quickly without
    re-reading the mount table on every query.
    """

    def __init__(
        self,
        source_root: str,
        target_root: str,
        declared: Optional[PathSet] = None,
        host: Optional[Host] = None,
        cache_ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source_root = _normalize_root(source_root, "Source")
        self.target_root = _normalize_root(target_root, "Target")
        if self.source_root == self.target_root:
            raise ValueError(f"Source and target roots must differ: {self.source_root}")

        if host is None:
            from ..system.linux import LinuxHost
            host = LinuxHost()
        self.host = host
        self.declared = declared if declared is not None else PathSet()
        self.cache_ttl = cache_ttl
        self._clock = clock
        self._observed: Optional[Tuple[float, FrozenSet[str]]] = None

    # ─── Paths ──────────────────────────────────────────────

    def source_path(self, point: str) -> str:
        return join_root(self.source_root, point)

    def target_path(self, point: str) -> str:
        return join_root(self.target_root, point)

    def points(self) -> List[str]:
        """Declared points in order."""
        return self.declared.points()

    # ─── Live state ─────────────────────────────────────────

    def invalidate(self) -> None:
        """Drop the cached observed state."""
        self._observed = None

    def observed(self) -> FrozenSet[str]:
        """Points currently mounted by this tool (may be UNPARSEABLE)."""
        now = self._clock()
        if self._observed is not None:
            taken_at, cached = self._observed
            if now - taken_at <= self.cache_ttl:
                return cached

        observed = infer_observed(self.host, self.source_root, self.target_root)
        self._observed = (now, observed)
        return observed

    def status(self) -> MirrorStatus:
        return classify(frozenset(self.declared), self.observed())

    def _require(self, operation: str, *allowed: MirrorStatus) -> MirrorStatus:
        status = self.status()
        if status not in allowed:
            raise StatePreconditionError(operation, status, allowed)
        return status

    # ─── Bulk operations ────────────────────────────────────

    def mount_all(self) -> MirrorStatus:
        """
        Mount every declared point that is not mounted yet.

        Returns the final status. Points that fail are logged and skipped.

        Raises:
            StatePreconditionError: If the status is INVALID
        """
        status = self._require(
            "mount_all", MirrorStatus.NONE, MirrorStatus.PARTIAL, MirrorStatus.FULL
        )
        if status is MirrorStatus.FULL:
            logger.info("[mirror] All points already mounted")
            return status

        observed = self.observed()
        pending = [p for p in self.declared if p not in observed]
        logger.info(f"[mirror] Mounting {len(pending)} point(s)")

        failed = 0
        for point in pending:
            try:
                materialize(self.host, self.source_root, self.target_root, point)
                self.host.bind_mount(self.source_path(point), self.target_path(point))
            except (MaterializationError, HostError) as e:
                failed += 1
                logger.error(f"[mirror] Cannot mount {point}: {e}", extra={"point": point})

        self.invalidate()
        final = self.status()
        logger.info(
            f"[mirror] Mounted {len(pending) - failed}/{len(pending)} point(s), status {final}"
        )
        return final

    def unmount_all(self) -> MirrorStatus:
        """
        Unmount every observed point, deepest first.

        Raises:
            StatePreconditionError: If the status is INVALID
        """
        status = self._require(
            "unmount_all", MirrorStatus.FULL, MirrorStatus.PARTIAL, MirrorStatus.NONE
        )
        if status is MirrorStatus.NONE:
            logger.info("[mirror] Nothing mounted")
            return status

        mounted = sorted(self.observed(), key=sort_key, reverse=True)
        logger.info(f"[mirror] Unmounting {len(mounted)} point(s)")

        failed = 0
        for point in mounted:
            try:
                self.host.unmount(self.target_path(point))
            except HostError as e:
                failed += 1
                logger.error(f"[mirror] Cannot unmount {point}: {e}", extra={"point": point})

        self.invalidate()
        final = self.status()
        logger.info(
            f"[mirror] Unmounted {len(mounted) - failed}/{len(mounted)} point(s), status {final}"
        )
        return final

    def force_unmount(self) -> ForceUnmountReport:
        """
        Unmount everything under the target that is backed by the source.

        Ignores the declaration. Loops until nothing is left or a pass makes
        no progress; leftovers need an operator.

        Raises:
            StatePreconditionError: If the status is not INVALID
        """
        self._require("force_unmount", MirrorStatus.INVALID)
        report = ForceUnmountReport()

        remaining = self._source_mount_points()
        while remaining:
            report.passes += 1
            logger.warning(
                f"[mirror] Force unmount pass {report.passes}: {len(remaining)} mount(s)"
            )
            for mount_point in remaining:
                try:
                    if self.host.unmount(mount_point):
                        report.unmounted += 1
                except HostError as e:
                    logger.warning(f"[mirror] Force unmount of {mount_point} failed: {e}")

            left = self._source_mount_points()
            if len(left) >= len(remaining):
                remaining = left
                break
            remaining = left

        self.invalidate()
        report.remaining = remaining
        report.status = self.status()
        if report.complete:
            logger.info(f"[mirror] Force unmount complete, status {report.status}")
        else:
            logger.error(
                f"[mirror] Force unmount incomplete; needs operator intervention: "
                f"{', '.join(remaining)}"
            )
        return report

    def _source_mount_points(self) -> List[str]:
        """Raw source-backed mount points, most specific first."""
        matches = find_source_mounts(self.host, self.source_root, self.target_root)
        mount_points = [entry.mount_point for _, entry in matches]
        return sorted(mount_points, key=lambda p: (p.count("/"), p), reverse=True)

    # ─── Point mutations ────────────────────────────────────

    def insert_point(self, path: str, dry_run: bool = False) -> PointChange:
        """
        Declare ``path`` and, if everything is mounted, mount it right away.

        Declared points inside ``path`` are subsumed: unmounted if live, then
        dropped from the declaration.

        Raises:
            ConflictError: If ``path`` is declared with the other kind
            StatePreconditionError: If the status is INVALID
            MaterializationError: If the endpoints cannot be prepared
            HostError: If a live unmount or mount fails
        """
        point = validate_point(
            resolve_point(self.host, self.source_root, self.target_root, path)
        )
        change = PointChange(dry_run=dry_run)

        ancestor = self.declared.ancestor_of(point)
        if ancestor is not None:
            logger.info(f"[mirror] {point} already covered by {ancestor}")
            return change
        existing = self.declared.self_of(point)
        if existing == point:
            logger.info(f"[mirror] {point} already declared")
            return change
        if existing is not None:
            raise ConflictError(point, existing, "is declared as both file and directory with")

        status = self._require(
            "insert_point", MirrorStatus.FULL, MirrorStatus.PARTIAL, MirrorStatus.NONE
        )
        subsumed = self.declared.descendants_of(point) if is_dir_point(point) else []
        change.inserted = [point]
        change.removed = list(subsumed)

        if dry_run:
            materialize(self.host, self.source_root, self.target_root, point, dry_run=True)
            return change

        observed = self.observed()
        try:
            for child in reversed(subsumed):
                if child in observed:
                    self.host.unmount(self.target_path(child))
            materialize(self.host, self.source_root, self.target_root, point)
        finally:
            self.invalidate()

        for child in subsumed:
            self.declared.remove(child)
        try:
            self.declared.insert(point)
        except ConflictError:
            for child in subsumed:
                self.declared.insert(child)
            raise
        logger.info(
            f"[mirror] Declared {point}"
            + (f", subsuming {', '.join(subsumed)}" if subsumed else ""),
            extra={"point": point},
        )

        if status is MirrorStatus.FULL:
            try:
                self.host.bind_mount(self.source_path(point), self.target_path(point))
            finally:
                self.invalidate()
        return change

    def remove_point(self, path: str, dry_run: bool = False) -> PointChange:
        """
        Undeclare ``path`` (or every declared point inside it).

        Live mounts are removed before the declaration changes.

        Raises:
            AncestorConflictError: If ``path`` lies inside a declared directory
            StatePreconditionError: If the status is INVALID
            HostError: If a live unmount fails
        """
        validate_point(path)
        change = PointChange(dry_run=dry_run)

        ancestor = self.declared.ancestor_of(path)
        if ancestor is not None:
            raise AncestorConflictError(path, ancestor)

        exact = self.declared.self_of(path)
        targets = [exact] if exact is not None else self.declared.descendants_of(path)
        if not targets:
            logger.info(f"[mirror] {path} is not declared; nothing to remove")
            return change

        self._require(
            "remove_point", MirrorStatus.FULL, MirrorStatus.PARTIAL, MirrorStatus.NONE
        )
        change.removed = list(targets)
        if dry_run:
            return change

        observed = self.observed()
        for point in reversed(targets):
            if point in observed:
                try:
                    self.host.unmount(self.target_path(point))
                finally:
                    self.invalidate()
            self.declared.remove(point)
            logger.info(f"[mirror] Undeclared {point}", extra={"point": point})
        return change
