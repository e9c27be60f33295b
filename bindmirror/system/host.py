"""
Host Base Class — Interface to the live system.

The engine never touches the kernel or the filesystem directly. Everything
it needs from the outside world goes through a Host:

- mount table reads
- bind mount / unmount calls
- filesystem kind queries and creation
- device/offset queries for the ownership heuristic
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

KIND_DIR = "dir"
KIND_FILE = "file"


@dataclass(frozen=True)
class MountEntry:
    """One live mount: where it is, which device backs it, and from where."""

    mount_point: str
    device: str  # "major:minor"
    root: str  # path inside the backing filesystem that is mounted


def path_under(path: str, root: str) -> bool:
    """True if ``path`` equals ``root`` or lies inside it."""
    if root == "/":
        return path.startswith("/")
    return path == root or path.startswith(root.rstrip("/") + "/")


def relative_point(path: str, root: str) -> str:
    """Absolute path of ``path`` relative to ``root`` ("/" for root itself)."""
    if path == root:
        return "/"
    if root == "/":
        return path
    return path[len(root.rstrip("/")):]


def join_root(root: str, point: str) -> str:
    """Place a point under a root directory, dropping the directory tag."""
    rel = point.strip("/")
    if not rel:
        return root
    return os.path.join(root, rel)


def lookup_device_offset(path: str, mounts: Sequence[MountEntry]) -> Tuple[str, str]:
    """
    Device and filesystem offset of an absolute, resolved path.

    Uses the longest mount point containing the path. Later entries shadow
    earlier ones at the same mount point, matching mount order.
    """
    best: Optional[MountEntry] = None
    for entry in mounts:
        if not path_under(path, entry.mount_point):
            continue
        if best is None or len(entry.mount_point) >= len(best.mount_point):
            best = entry
    if best is None:
        raise LookupError(f"No mount contains {path}")

    inner = relative_point(path, best.mount_point)
    if inner == "/":
        return best.device, best.root
    if best.root == "/":
        return best.device, inner
    return best.device, best.root.rstrip("/") + inner


class Host(ABC):
    """
    Abstract base class for system access.

    LinuxHost talks to the kernel; tests use an in-memory fake.
    """

    @abstractmethod
    def read_mount_table(self) -> List[MountEntry]:
        """Live mounts in mount order."""
        ...

    @abstractmethod
    def bind_mount(self, source: str, target: str) -> None:
        """Bind ``source`` onto ``target``."""
        ...

    @abstractmethod
    def unmount(self, target: str) -> bool:
        """Unmount ``target``. Returns False if nothing was mounted there."""
        ...

    @abstractmethod
    def kind(self, path: str) -> Optional[str]:
        """KIND_DIR, KIND_FILE or None if missing. Does not follow symlinks."""
        ...

    @abstractmethod
    def is_symlink(self, path: str) -> bool:
        ...

    @abstractmethod
    def make_file(self, path: str) -> None:
        """Create an empty file, creating parents as needed."""
        ...

    @abstractmethod
    def make_dir(self, path: str) -> None:
        """Create a directory, creating parents as needed."""
        ...

    def resolve(self, path: str) -> str:
        """Canonical form of ``path`` used for device lookups."""
        return path

    def device_offset(
        self,
        path: str,
        mounts: Optional[Sequence[MountEntry]] = None,
    ) -> Tuple[str, str]:
        """
        Device id and offset of ``path`` inside its filesystem.

        A bind mount of ``path`` shows up in the mount table with exactly
        this device and this offset as its root.
        """
        if mounts is None:
            mounts = self.read_mount_table()
        return lookup_device_offset(self.resolve(path), mounts)
