"""
Shared fixtures for mirror engine tests.

Provides an in-memory FakeHost that models a filesystem tree and a mount
table, so controller tests run without root and without touching the real
system. Source root is /src, target root is /dst, both on device 8:1.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Set

import pytest

from bindmirror.core.controller import MirrorController
from bindmirror.core.pathset import PathSet
from bindmirror.errors import FilesystemError, MountError, MountTableError
from bindmirror.system.host import (
    KIND_DIR,
    KIND_FILE,
    Host,
    MountEntry,
    lookup_device_offset,
)

SOURCE = "/src"
TARGET = "/dst"


class FakeHost(Host):
    """In-memory host: a path→kind map plus an ordered mount list."""

    def __init__(self):
        self.nodes: Dict[str, str] = {"/": KIND_DIR}
        self.symlinks: Set[str] = set()
        self.mounts: List[MountEntry] = [MountEntry("/", "8:1", "/")]
        self.busy: Set[str] = set()
        self.fail_create: Set[str] = set()
        self.broken_table = False
        self.table_reads = 0
        self.calls: List[tuple] = []

    # Filesystem

    def _parents(self, path: str) -> None:
        parts = path.strip("/").split("/")[:-1]
        current = ""
        for part in parts:
            current += "/" + part
            self.nodes.setdefault(current, KIND_DIR)

    def add_dir(self, path: str) -> None:
        self._parents(path)
        self.nodes[path] = KIND_DIR

    def add_file(self, path: str) -> None:
        self._parents(path)
        self.nodes[path] = KIND_FILE

    def add_symlink(self, path: str) -> None:
        self.add_file(path)
        self.symlinks.add(path)

    def kind(self, path: str) -> Optional[str]:
        return self.nodes.get(path)

    def is_symlink(self, path: str) -> bool:
        return path in self.symlinks

    def _check_create(self, path: str) -> None:
        if path in self.fail_create:
            raise FilesystemError(f"Cannot create {path}: read-only file system", path=path)

    def make_file(self, path: str) -> None:
        self.calls.append(("make_file", path))
        self._check_create(path)
        self.add_file(path)

    def make_dir(self, path: str) -> None:
        self.calls.append(("make_dir", path))
        self._check_create(path)
        self.add_dir(path)

    # Mounts

    def read_mount_table(self) -> List[MountEntry]:
        self.table_reads += 1
        if self.broken_table:
            raise MountTableError("mountinfo line 3: truncated")
        return list(self.mounts)

    def bind_mount(self, source: str, target: str) -> None:
        self.calls.append(("bind_mount", source, target))
        if source not in self.nodes or target not in self.nodes:
            raise MountError(["mount", "--bind", source, target], 32, "special device does not exist")
        device, offset = lookup_device_offset(source, self.mounts)
        self.mounts.append(MountEntry(target, device, offset))

    def unmount(self, target: str) -> bool:
        self.calls.append(("unmount", target))
        if target in self.busy:
            raise MountError(["umount", target], 32, f"umount: {target}: target is busy.")
        for i in range(len(self.mounts) - 1, -1, -1):
            if self.mounts[i].mount_point == target:
                del self.mounts[i]
                return True
        return False

    def mount_points(self) -> List[str]:
        return [m.mount_point for m in self.mounts if m.mount_point != "/"]


@pytest.fixture
def host() -> FakeHost:
    fake = FakeHost()
    fake.add_dir(SOURCE)
    fake.add_dir(TARGET)
    return fake


@pytest.fixture
def make_controller(host: FakeHost):
    """Factory for controllers over /src → /dst with a fixed clock."""

    def _make(points=None, cache_ttl: float = 0.3) -> MirrorController:
        return MirrorController(
            SOURCE,
            TARGET,
            PathSet(points or []),
            host=host,
            cache_ttl=cache_ttl,
            clock=lambda: 0.0,
        )

    return _make


def bind(host: FakeHost, point: str) -> None:
    """Mount a point the way the controller would, creating both ends."""
    rel = point.rstrip("/") or "/"
    source = SOURCE if rel == "/" else SOURCE + rel
    target = TARGET if rel == "/" else TARGET + rel
    if point.endswith("/"):
        host.add_dir(source)
        host.add_dir(target)
    else:
        host.add_file(source)
        host.add_file(target)
    host.bind_mount(source, target)
