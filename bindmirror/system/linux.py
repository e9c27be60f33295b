"""
Linux Host — /proc/self/mountinfo and mount(8)/umount(8).

## mountinfo format

    36 35 98:0 /mnt1 /mnt2 rw,noatime master:1 - ext3 /dev/root rw,errors=continue
    (1)(2)(3)   (4)   (5)      (6)      (7)   (8) (9)   (10)         (11)

(3) is the device, (4) the root of the mount inside its filesystem and
(5) the mount point. Optional fields (7) end at the "-" separator.
Spaces, tabs, newlines and backslashes in paths are octal-escaped.
"""

from __future__ import annotations

import logging
import os
import re
import stat
import subprocess
from pathlib import Path
from typing import List, Optional

from ..errors import FilesystemError, MountError, MountTableError
from .host import KIND_DIR, KIND_FILE, Host, MountEntry

logger = logging.getLogger(__name__)

MOUNTINFO_PATH = Path("/proc/self/mountinfo")

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")

# umount(8) wording differs between util-linux versions
_NOT_MOUNTED_MARKERS = ("not mounted", "not a mount point", "no mount point specified")


def _unescape(field: str) -> str:
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), field)


def parse_mountinfo(text: str) -> List[MountEntry]:
    """
    Parse mountinfo content into mount entries.

    Raises:
        MountTableError: If any line is malformed
    """
    entries: List[MountEntry] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        fields = line.split(" ")
        try:
            separator = fields.index("-", 6)
        except ValueError:
            raise MountTableError(f"mountinfo line {lineno}: missing separator")
        if separator + 2 >= len(fields):
            raise MountTableError(f"mountinfo line {lineno}: truncated")

        device = fields[2]
        if not re.fullmatch(r"\d+:\d+", device):
            raise MountTableError(f"mountinfo line {lineno}: bad device {device!r}")

        root = _unescape(fields[3])
        mount_point = _unescape(fields[4])
        if not root.startswith("/") or not mount_point.startswith("/"):
            # e.g. "net:[4026531992]" roots of nsfs mounts
            logger.debug(f"[mounts] Skipping non-path mount on line {lineno}: {line}")
            continue

        entries.append(MountEntry(mount_point=mount_point, device=device, root=root))
    return entries


class LinuxHost(Host):
    """Host backed by the running Linux kernel."""

    def __init__(self, mountinfo_path: Path = MOUNTINFO_PATH, timeout: float = 30):
        self.mountinfo_path = mountinfo_path
        self.timeout = timeout

    # ─── Mount table ────────────────────────────────────────

    def read_mount_table(self) -> List[MountEntry]:
        try:
            text = self.mountinfo_path.read_text(encoding="utf-8", errors="surrogateescape")
        except OSError as e:
            raise MountTableError(f"Cannot read {self.mountinfo_path}: {e}")
        return parse_mountinfo(text)

    # ─── Mount control ──────────────────────────────────────

    def _run(self, cmd: List[str]) -> subprocess.CompletedProcess:
        logger.debug(f"[mounts] Running: {' '.join(cmd)}")
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise MountError(cmd, -1, str(e))

    def bind_mount(self, source: str, target: str) -> None:
        cmd = ["mount", "--bind", source, target]
        result = self._run(cmd)
        if result.returncode != 0:
            raise MountError(cmd, result.returncode, result.stderr)
        logger.info(f"[mounts] Bound {source} → {target}")

    def unmount(self, target: str) -> bool:
        cmd = ["umount", target]
        result = self._run(cmd)
        if result.returncode == 0:
            logger.info(f"[mounts] Unmounted {target}")
            return True
        stderr = (result.stderr or "").lower()
        if any(marker in stderr for marker in _NOT_MOUNTED_MARKERS):
            logger.debug(f"[mounts] {target} was not mounted")
            return False
        raise MountError(cmd, result.returncode, result.stderr)

    # ─── Filesystem ─────────────────────────────────────────

    def _lstat_mode(self, path: str) -> Optional[int]:
        try:
            return os.lstat(path).st_mode
        except (FileNotFoundError, NotADirectoryError):
            # a parent is missing or is a file
            return None
        except OSError as e:
            raise FilesystemError(f"Cannot inspect {path}: {e}", path=path)

    def kind(self, path: str) -> Optional[str]:
        mode = self._lstat_mode(path)
        if mode is None:
            return None
        return KIND_DIR if stat.S_ISDIR(mode) else KIND_FILE

    def is_symlink(self, path: str) -> bool:
        mode = self._lstat_mode(path)
        return mode is not None and stat.S_ISLNK(mode)

    def make_file(self, path: str) -> None:
        p = Path(path)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.touch(exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create file {path}: {e}", path=path)
        logger.info(f"[fs] Created file {path}")

    def make_dir(self, path: str) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"Cannot create directory {path}: {e}", path=path)
        logger.info(f"[fs] Created directory {path}")

    def resolve(self, path: str) -> str:
        return os.path.realpath(path)
