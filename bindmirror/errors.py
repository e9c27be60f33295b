"""
Errors — Exception hierarchy for the mirror engine.

Structural errors (ConflictError, NotFoundError) are caller bugs and are
never retried. StatePreconditionError means the live state disallows the
operation; force_unmount is the usual way out. Materialization errors are
fatal to the point being processed. HostError covers external calls.

## Usage

    from bindmirror.errors import MirrorError

    try:
        controller.insert_point("/etc/ssh/")
    except MirrorError as e:
        print(f"Mirror operation failed: {e}")
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence


class MirrorError(Exception):
    """Base class for all mirror engine errors."""
    pass


class InvalidPointError(MirrorError, ValueError):
    """Raised when a string is not a well-formed mirror point."""
    pass


class ConflictError(MirrorError):
    """Raised when a point would break the disjointness invariant."""

    def __init__(self, point: str, other: str, reason: str = "overlaps"):
        self.point = point
        self.other = other
        self.reason = reason
        super().__init__(f"{point} {reason} {other}")


class AncestorConflictError(ConflictError):
    """Raised when removing a path that is covered by a declared directory."""

    def __init__(self, point: str, ancestor: str):
        super().__init__(point, ancestor, reason="is covered by declared directory")
        self.ancestor = ancestor


class NotFoundError(MirrorError, KeyError):
    """Raised when removing a point that is not declared."""

    def __init__(self, point: str):
        self.point = point
        super().__init__(point)

    def __str__(self) -> str:
        return f"Not declared: {self.point}"


class StatePreconditionError(MirrorError):
    """Raised when the live status does not allow an operation."""

    def __init__(self, operation: str, status: object, allowed: Optional[Sequence[object]] = None):
        self.operation = operation
        self.status = status
        self.allowed = list(allowed or [])
        message = f"Refusing {operation} while status is {status}"
        if self.allowed:
            message += f" (allowed: {', '.join(str(a) for a in self.allowed)})"
        super().__init__(message)


class MaterializationError(MirrorError):
    """Raised when the endpoints of a point cannot be prepared."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class TypeConflictError(MaterializationError):
    """Source and target exist but disagree in kind."""
    pass


class SymlinkUnsupportedError(MaterializationError):
    """An endpoint is a symbolic link; bind mounts follow links."""
    pass


class SubsumptionError(MaterializationError):
    """Creating the target directory would contain the source root."""
    pass


class HostError(MirrorError):
    """Base class for failures of the host collaborators."""
    pass


class MountError(HostError):
    """Raised when a mount or umount command fails."""

    def __init__(self, cmd: List[str], returncode: int, stderr: str = ""):
        self.cmd = cmd
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = self.stderr or f"exit code {returncode}"
        super().__init__(f"{' '.join(cmd)} failed: {detail}")


class MountTableError(HostError):
    """Raised when the live mount table cannot be read or parsed."""
    pass


class FilesystemError(HostError):
    """Raised when a path cannot be inspected or created."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class DeclarationError(MirrorError):
    """Raised when the declaration file is missing or invalid."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict] = None):
        self.message = message
        self.field = field
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message


class ConfigurationError(MirrorError):
    """Raised when configuration is missing or invalid."""
    pass
