"""
Mirror Settings — Parse BINDMIRROR_* environment variables.

    BINDMIRROR_DECLARATION=/etc/bindmirror/mirror.yaml
    BINDMIRROR_CACHE_TTL_MS=300
    BINDMIRROR_MOUNT_TIMEOUT=30

A .env file in the working directory is loaded first (see main.py).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_DECLARATION = Path("/etc/bindmirror/mirror.yaml")
DEFAULT_CACHE_TTL_MS = 300
DEFAULT_MOUNT_TIMEOUT = 30.0


def _env_number(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {raw!r}")
    return value


@dataclass
class MirrorSettings:
    """Runtime settings for a mirror session."""

    declaration_path: Path = DEFAULT_DECLARATION
    cache_ttl_ms: float = DEFAULT_CACHE_TTL_MS
    mount_timeout: float = DEFAULT_MOUNT_TIMEOUT

    @property
    def cache_ttl(self) -> float:
        """Observed-state cache TTL in seconds."""
        return self.cache_ttl_ms / 1000.0

    @classmethod
    def from_env(cls) -> "MirrorSettings":
        """Build settings from environment variables."""
        declaration = os.environ.get("BINDMIRROR_DECLARATION", "").strip()
        settings = cls(
            declaration_path=Path(declaration) if declaration else DEFAULT_DECLARATION,
            cache_ttl_ms=_env_number("BINDMIRROR_CACHE_TTL_MS", DEFAULT_CACHE_TTL_MS),
            mount_timeout=_env_number("BINDMIRROR_MOUNT_TIMEOUT", DEFAULT_MOUNT_TIMEOUT),
        )
        logger.debug(
            f"Settings: declaration={settings.declaration_path}, "
            f"cache_ttl_ms={settings.cache_ttl_ms:g}, mount_timeout={settings.mount_timeout:g}"
        )
        return settings
