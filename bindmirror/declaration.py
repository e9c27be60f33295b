"""
Declaration File — YAML description of what should be mirrored.

    source: /persist
    target: /
    points:
      - /etc/ssh/
      - /var/lib/machine-id

Points ending in "/" are directories. Order in the file does not matter;
points are written back in PathSet order.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .core.pathset import PathSet, validate_point
from .errors import DeclarationError, InvalidPointError

if TYPE_CHECKING:
    from .core.controller import MirrorController

logger = logging.getLogger(__name__)


class Declaration(BaseModel):
    """Source root, target root and the declared points."""

    source: str
    target: str
    points: List[str] = Field(default_factory=list)

    @field_validator("source", "target")
    @classmethod
    def _absolute_root(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError(f"must be an absolute path, got {value!r}")
        return value

    @field_validator("points")
    @classmethod
    def _valid_points(cls, value: List[str]) -> List[str]:
        for point in value:
            try:
                validate_point(point)
            except InvalidPointError as e:
                raise ValueError(str(e))
        return value

    @model_validator(mode="after")
    def _distinct_roots(self) -> "Declaration":
        if os.path.normpath(self.source) == os.path.normpath(self.target):
            raise ValueError(f"source and target must differ, both are {self.source!r}")
        return self

    def to_path_set(self) -> PathSet:
        """
        Build the declared PathSet.

        Raises:
            ConflictError: If two points overlap
        """
        return PathSet(self.points)

    @classmethod
    def from_controller(cls, controller: "MirrorController") -> "Declaration":
        """Snapshot of a controller's roots and declared points."""
        return cls(
            source=controller.source_root,
            target=controller.target_root,
            points=controller.points(),
        )


def load_declaration(path: Path) -> Declaration:
    """
    Load a declaration file.

    Raises:
        DeclarationError: If the file is missing, not YAML, or invalid
    """
    logger.debug(f"Loading declaration from {path}")
    if not path.exists():
        raise DeclarationError(f"Declaration file does not exist: {path}")

    try:
        with path.open("r", encoding="utf-8") as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DeclarationError(f"Invalid YAML in {path}: {e}")

    if not isinstance(data, dict):
        raise DeclarationError(f"Declaration must be a mapping: {path}")

    try:
        declaration = Declaration(**data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise DeclarationError(
            first.get("msg", "invalid value"),
            field=field or None,
            details={"path": str(path), "errors": e.errors()},
        )

    logger.debug(f"Declaration loaded: {len(declaration.points)} point(s)")
    return declaration


def save_declaration(declaration: Declaration, path: Path) -> None:
    """
    Write a declaration file.

    Uses atomic write (write to temp, then rename) to prevent corruption.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    data: Dict[str, Any] = declaration.model_dump()

    temp_path = path.with_suffix(path.suffix + ".tmp")
    with temp_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)

    temp_path.rename(path)
    logger.info(f"Declaration saved: {len(declaration.points)} point(s) → {path.name}")
