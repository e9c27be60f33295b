"""
Tests for the declaration file loader/saver.
"""

from pathlib import Path

import pytest
import yaml

from bindmirror.core.controller import MirrorController
from bindmirror.declaration import Declaration, load_declaration, save_declaration
from bindmirror.errors import ConflictError, DeclarationError


def write_declaration(path: Path, data) -> Path:
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


class TestLoadDeclaration:

    def test_load(self, tmp_path):
        path = write_declaration(
            tmp_path / "mirror.yaml",
            {"source": "/persist", "target": "/", "points": ["/var/lib/machine-id", "/etc/ssh/"]},
        )

        declaration = load_declaration(path)

        assert declaration.source == "/persist"
        assert declaration.target == "/"
        assert declaration.to_path_set().points() == ["/etc/ssh/", "/var/lib/machine-id"]

    def test_points_default_empty(self, tmp_path):
        path = write_declaration(tmp_path / "m.yaml", {"source": "/a", "target": "/b"})
        assert load_declaration(path).points == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(DeclarationError, match="does not exist"):
            load_declaration(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "m.yaml"
        path.write_text("source: [unclosed\n")
        with pytest.raises(DeclarationError, match="Invalid YAML"):
            load_declaration(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "m.yaml"
        path.write_text("- /a\n- /b\n")
        with pytest.raises(DeclarationError):
            load_declaration(path)

    def test_relative_root(self, tmp_path):
        path = write_declaration(tmp_path / "m.yaml", {"source": "persist", "target": "/"})
        with pytest.raises(DeclarationError) as exc_info:
            load_declaration(path)
        assert exc_info.value.field == "source"

    def test_invalid_point(self, tmp_path):
        path = write_declaration(
            tmp_path / "m.yaml", {"source": "/a", "target": "/b", "points": ["/ok", "../bad"]}
        )
        with pytest.raises(DeclarationError) as exc_info:
            load_declaration(path)
        assert exc_info.value.field.startswith("points")

    def test_equal_roots(self, tmp_path):
        path = write_declaration(tmp_path / "m.yaml", {"source": "/data/", "target": "/data"})
        with pytest.raises(DeclarationError, match="must differ"):
            load_declaration(path)

    def test_overlapping_points_rejected_by_path_set(self):
        declaration = Declaration(source="/a", target="/b", points=["/etc/", "/etc/ssh/"])
        with pytest.raises(ConflictError):
            declaration.to_path_set()


class TestSaveDeclaration:

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / "conf" / "mirror.yaml"
        declaration = Declaration(source="/persist", target="/", points=["/b", "/a/"])

        save_declaration(declaration, path)

        assert load_declaration(path) == declaration
        assert not path.with_suffix(".yaml.tmp").exists()

    def test_key_order(self, tmp_path):
        path = tmp_path / "mirror.yaml"
        save_declaration(Declaration(source="/s", target="/t"), path)
        assert path.read_text().splitlines()[0] == "source: /s"

    def test_from_controller(self, host):
        from bindmirror.core.pathset import PathSet

        controller = MirrorController("/src", "/dst", PathSet(["/z", "/a/"]), host=host)
        declaration = Declaration.from_controller(controller)

        assert declaration.source == "/src"
        assert declaration.target == "/dst"
        assert declaration.points == ["/a/", "/z"]
