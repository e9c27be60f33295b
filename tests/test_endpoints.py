"""
Tests for endpoint materialization and path resolution.
"""

import pytest

from bindmirror.core.endpoints import materialize, resolve_point
from bindmirror.errors import SubsumptionError, SymlinkUnsupportedError, TypeConflictError
from bindmirror.system.linux import LinuxHost

from conftest import SOURCE, TARGET


class TestMaterialize:

    def test_both_missing_directory(self, host):
        created = materialize(host, SOURCE, TARGET, "/a/b/")
        assert created == ["/src/a/b", "/dst/a/b"]
        assert host.kind("/src/a/b") == host.kind("/dst/a/b") == "dir"

    def test_both_missing_file(self, host):
        materialize(host, SOURCE, TARGET, "/etc/machine-id")
        assert host.kind("/src/etc/machine-id") == "file"
        assert host.kind("/dst/etc/machine-id") == "file"
        assert host.kind("/dst/etc") == "dir"

    def test_source_missing_takes_target_kind(self, host):
        host.add_dir("/dst/a")
        created = materialize(host, SOURCE, TARGET, "/a/")
        assert created == ["/src/a"]
        assert host.kind("/src/a") == "dir"

    def test_target_missing_takes_source_kind(self, host):
        host.add_file("/src/f")
        assert materialize(host, SOURCE, TARGET, "/f") == ["/dst/f"]
        assert host.kind("/dst/f") == "file"

    def test_both_exist_same_kind(self, host):
        host.add_dir("/src/a")
        host.add_dir("/dst/a")
        assert materialize(host, SOURCE, TARGET, "/a/") == []
        assert host.calls == []

    def test_both_exist_different_kind(self, host):
        host.add_dir("/src/a")
        host.add_file("/dst/a")
        with pytest.raises(TypeConflictError):
            materialize(host, SOURCE, TARGET, "/a/")
        assert host.calls == []

    def test_existing_kind_contradicts_point(self, host):
        host.add_file("/src/a")
        with pytest.raises(TypeConflictError):
            materialize(host, SOURCE, TARGET, "/a/")

    @pytest.mark.parametrize("link", ["/src/l", "/dst/l"])
    def test_symlink_rejected(self, host, link):
        host.add_symlink(link)
        with pytest.raises(SymlinkUnsupportedError) as exc_info:
            materialize(host, SOURCE, TARGET, "/l")
        assert exc_info.value.path == link

    def test_target_directory_containing_source_root(self, host):
        # source root does not exist yet, so /mnt/t/x would be created
        with pytest.raises(SubsumptionError):
            materialize(host, "/mnt/t/x/src", "/mnt/t", "/x/")
        assert host.calls == []

    def test_existing_target_directory_is_not_subsumption(self, host):
        host.add_dir("/mnt/t/x/src")
        assert materialize(host, "/mnt/t/x/src", "/mnt/t", "/x/") == ["/mnt/t/x/src/x"]

    def test_dry_run_creates_nothing(self, host):
        created = materialize(host, SOURCE, TARGET, "/a/", dry_run=True)
        assert created == ["/src/a", "/dst/a"]
        assert host.kind("/src/a") is None

    def test_target_data_preserved_on_real_filesystem(self, tmp_path):
        source_root = tmp_path / "src"
        target_root = tmp_path / "dst"
        source_root.mkdir()
        (target_root / "data").mkdir(parents=True)
        (target_root / "data" / "keep.txt").write_text("precious")

        materialize(LinuxHost(), str(source_root), str(target_root), "/data/")

        assert (source_root / "data").is_dir()
        assert (target_root / "data" / "keep.txt").read_text() == "precious"


class TestResolvePoint:

    def test_trailing_slash_forces_directory(self, host):
        host.add_file("/src/a")
        assert resolve_point(host, SOURCE, TARGET, "/a/") == "/a/"

    def test_source_kind_wins(self, host):
        host.add_file("/src/a")
        host.add_dir("/dst/a")
        assert resolve_point(host, SOURCE, TARGET, "/a") == "/a"

    def test_target_kind_used_when_source_missing(self, host):
        host.add_file("/dst/a")
        assert resolve_point(host, SOURCE, TARGET, "/a") == "/a"

    def test_no_hint_defaults_to_directory(self, host):
        assert resolve_point(host, SOURCE, TARGET, "/new") == "/new/"

    def test_root(self, host):
        assert resolve_point(host, SOURCE, TARGET, "/") == "/"
