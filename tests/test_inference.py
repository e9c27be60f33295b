"""
Tests for observed-state inference.

Uses the FakeHost from conftest: /src and /dst on device 8:1.
"""

from bindmirror.core.inference import find_source_mounts, infer_observed
from bindmirror.core.status import UNPARSEABLE
from bindmirror.system.host import MountEntry

from conftest import SOURCE, TARGET, bind


class TestFindSourceMounts:

    def test_recognizes_own_bind_mounts(self, host):
        bind(host, "/a/")
        bind(host, "/c")

        matches = find_source_mounts(host, SOURCE, TARGET)

        assert [point for point, _ in matches] == ["/a/", "/c"]
        assert matches[0][1] == MountEntry("/dst/a", "8:1", "/src/a")

    def test_ignores_mounts_outside_target(self, host):
        host.add_dir("/elsewhere")
        host.add_dir("/src/elsewhere")
        host.bind_mount("/src/elsewhere", "/elsewhere")

        assert find_source_mounts(host, SOURCE, TARGET) == []

    def test_ignores_unrelated_mount(self, host):
        host.add_dir("/src/tmp")
        host.add_dir("/dst/tmp")
        host.mounts.append(MountEntry("/dst/tmp", "0:42", "/"))

        assert find_source_mounts(host, SOURCE, TARGET) == []

    def test_ignores_mount_from_wrong_source_path(self, host):
        host.add_dir("/src/a")
        host.add_dir("/src/b")
        host.add_dir("/dst/a")
        host.bind_mount("/src/b", "/dst/a")

        assert find_source_mounts(host, SOURCE, TARGET) == []

    def test_ignores_mount_without_source(self, host):
        host.add_dir("/other")
        host.add_dir("/dst/a")
        host.bind_mount("/other", "/dst/a")

        assert find_source_mounts(host, SOURCE, TARGET) == []

    def test_target_root_itself(self, host):
        host.bind_mount(SOURCE, TARGET)

        assert [p for p, _ in find_source_mounts(host, SOURCE, TARGET)] == ["/"]

    def test_source_on_separate_filesystem(self, host):
        host.mounts.append(MountEntry("/src", "9:3", "/"))
        host.add_dir("/src/a")
        host.add_dir("/dst/a")
        host.bind_mount("/src/a", "/dst/a")

        matches = find_source_mounts(host, SOURCE, TARGET)

        assert matches[0][1] == MountEntry("/dst/a", "9:3", "/a")
        assert [p for p, _ in matches] == ["/a/"]


class TestInferObserved:

    def test_empty(self, host):
        assert infer_observed(host, SOURCE, TARGET) == frozenset()

    def test_observed_points(self, host):
        bind(host, "/a/")
        bind(host, "/c")

        assert infer_observed(host, SOURCE, TARGET) == frozenset({"/a/", "/c"})

    def test_unreadable_table_fails_closed(self, host):
        bind(host, "/a/")
        host.broken_table = True

        assert infer_observed(host, SOURCE, TARGET) is UNPARSEABLE

    def test_heuristic_error_fails_closed(self, host, monkeypatch):
        bind(host, "/a/")

        def boom(path):
            raise RuntimeError("stat failed")

        monkeypatch.setattr(host, "kind", boom)

        assert infer_observed(host, SOURCE, TARGET) is UNPARSEABLE

    def test_stacked_mounts_fail_closed(self, host, caplog):
        bind(host, "/a/")
        host.bind_mount("/src/a", "/dst/a")

        assert infer_observed(host, SOURCE, TARGET) is UNPARSEABLE
        assert "Stacked mounts at /a/" in caplog.text
