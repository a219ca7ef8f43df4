"""Tests for listing and deduplicating installed packages."""

import os
from datetime import datetime

from packages.deduper import PackageDeduper
from packages.lister import InstalledPackage, PackageLister, format_file_size, group_by_name, sort_packages


SHA = "89abcdef0123456789abcdef0123456789abcdef"


def install(pkgs, dirname, size=0):
    path = pkgs / dirname
    path.mkdir(parents=True)
    (path / "data.bin").write_bytes(b"x" * size)
    return path


class TestFormatFileSize:

    def test_sizes(self):
        assert format_file_size(0) == "0 B"
        assert format_file_size(512) == "512 B"
        assert format_file_size(1536) == "1.5 KB"
        assert format_file_size(2 * 1024 * 1024) == "2 MB"


class TestPackageLister:

    def test_scan_skips_unparseable_entries(self, tmp_path):
        pkgs = tmp_path / "pkgs2"
        install(pkgs, f"jsony-1.1.5-{SHA}", size=10)
        install(pkgs, "notapackage")
        (pkgs / "stray-1.0.0.txt").write_text("", encoding="utf-8")

        found = PackageLister(str(pkgs)).scan()

        assert [(p.name, p.version, p.commit_hash, p.size) for p in found] == [("jsony", "1.1.5", SHA, 10)]
        assert isinstance(found[0].install_date, datetime)

    def test_missing_directory(self, tmp_path):
        assert PackageLister(str(tmp_path / "missing")).scan() == []

    def test_list_sorted_by_name(self, tmp_path):
        pkgs = tmp_path / "pkgs2"
        install(pkgs, "zippy-0.10.0")
        install(pkgs, "Jsony-1.0.0")
        install(pkgs, "cligen-1.5.0")

        names = [p.name for p in PackageLister(str(pkgs)).list("name")]

        assert names == ["cligen", "Jsony", "zippy"]

    def test_sort_by_version_and_size(self):
        packages = [
            InstalledPackage("a", "1.10.0", "/a", size=1),
            InstalledPackage("b", "1.9.0", "/b", size=3),
            InstalledPackage("c", "1.0.0", "/c", size=2),
        ]

        sort_packages(packages, "version")
        assert [p.version for p in packages] == ["1.0.0", "1.9.0", "1.10.0"]

        sort_packages(packages, "size")
        assert [p.size for p in packages] == [3, 2, 1]

    def test_display_logs_table(self, tmp_path, caplog):
        caplog.set_level("INFO")
        pkgs = tmp_path / "pkgs2"
        install(pkgs, "jsony-1.1.5", size=2048)
        lister = PackageLister(str(pkgs))

        lister.display(lister.list(), detailed=True)

        assert "Installed packages (1):" in caplog.text
        assert "2 KB" in caplog.text

    def test_group_by_name(self):
        packages = [InstalledPackage("a", "1.0.0", "/a1"), InstalledPackage("a", "2.0.0", "/a2"),
                    InstalledPackage("b", "1.0.0", "/b")]

        groups = group_by_name(packages)

        assert list(groups) == ["a", "b"]
        assert [p.version for p in groups["a"]] == ["1.0.0", "2.0.0"]


class TestPackageDeduper:

    def test_keeps_highest_version(self, tmp_path):
        pkgs = tmp_path / "pkgs2"
        old = install(pkgs, f"jsony-1.9.0-{SHA}")
        new = install(pkgs, f"jsony-1.10.0-{SHA}")
        only = install(pkgs, "cligen-1.5.0")

        removed = PackageDeduper(str(pkgs)).dedupe()

        assert [p.path for p in removed] == [str(old)]
        assert not old.exists()
        assert new.exists()
        assert only.exists()

    def test_dry_run_removes_nothing(self, tmp_path):
        pkgs = tmp_path / "pkgs2"
        old = install(pkgs, "jsony-1.0.0")
        install(pkgs, "jsony-2.0.0")

        removed = PackageDeduper(str(pkgs)).dedupe(dry_run=True)

        assert [p.version for p in removed] == ["1.0.0"]
        assert old.exists()

    def test_nothing_to_dedupe(self, tmp_path):
        pkgs = tmp_path / "pkgs2"
        install(pkgs, "jsony-1.0.0")

        assert PackageDeduper(str(pkgs)).dedupe() == []
        assert os.path.isdir(pkgs / "jsony-1.0.0")
