"""Tests for the package installer."""

import json
import os
from unittest.mock import MagicMock, patch

import pytest

from manifest.models import DependencySpec, PackageManifest, ResolvedDependency
from packages.installer import InstallError, PackageInstaller, parse_github_url
from resolution.errors import NoCandidateError


class TestParseGithubUrl:

    def test_plain(self):
        assert parse_github_url("https://github.com/treeform/jsony") == ("treeform", "jsony", None)

    def test_git_suffix_and_feature(self):
        assert parse_github_url("https://github.com/elcritch/figdraw.git[windy]") == ("elcritch", "figdraw", "windy")

    def test_invalid(self):
        with pytest.raises(InstallError):
            parse_github_url("https://gitlab.com/a/b")


class TestDefaultBranch:

    @patch("packages.installer.get_json")
    def test_detected(self, mock_get_json, tmp_path):
        mock_get_json.return_value = (200, {}, {"default_branch": "master"})

        assert PackageInstaller(str(tmp_path), None).default_branch("a", "b") == "master"

    @patch("packages.installer.get_json")
    def test_rate_limited(self, mock_get_json, tmp_path):
        mock_get_json.return_value = (403, {}, None)

        with pytest.raises(InstallError):
            PackageInstaller(str(tmp_path), None).default_branch("a", "b")

    @patch("packages.installer.get_json")
    def test_falls_back_to_main(self, mock_get_json, tmp_path):
        mock_get_json.return_value = (404, {}, None)

        assert PackageInstaller(str(tmp_path), None).default_branch("a", "b") == "main"


class TestInstallTree:

    def test_copies_src_dir_and_writes_metadata(self, tmp_path):
        source = tmp_path / "jsony-master"
        (source / "src").mkdir(parents=True)
        (source / "src" / "jsony.nim").write_text("proc x() = discard\n", encoding="utf-8")
        (source / "tests").mkdir()
        (source / "jsony.nimble").write_text('version = "1.1.5"\nsrcDir = "src"\n', encoding="utf-8")
        install_dir = tmp_path / "pkgs2"

        target = PackageInstaller(str(install_dir), None)._install_tree(
            str(source), "abc123", "https://github.com/treeform/jsony"
        )

        assert target == str(install_dir / "jsony-1.1.5-abc123")
        assert os.path.isfile(os.path.join(target, "jsony.nim"))
        assert os.path.isfile(os.path.join(target, "jsony.nimble"))
        assert not os.path.exists(os.path.join(target, "tests"))
        with open(os.path.join(target, "nimblemeta.json"), encoding="utf-8") as fh:
            meta = json.load(fh)["metaData"]
        assert meta["url"] == "https://github.com/treeform/jsony"
        assert meta["vcsRevision"] == "abc123"
        assert sorted(meta["files"]) == ["jsony.nim", "jsony.nimble"]

    def test_without_manifest(self, tmp_path):
        source = tmp_path / "src"
        source.mkdir()

        assert PackageInstaller(str(tmp_path / "pkgs2"), None)._install_tree(str(source), "x", "u") is None


class TestInstallManifest:

    def test_fetches_missing_package_then_retries(self, tmp_path):
        installer = PackageInstaller(str(tmp_path), None)
        resolved = [ResolvedDependency("jsony", "1.2.0", "https://github.com/treeform/jsony", True)]
        fake_resolver = MagicMock()
        fake_resolver.resolve.side_effect = [NoCandidateError("jsony", ">=1.1.0"), resolved]
        manifest = PackageManifest(name="app", dependencies=[DependencySpec("jsony", "1.1.0")])

        with patch.object(installer, "resolver", return_value=fake_resolver), \
                patch.object(installer, "install_registry_package") as mock_install:
            result = installer.install_manifest(manifest)

        mock_install.assert_called_once_with("jsony")
        assert result == resolved

    def test_gives_up_after_one_fetch(self, tmp_path):
        installer = PackageInstaller(str(tmp_path), None)
        fake_resolver = MagicMock()
        fake_resolver.resolve.side_effect = NoCandidateError("jsony", ">=9.0.0")
        manifest = PackageManifest(dependencies=[DependencySpec("jsony", "9.0.0", "https://github.com/treeform/jsony")])

        with patch.object(installer, "resolver", return_value=fake_resolver), \
                patch.object(installer, "install_url") as mock_install_url:
            with pytest.raises(NoCandidateError):
                installer.install_manifest(manifest)

        mock_install_url.assert_called_once_with("https://github.com/treeform/jsony")

    def test_installs_only_missing_dependencies(self, tmp_path):
        installer = PackageInstaller(str(tmp_path), None)
        fake_resolver = MagicMock()
        fake_resolver.resolve.return_value = [
            ResolvedDependency("nim", "2.0.0", "", True),
            ResolvedDependency("jsony", "1.2.0", "https://github.com/treeform/jsony", True),
            ResolvedDependency("cligen", "0.0.0", "https://github.com/c-blake/cligen", False),
        ]

        with patch.object(installer, "resolver", return_value=fake_resolver), \
                patch.object(installer, "install_url") as mock_install_url:
            installer.install_manifest(PackageManifest())

        mock_install_url.assert_called_once_with("https://github.com/c-blake/cligen")
