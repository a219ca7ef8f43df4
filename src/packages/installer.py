"""Fetch GitHub-hosted packages and install them into a ``pkgs2`` directory.

A package is downloaded as a branch archive (or cloned with git), its
manifest is parsed, its own direct dependencies are resolved and installed
first, and its files are copied into ``<name>-<version>-<checksum>``
together with a ``nimblemeta.json`` record.
"""
from __future__ import annotations

import io
import logging
import os
import re
import shutil
import subprocess
import tarfile
import tempfile
from typing import List, Optional, Set, Tuple

import requests

from constants import Constants
from common.http_client import download_bytes, get_json
from manifest.models import PackageManifest, ResolvedDependency
from manifest.parser import find_manifest_file, package_name_from_path, parse_file
from resolution.discovery import CandidateDiscovery
from resolution.errors import NoCandidateError
from resolution.resolver import SatDependencyResolver
from .checksums import calculate_dir_sha1_checksum
from .metadata import create_package_metadata, installed_files, save_metadata

logger = logging.getLogger(__name__)

GITHUB_REPO_RE = re.compile(r'github\.com/([^/]+)/([^/\[]+)')
FEATURE_SELECTOR_RE = re.compile(r'\[([^\]]+)\]')


class InstallError(Exception):
    """A package could not be fetched or installed."""


def parse_github_url(url: str) -> Tuple[str, str, Optional[str]]:
    """Return (owner, repo, feature) from a GitHub URL.

    Raises:
        InstallError: if ``url`` does not name a GitHub repository.
    """
    match = GITHUB_REPO_RE.search(url)
    if not match:
        raise InstallError(f"Invalid GitHub URL: {url}")
    owner, repo = match.group(1), re.sub(r'\.git$', '', match.group(2))
    feature = FEATURE_SELECTOR_RE.search(url)
    return owner, repo, feature.group(1) if feature else None


def _safe_members(archive: tarfile.TarFile, dest: str) -> List[tarfile.TarInfo]:
    """Regular files and directories that stay inside ``dest``."""
    root = os.path.realpath(dest)
    members = []
    for member in archive.getmembers():
        if not (member.isfile() or member.isdir()):
            continue
        target = os.path.realpath(os.path.join(dest, member.name))
        if os.path.commonpath([root, target]) != root:
            logger.warning("Skipping archive entry outside target: %s", member.name)
            continue
        members.append(member)
    return members


class PackageInstaller:
    """Installs packages and their direct dependencies.

    Args:
        install_dir: The ``pkgs2`` directory packages are installed into.
        registry: NimbleRegistry used for name -> URL lookups.
        use_git: Clone with git instead of downloading archives.
    """

    def __init__(self, install_dir: str, registry, use_git: bool = False):
        self.install_dir = install_dir
        self.registry = registry
        self.use_git = use_git
        self._in_progress: Set[str] = set()

    def resolver(self) -> SatDependencyResolver:
        return SatDependencyResolver(CandidateDiscovery(self.install_dir), self.registry)

    def default_branch(self, owner: str, repo: str) -> str:
        """Repository default branch from the GitHub API, ``main`` on failure.

        Raises:
            InstallError: when the API rate limit is exhausted (HTTP 403).
        """
        api_url = f"{Constants.GITHUB_API_BASE}/repos/{owner}/{repo}"
        status_code, _, data = get_json(api_url, headers={"Accept": "application/vnd.github.v3+json"})
        if status_code == 200 and isinstance(data, dict):
            branch = data.get("default_branch") or "main"
            logger.info("Detected default branch: %s", branch)
            return branch
        if status_code == 403:
            raise InstallError(
                "GitHub API rate limit exceeded (403). Try again later or use --git "
                "to clone instead of downloading archives."
            )
        logger.warning("GitHub API returned %s, using 'main' as default branch", status_code)
        return "main"

    def download_archive(self, owner: str, repo: str, dest: str) -> str:
        """Download and extract the default-branch tarball; return its root directory."""
        branch = self.default_branch(owner, repo)
        archive_url = f"{Constants.GITHUB_BASE}/{owner}/{repo}/archive/refs/heads/{branch}.tar.gz"
        logger.info("Downloading archive from: %s", archive_url)
        try:
            data = download_bytes(archive_url, context="github")
        except requests.RequestException as exc:
            raise InstallError(f"Failed to download archive: {exc}") from exc

        try:
            with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
                archive.extractall(dest, members=_safe_members(archive, dest))
        except tarfile.TarError as exc:
            raise InstallError(f"Failed to extract archive: {exc}") from exc

        for entry in sorted(os.listdir(dest)):
            full_path = os.path.join(dest, entry)
            if os.path.isdir(full_path) and entry.startswith(f"{repo}-"):
                return full_path
        raise InstallError("Could not find extracted directory")

    def clone(self, url: str, dest: str) -> str:
        logger.info("Cloning repository with git: %s", url)
        try:
            subprocess.run(["git", "clone", "--depth", "1", url, dest],
                           check=True, capture_output=True, text=True)
        except (OSError, subprocess.CalledProcessError) as exc:
            raise InstallError(f"git clone failed for {url}: {exc}") from exc
        return dest

    def fetch(self, url: str, workdir: str) -> Tuple[str, str]:
        """Fetch ``url`` under ``workdir``; return (source path, checksum)."""
        owner, repo, _ = parse_github_url(url)
        if self.use_git:
            path = self.clone(f"{Constants.GITHUB_BASE}/{owner}/{repo}", os.path.join(workdir, repo))
        else:
            path = self.download_archive(owner, repo, workdir)

        skip_dirs: List[str] = []
        manifest_file = find_manifest_file(path)
        if manifest_file:
            skip_dirs = parse_file(manifest_file).skip_dirs or []
            if skip_dirs:
                logger.info("Found manifest, using skipDirs: %s", ", ".join(skip_dirs))
        return path, calculate_dir_sha1_checksum(path, skip_dirs)

    def install_url(self, url: str) -> Optional[str]:
        """Install the GitHub package at ``url``; return its install directory.

        Returns None when the package has no manifest or is already being
        installed further up the dependency chain.
        """
        owner, repo, feature = parse_github_url(url)
        key = f"{owner}/{repo}".lower()
        if key in self._in_progress:
            logger.debug("Skipping %s: already being installed", key)
            return None

        self._in_progress.add(key)
        try:
            with tempfile.TemporaryDirectory(prefix="nimbler-") as workdir:
                logger.info("Installing %s/%s from GitHub...", owner, repo)
                source, checksum = self.fetch(url, workdir)
                target = self._install_tree(source, checksum, f"{Constants.GITHUB_BASE}/{owner}/{repo}")
        finally:
            self._in_progress.discard(key)

        if feature:
            logger.info("Feature '%s' enabled", feature)
        return target

    def _install_tree(self, source: str, checksum: str, url: str) -> Optional[str]:
        manifest_file = find_manifest_file(source)
        if not manifest_file:
            logger.error("No %s file found in package", Constants.MANIFEST_EXTENSION)
            return None

        manifest = parse_file(manifest_file)
        if not manifest.name:
            manifest.name = package_name_from_path(manifest_file)
        logger.info("Found package: %s@%s", manifest.name, manifest.version)

        content_dir = source
        if manifest.src_dir:
            candidate = os.path.join(source, manifest.src_dir)
            if os.path.isdir(candidate):
                content_dir = candidate
                logger.info("Using src directory: %s", manifest.src_dir)
            else:
                logger.warning("Specified src directory '%s' not found, using root", manifest.src_dir)

        if manifest.dependencies:
            logger.info("Installing package dependencies...")
            self.install_manifest(manifest)

        target = os.path.join(self.install_dir, f"{manifest.name}-{manifest.version}-{checksum}")
        if os.path.isdir(target):
            logger.info("Package already exists at %s, removing old version...", target)
            shutil.rmtree(target)
        os.makedirs(self.install_dir, exist_ok=True)
        shutil.copytree(content_dir, target, ignore=shutil.ignore_patterns(".git"))
        shutil.copy2(manifest_file, os.path.join(target, os.path.basename(manifest_file)))

        meta = create_package_metadata(url, "git", checksum, installed_files(target), manifest.bin)
        save_metadata(meta, target)
        logger.info("Successfully installed %s@%s", manifest.name, manifest.version)
        return target

    def install_registry_package(self, name: str) -> Optional[str]:
        """Look ``name`` up in the registry and install it."""
        self.registry.load()
        url = self.registry.get_github_url(name)
        if not url:
            logger.error("Package %s not found in registry", name)
            return None
        logger.info("Found %s in registry: %s", name, url)
        return self.install_url(url)

    def install_dependency(self, dep: ResolvedDependency) -> Optional[str]:
        if dep.url and "github.com" in dep.url:
            return self.install_url(dep.url)
        logger.info("Installing %s@%s from registry...", dep.name, dep.version)
        return self.install_registry_package(dep.name)

    def _resolve_fetching_missing(self, manifest: PackageManifest) -> List[ResolvedDependency]:
        """Resolve, fetching each package that has no local candidate once.

        Only installed versions are candidates, so a ranged requirement on a
        package that is not installed yet cannot resolve until it is fetched.
        """
        fetched: Set[str] = set()
        while True:
            try:
                return self.resolver().resolve(manifest)
            except NoCandidateError as exc:
                if exc.package in fetched:
                    raise
                fetched.add(exc.package)
                spec = next(dep for dep in manifest.dependencies if dep.name == exc.package)
                logger.info("No local candidate for %s %s, fetching it", exc.package, exc.constraint)
                if spec.url:
                    self.install_url(spec.url)
                else:
                    self.install_registry_package(spec.name)

    def install_manifest(self, manifest: PackageManifest) -> List[ResolvedDependency]:
        """Resolve ``manifest``'s dependencies and install those not present.

        Raises:
            DependencyError: when resolution fails.
        """
        resolved = self._resolve_fetching_missing(manifest)
        for dep in resolved:
            if dep.name == Constants.TOOLCHAIN_PACKAGE:
                continue
            if dep.installed:
                logger.info("- %s@%s (already installed)", dep.name, dep.version)
                continue
            logger.info("- %s@%s (needs installation)", dep.name, dep.version)
            try:
                self.install_dependency(dep)
            except InstallError as exc:
                logger.warning("Failed to install %s: %s", dep.name, exc)
        return resolved
