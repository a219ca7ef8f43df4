"""Official Nimble package registry (``packages.json``).

The registry is a single JSON array of package records. It is cached on
disk and only downloaded when the cache is missing or unreadable.
"""
from __future__ import annotations

import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from constants import Constants
from common.http_client import robust_get
from common.logging_utils import safe_url

logger = logging.getLogger(__name__)

SSH_GITHUB_RE = re.compile(r'git@github\.com:([^/]+/[^/]+)')
HTTPS_GITHUB_RE = re.compile(r'https?://github\.com/([^/]+/[^/]+)')


class RegistryError(Exception):
    """The registry could not be downloaded or read."""


@dataclass
class RegistryPackage:
    """One entry of the package registry."""
    name: str
    url: str
    description: Optional[str] = None
    license: Optional[str] = None
    web: Optional[str] = None
    tags: List[str] = field(default_factory=list)


def normalize_github_url(url: str) -> Optional[str]:
    """Return ``https://github.com/<owner>/<repo>`` for a GitHub URL, else None.

    Accepts https and ``git@github.com:`` forms; a ``.git`` suffix is dropped.
    """
    if "github.com" not in url:
        return None
    clean = re.sub(r'\.git$', '', url)
    match = SSH_GITHUB_RE.search(clean) or HTTPS_GITHUB_RE.search(clean)
    if match:
        return f"{Constants.GITHUB_BASE}/{match.group(1)}"
    return None


class NimbleRegistry:
    """Name -> package record lookup backed by the cached registry file."""

    def __init__(self, cache_file: Optional[str] = None, registry_url: Optional[str] = None):
        self.cache_file = cache_file or os.path.join(Constants.NIMBLE_DIR, Constants.REGISTRY_CACHE_FILE)
        self.registry_url = registry_url or Constants.REGISTRY_URL
        self._packages: Dict[str, RegistryPackage] = {}
        self.loaded = False

    def download(self) -> None:
        """Fetch the registry and write it to the cache file.

        Raises:
            RegistryError: on HTTP failure or an unwritable cache.
        """
        logger.info("Downloading official Nimble packages registry...")
        status_code, _, text = robust_get(self.registry_url)
        if status_code != 200:
            raise RegistryError(
                f"Failed to download registry from {safe_url(self.registry_url)}: HTTP {status_code}"
            )
        try:
            os.makedirs(os.path.dirname(self.cache_file), exist_ok=True)
            with open(self.cache_file, "w", encoding="utf-8") as fh:
                fh.write(text)
        except OSError as exc:
            raise RegistryError(f"Failed to write registry cache {self.cache_file}: {exc}") from exc
        logger.info("Registry downloaded successfully")

    def _read_cache(self) -> List[Any]:
        with open(self.cache_file, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, list):
            raise ValueError("registry cache is not a JSON array")
        return data

    def load(self, refresh: bool = False) -> None:
        """Load the registry from cache, downloading a fresh copy if needed.

        Raises:
            RegistryError: when neither the cache nor a download is usable.
        """
        if self.loaded and not refresh:
            return
        if not refresh:
            try:
                self._parse(self._read_cache())
                logger.info("Loaded %d packages from cache", len(self._packages))
                return
            except (OSError, ValueError) as exc:
                logger.warning("Failed to load cached registry (%s), downloading fresh copy...", exc)

        self.download()
        try:
            self._parse(self._read_cache())
        except (OSError, ValueError) as exc:
            raise RegistryError(f"Downloaded registry is unreadable: {exc}") from exc
        logger.info("Loaded %d packages from registry", len(self._packages))

    def _parse(self, records: Iterable[Any]) -> None:
        self._packages.clear()
        for record in records:
            if not isinstance(record, dict) or not record.get("name") or not record.get("url"):
                continue
            self._packages[record["name"].lower()] = RegistryPackage(
                name=record["name"],
                url=record["url"],
                description=record.get("description"),
                license=record.get("license"),
                web=record.get("web"),
                tags=list(record.get("tags") or []),
            )
        self.loaded = True

    def get_package_info(self, name: str) -> Optional[RegistryPackage]:
        return self._packages.get(name.lower())

    def get_github_url(self, name: str) -> Optional[str]:
        """Normalized GitHub URL for ``name``, or None if unknown or not on GitHub."""
        pkg = self.get_package_info(name)
        if pkg is None:
            return None
        return normalize_github_url(pkg.url)

    def all_packages(self) -> List[RegistryPackage]:
        return list(self._packages.values())

    def search(self, query: str) -> List[RegistryPackage]:
        """Packages whose name, description or tags contain ``query``."""
        needle = query.lower()
        return [
            pkg for pkg in self._packages.values()
            if needle in pkg.name.lower()
            or (pkg.description and needle in pkg.description.lower())
            or any(needle in tag.lower() for tag in pkg.tags)
        ]
