"""``nimblemeta.json`` persistence for installed packages."""

import json
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List

from constants import Constants

logger = logging.getLogger(__name__)

DOWNLOAD_METHODS = ("git", "http")
EMPTY_REVISION = "0" * 40


@dataclass
class PackageMetaData:
    """Install record written beside each installed package."""
    url: str = ""
    download_method: str = "http"
    vcs_revision: str = EMPTY_REVISION
    files: List[str] = field(default_factory=list)
    binaries: List[str] = field(default_factory=list)
    special_versions: List[str] = field(default_factory=list)

    def to_json(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "downloadMethod": self.download_method,
            "vcsRevision": self.vcs_revision,
            "files": list(self.files),
            "binaries": list(self.binaries),
            "specialVersions": list(self.special_versions),
        }


def init_package_metadata() -> PackageMetaData:
    return PackageMetaData()


def create_package_metadata(url, download_method, vcs_revision, files=None, binaries=None, special_versions=None):
    """Build a PackageMetaData for a freshly installed package.

    Args:
        url: Source URL the package came from.
        download_method: "git" or "http".
        vcs_revision: Commit hash, or the directory checksum for archives.
        files: Installed files relative to the package directory.
        binaries: Installed binaries.
        special_versions: Aliases such as "#head".
    """
    if download_method not in DOWNLOAD_METHODS:
        raise ValueError(f"Unknown download method: {download_method}")
    return PackageMetaData(
        url=url,
        download_method=download_method,
        vcs_revision=vcs_revision,
        files=list(files or []),
        binaries=list(binaries or []),
        special_versions=list(special_versions or []),
    )


def save_metadata(meta: PackageMetaData, directory: str, change_roots: bool = True) -> str:
    """Write ``meta`` to ``<directory>/nimblemeta.json`` and return the path.

    With ``change_roots`` absolute file paths under ``directory`` are stored
    relative to it.
    """
    files = meta.files
    if change_roots:
        files = [
            os.path.relpath(f, directory) if os.path.isabs(f) and f.startswith(directory) else f
            for f in files
        ]
    payload = {
        "version": Constants.METADATA_FILE_VERSION,
        "metaData": {**meta.to_json(), "files": files},
    }
    path = os.path.join(directory, Constants.METADATA_FILE)
    try:
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
    except OSError as exc:
        logger.error("Failed to save %s: %s", Constants.METADATA_FILE, exc)
        raise
    logger.info("Saved %s to %s", Constants.METADATA_FILE, directory)
    return path


def installed_files(directory: str) -> List[str]:
    """Files under ``directory`` relative to it, ``nimblemeta.json`` excluded."""
    files: List[str] = []
    for root, _, names in os.walk(directory):
        for name in names:
            rel = os.path.relpath(os.path.join(root, name), directory)
            if rel != Constants.METADATA_FILE:
                files.append(rel.replace(os.sep, "/"))
    return sorted(files)
