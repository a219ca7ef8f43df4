"""Candidate version discovery from the local install tree and the toolchain.

Every failure here (missing directory, unreadable entry, probe timeout)
means "no information" and is logged at debug level, never raised.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from typing import List, Optional, Sequence

from constants import Constants
from versioning.constraints import highest, sort_versions

logger = logging.getLogger(__name__)

TOOLCHAIN_VERSION_RE = re.compile(r'Nim Compiler Version ([\d.]+)')
# <name>-<version>[-<sha1>]; names contain no dashes, prerelease versions may.
PACKAGE_DIR_RE = re.compile(r'^([^-]+)-(.+?)(?:-([0-9a-f]{40}))?$')


def parse_package_dir_name(entry: str):
    """Split an install directory name into (name, version, checksum).

    Returns None when ``entry`` does not follow ``name-version[-checksum]``.
    """
    match = PACKAGE_DIR_RE.match(entry)
    if not match:
        return None
    return match.group(1), match.group(2), match.group(3)


class CandidateDiscovery:
    """Answers which versions of a package are known locally."""

    def __init__(
        self,
        packages_dir: str,
        toolchain_command: Optional[Sequence[str]] = None,
        probe_timeout: Optional[float] = None,
    ):
        self.packages_dir = packages_dir
        self.toolchain_command = list(toolchain_command or Constants.TOOLCHAIN_COMMAND)
        self.probe_timeout = probe_timeout if probe_timeout is not None else Constants.TOOLCHAIN_PROBE_TIMEOUT

    def _installed_versions(self, package: str) -> List[str]:
        try:
            entries = os.listdir(self.packages_dir)
        except OSError as exc:
            logger.debug("Cannot scan %s: %s", self.packages_dir, exc)
            return []

        versions = []
        for entry in entries:
            parsed = parse_package_dir_name(entry)
            if parsed and parsed[0] == package:
                versions.append(parsed[1])
        return sort_versions(versions)

    def installed_version(self, package: str) -> Optional[str]:
        """Highest locally installed version of ``package``, or None."""
        if package == Constants.TOOLCHAIN_PACKAGE:
            return self.probe_toolchain_version()
        return highest(self._installed_versions(package))

    def list_candidate_versions(self, package: str) -> List[str]:
        """Installed versions of ``package``, highest first, never empty.

        The sentinel stands in when nothing is installed so every package
        still gets a variable. The toolchain is never a candidate source;
        use ``installed_version`` for it.
        """
        return self._installed_versions(package) or [Constants.SENTINEL_VERSION]

    def probe_toolchain_version(self) -> Optional[str]:
        """Version reported by the installed compiler, or None."""
        try:
            result = subprocess.run(
                self.toolchain_command,
                capture_output=True,
                text=True,
                timeout=self.probe_timeout,
                check=False,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("Toolchain probe failed: %s", exc)
            return None
        match = TOOLCHAIN_VERSION_RE.search(result.stdout or "")
        return match.group(1) if match else None
