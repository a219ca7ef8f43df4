"""Scan and display packages installed under a ``pkgs2`` directory."""

from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from datetime import datetime
from functools import cmp_to_key
from typing import Dict, List, Optional

from constants import SortKeys
from resolution.discovery import parse_package_dir_name
from versioning.constraints import order

logger = logging.getLogger(__name__)


@dataclass
class InstalledPackage:
    """One installed package directory."""
    name: str
    version: str
    path: str
    commit_hash: Optional[str] = None
    size: int = 0
    install_date: Optional[datetime] = None


def directory_size(path: str) -> int:
    """Total size in bytes of the regular files under ``path``."""
    total = 0
    for root, _, files in os.walk(path):
        for name in files:
            try:
                total += os.lstat(os.path.join(root, name)).st_size
            except OSError as exc:
                logger.debug("Error getting size for %s: %s", name, exc)
    return total


def format_file_size(size: int) -> str:
    """Human readable size: ``0 B``, ``1.5 KB``, ``2 MB``..."""
    if size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    index = min(int(math.floor(math.log(size, 1024))), len(units) - 1)
    value = round(size / (1024 ** index), 2)
    return f"{value:g} {units[index]}"


class PackageLister:
    """Lists installed packages parsed from ``name-version[-checksum]`` directories."""

    def __init__(self, packages_dir: str):
        self.packages_dir = packages_dir

    def scan(self, with_size: bool = True) -> List[InstalledPackage]:
        """Installed packages in directory order; unparseable names are skipped."""
        if not os.path.isdir(self.packages_dir):
            logger.warning("Packages directory does not exist: %s", self.packages_dir)
            return []

        packages: List[InstalledPackage] = []
        for entry in os.listdir(self.packages_dir):
            full_path = os.path.join(self.packages_dir, entry)
            if not os.path.isdir(full_path):
                continue
            parsed = parse_package_dir_name(entry)
            if parsed is None:
                logger.warning("Could not parse package info from directory: %s", entry)
                continue
            name, version, commit_hash = parsed
            try:
                mtime = datetime.fromtimestamp(os.stat(full_path).st_mtime)
            except OSError as exc:
                logger.debug("Error processing %s: %s", entry, exc)
                mtime = None
            packages.append(InstalledPackage(
                name=name,
                version=version,
                path=full_path,
                commit_hash=commit_hash,
                size=directory_size(full_path) if with_size else 0,
                install_date=mtime,
            ))
        return packages

    def list(self, sort_by: str = SortKeys.NAME.value) -> List[InstalledPackage]:
        packages = self.scan()
        sort_packages(packages, sort_by)
        return packages

    def display(self, packages: List[InstalledPackage], detailed: bool = False,
                sort_by: str = SortKeys.NAME.value) -> None:
        """Log a table of ``packages``."""
        if not packages:
            logger.info("No packages found.")
            return

        logger.info("Installed packages (%d):", len(packages))
        if detailed:
            logger.info("%-20s %-10s %-8s %-19s %s", "Package Name", "Version", "Size", "Install Date", "Path")
            logger.info("%s %s %s %s %s", "-" * 20, "-" * 10, "-" * 8, "-" * 19, "-" * 40)
            for pkg in packages:
                date = pkg.install_date.strftime("%Y-%m-%d %H:%M") if pkg.install_date else "Unknown"
                logger.info("%-20s %-10s %-8s %-19s %s", pkg.name, pkg.version,
                            format_file_size(pkg.size), date, pkg.path)
        elif sort_by == SortKeys.SIZE.value:
            logger.info("%-20s %-10s %s", "Package Name", "Version", "Size")
            logger.info("%s %s %s", "-" * 20, "-" * 10, "-" * 8)
            for pkg in packages:
                logger.info("%-20s %-10s %s", pkg.name, pkg.version, format_file_size(pkg.size))
        else:
            logger.info("%-20s %s", "Package Name", "Version")
            logger.info("%s %s", "-" * 20, "-" * 10)
            for pkg in packages:
                logger.info("%-20s %s", pkg.name, pkg.version)

        total = sum(pkg.size for pkg in packages)
        logger.info("Total: %d packages, %s", len(packages), format_file_size(total))


def sort_packages(packages: List[InstalledPackage], sort_by: str) -> None:
    """Sort in place: name and version ascending, size and date largest/newest first."""
    if sort_by == SortKeys.VERSION.value:
        packages.sort(key=cmp_to_key(lambda a, b: order(a.version, b.version)))
    elif sort_by == SortKeys.SIZE.value:
        packages.sort(key=lambda pkg: pkg.size, reverse=True)
    elif sort_by == SortKeys.DATE.value:
        packages.sort(key=lambda pkg: pkg.install_date or datetime.min, reverse=True)
    else:
        packages.sort(key=lambda pkg: pkg.name.lower())


def group_by_name(packages: List[InstalledPackage]) -> Dict[str, List[InstalledPackage]]:
    """Group packages sharing a name, preserving input order."""
    groups: Dict[str, List[InstalledPackage]] = {}
    for pkg in packages:
        groups.setdefault(pkg.name, []).append(pkg)
    return groups
