"""Remove all but the highest installed version of each package."""

import logging
import shutil
from typing import List, Tuple

from versioning.constraints import order
from .lister import InstalledPackage, PackageLister, group_by_name

logger = logging.getLogger(__name__)


class PackageDeduper:
    """Finds and removes superseded package versions in a packages directory."""

    def __init__(self, packages_dir: str):
        self.packages_dir = packages_dir
        self.lister = PackageLister(packages_dir)

    @staticmethod
    def highest_version(packages: List[InstalledPackage]) -> InstalledPackage:
        """The package with the highest version; the first wins ties."""
        best = packages[0]
        for pkg in packages[1:]:
            if order(pkg.version, best.version) > 0:
                best = pkg
        return best

    def analyze(self) -> Tuple[List[InstalledPackage], List[InstalledPackage]]:
        """Return (packages to keep, packages to remove)."""
        keep: List[InstalledPackage] = []
        remove: List[InstalledPackage] = []
        for name, versions in group_by_name(self.lister.scan(with_size=False)).items():
            if len(versions) <= 1:
                keep.extend(versions)
                continue
            best = self.highest_version(versions)
            older = [pkg for pkg in versions if pkg is not best]
            keep.append(best)
            remove.extend(older)
            logger.info("Package %s: keeping %s, removing %d older version(s)",
                        name, best.version, len(older))
        return keep, remove

    def dedupe(self, dry_run: bool = False) -> List[InstalledPackage]:
        """Remove duplicates and return the packages removed (or that would be)."""
        logger.info("Scanning packages in %s...", self.packages_dir)
        keep, remove = self.analyze()

        if not remove:
            logger.info("No duplicate packages found. Nothing to dedupe.")
            return []

        logger.info("Found %d duplicate package(s) to remove:", len(remove))
        for pkg in remove:
            logger.info("  - %s@%s at %s", pkg.name, pkg.version, pkg.path)
        logger.info("Will keep %d package(s):", len(keep))
        for pkg in keep:
            logger.info("  - %s@%s at %s", pkg.name, pkg.version, pkg.path)

        if dry_run:
            logger.info("[Dry run] No packages were actually removed.")
            return remove

        removed: List[InstalledPackage] = []
        for pkg in remove:
            try:
                shutil.rmtree(pkg.path)
            except OSError as exc:
                logger.error("Failed to remove %s: %s", pkg.path, exc)
                continue
            logger.info("Removed %s", pkg.path)
            removed.append(pkg)

        logger.info("Deduplication complete! Removed %d duplicate package(s).", len(removed))
        return removed
