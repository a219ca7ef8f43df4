"""nimbler: install and resolve dependencies of Nim packages.

Reads a package's ``.nimble`` manifest, resolves its direct dependencies
against installed versions, and installs packages from GitHub or the
official registry.
"""

import logging
import os
import sys

from args import parse_args
from constants import Constants, ExitCodes, _load_yaml_config, apply_config, packages_dir
from common.logging_utils import Timer, configure_logging, extra_context, is_debug_enabled
from manifest.parser import find_manifest_file, parse_file
from packages.deduper import PackageDeduper
from packages.installer import InstallError, PackageInstaller
from packages.lister import PackageLister
from registry.nimble import NimbleRegistry, RegistryError
from resolution.discovery import CandidateDiscovery
from resolution.errors import DependencyError
from resolution.resolver import SatDependencyResolver

logger = logging.getLogger(__name__)


def _add_file_handler(path):
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    logging.getLogger().addHandler(handler)


def _load_manifest(path=None):
    """Parse ``path`` or the manifest found in the current directory."""
    manifest_file = path or find_manifest_file(os.getcwd())
    if not manifest_file:
        raise FileNotFoundError(f"No {Constants.MANIFEST_EXTENSION} file found in current directory")
    logger.info("Using manifest %s", manifest_file)
    return parse_file(manifest_file)


def cmd_install(args):
    """Install the named packages, or the current manifest's requirements."""
    install_dir = packages_dir(getattr(args, "LOCALDEPS", False))
    installer = PackageInstaller(install_dir, NimbleRegistry(), use_git=getattr(args, "USE_GIT", False))
    if args.packages:
        failed = []
        for name in args.packages:
            if "github.com" in name:
                target = installer.install_url(name)
            else:
                target = installer.install_registry_package(name)
            if target is None:
                failed.append(name)
        if failed:
            logger.error("Failed to install: %s", ", ".join(failed))
            return ExitCodes.CONNECTION_ERROR
        return ExitCodes.SUCCESS

    manifest = _load_manifest()
    if not manifest.dependencies:
        logger.info("No dependencies found.")
        return ExitCodes.SUCCESS
    installer.install_manifest(manifest)
    logger.info("All dependencies installed.")
    return ExitCodes.SUCCESS


def cmd_resolve(args):
    """Resolve the manifest and print the selected versions."""
    manifest = _load_manifest(getattr(args, "MANIFEST", None))
    discovery = CandidateDiscovery(packages_dir(getattr(args, "LOCALDEPS", False)))
    resolver = SatDependencyResolver(discovery, NimbleRegistry())
    with Timer() as timer:
        resolved = resolver.resolve(manifest)
    if is_debug_enabled(logger):
        logger.debug(
            "Resolution finished",
            extra=extra_context(event="function_exit", component="cli", action="resolve",
                                count=len(resolved), duration_ms=timer.duration_ms()),
        )
    if not resolved:
        logger.info("No dependencies to resolve.")
    for dep in resolved:
        state = "installed" if dep.installed else "missing"
        logger.info("%s@%s (%s) %s", dep.name, dep.version, state, dep.url)
    return ExitCodes.SUCCESS


def cmd_list(args):
    lister = PackageLister(packages_dir(getattr(args, "LOCALDEPS", False)))
    lister.display(lister.list(args.SORT), detailed=args.DETAILED, sort_by=args.SORT)
    return ExitCodes.SUCCESS


def cmd_search(args):
    registry = NimbleRegistry()
    registry.load()
    matches = registry.search(args.query)
    if not matches:
        logger.info("No packages matching '%s'.", args.query)
        return ExitCodes.SUCCESS
    for pkg in sorted(matches, key=lambda p: p.name.lower()):
        logger.info("%s: %s", pkg.name, pkg.description or "")
        logger.info("  url: %s", pkg.url)
        if pkg.tags:
            logger.info("  tags: %s", ", ".join(pkg.tags))
    return ExitCodes.SUCCESS


def cmd_dedupe(args):
    PackageDeduper(packages_dir(getattr(args, "LOCALDEPS", False))).dedupe(dry_run=args.DRY_RUN)
    return ExitCodes.SUCCESS


COMMANDS = {
    "install": cmd_install,
    "resolve": cmd_resolve,
    "list": cmd_list,
    "search": cmd_search,
    "dedupe": cmd_dedupe,
}


def run(args):
    """Run the selected subcommand and map failures to exit codes."""
    try:
        return COMMANDS[args.COMMAND](args)
    except DependencyError as exc:
        logger.error("%s", exc)
        return ExitCodes.RESOLUTION_ERROR
    except (RegistryError, InstallError) as exc:
        logger.error("%s", exc)
        return ExitCodes.CONNECTION_ERROR
    except OSError as exc:
        logger.error("%s", exc)
        return ExitCodes.FILE_ERROR


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)
    if getattr(args, "QUIET", False):
        logging.getLogger().setLevel(logging.CRITICAL)
    if getattr(args, "LOG_FILE", None):
        _add_file_handler(args.LOG_FILE)

    apply_config(_load_yaml_config(getattr(args, "CONFIG", None)))

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND),
        )

    code = run(args)
    sys.exit(code.value)


if __name__ == "__main__":
    main()
