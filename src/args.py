"""Argument parsing functionality for nimbler."""

import argparse
from constants import Constants


def _add_localdeps(parser):
    parser.add_argument("-l", "--localdeps",
                        dest="LOCALDEPS",
                        help="Use the project-local nimbledeps directory instead of the global one",
                        action="store_true")


def build_parser():
    """Builds the argument parser with one subcommand per action."""
    parser = argparse.ArgumentParser(
        prog="nimbler",
        description="nimbler - package manager for the Nim programming language",
        add_help=True,
    )

    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help=f"Path to a YAML config file (default: {Constants.CONFIG_FILE_NAME})",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output to console.",
                        action="store_true")

    sub = parser.add_subparsers(dest="COMMAND", metavar="command")
    sub.required = True

    install = sub.add_parser("install", help="Install dependencies or specific packages")
    install.add_argument("packages",
                         nargs="*",
                         help="Registry names or GitHub URLs; defaults to the manifest's requirements")
    install.add_argument("--git",
                         dest="USE_GIT",
                         help="Use git clone instead of archive download for GitHub packages",
                         action="store_true")
    _add_localdeps(install)

    resolve = sub.add_parser("resolve", help="Resolve the manifest's dependencies without installing")
    resolve.add_argument("-m", "--manifest",
                         dest="MANIFEST",
                         help="Manifest to resolve (default: the .nimble file in the current directory)",
                         action="store",
                         type=str)
    _add_localdeps(resolve)

    listing = sub.add_parser("list", help="List installed packages")
    listing.add_argument("-d", "--detailed",
                         dest="DETAILED",
                         help="Show detailed information (size, install date)",
                         action="store_true")
    listing.add_argument("-s", "--sort",
                         dest="SORT",
                         help="Sort by: name, version, size, date",
                         choices=Constants.SORT_KEYS,
                         default="name")
    _add_localdeps(listing)

    search = sub.add_parser("search", help="Search the package registry")
    search.add_argument("query", help="Text matched against names, descriptions and tags")

    dedupe = sub.add_parser("dedupe", help="Remove duplicate packages, keeping only the highest version")
    dedupe.add_argument("--dry-run",
                        dest="DRY_RUN",
                        help="Show what would be removed without actually removing",
                        action="store_true")
    _add_localdeps(dedupe)

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
