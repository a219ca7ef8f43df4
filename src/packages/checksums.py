"""Nimble-compatible SHA1 checksum of a package directory."""

import hashlib
import logging
import os
from typing import Iterable, List

logger = logging.getLogger(__name__)

IGNORED_DIRS = frozenset([
    ".git", ".hg", ".svn",
    "node_modules", "bower_components",
    "__pycache__", ".pytest_cache",
    ".idea", ".vscode", ".vs",
    "build", "dist", "target",
    "tmp", "temp",
    ".DS_Store",
])


def should_ignore_directory(name: str) -> bool:
    """True for VCS, IDE, build and cache directories and any dot-directory."""
    return name in IGNORED_DIRS or name.startswith(".")


def package_file_list(directory: str, skip_dirs: Iterable[str] = ()) -> List[str]:
    """Relative paths of every file and symlink under ``directory``, unsorted."""
    skip = set(skip_dirs)
    files: List[str] = []

    def walk(current: str, relative: str) -> None:
        for entry in os.listdir(current):
            full_path = os.path.join(current, entry)
            rel_path = os.path.join(relative, entry) if relative else entry
            if os.path.islink(full_path) or os.path.isfile(full_path):
                files.append(rel_path)
            elif os.path.isdir(full_path):
                if should_ignore_directory(entry) or entry in skip:
                    continue
                walk(full_path, rel_path)

    walk(directory, "")
    return files


def _update(hasher, file_name: str, file_path: str) -> None:
    if not os.path.lexists(file_path):
        logger.warning("File does not exist: %s, skipping in checksum calculation", file_path)
        return
    hasher.update(file_name.encode("utf-8"))
    try:
        if os.path.islink(file_path):
            hasher.update(os.readlink(file_path).encode("utf-8"))
        else:
            with open(file_path, "rb") as fh:
                hasher.update(fh.read())
    except OSError as exc:
        logger.warning("Cannot read \"%s\": %s", file_path, exc)


def calculate_dir_sha1_checksum(directory: str, skip_dirs: Iterable[str] = ()) -> str:
    """SHA1 over sorted relative file names and their contents.

    Symlinks contribute their target path instead of content. Ignored
    directories and ``skip_dirs`` (matched by directory name at any depth)
    are left out.

    Raises:
        FileNotFoundError: if ``directory`` does not exist.
    """
    if not os.path.isdir(directory):
        raise FileNotFoundError(f"Directory does not exist: {directory}")

    hasher = hashlib.sha1()
    for file_name in sorted(package_file_list(directory, skip_dirs)):
        _update(hasher, file_name, os.path.join(directory, file_name))
    return hasher.hexdigest()
