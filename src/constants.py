"""Constants used in the project."""

import logging
import os
from enum import Enum
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_ERROR = 3


class SortKeys(Enum):
    """Sort orders supported when listing installed packages.

    Args:
        Enum (string): Sort key names accepted on the command line.
    """

    NAME = "name"
    VERSION = "version"
    SIZE = "size"
    DATE = "date"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL = (
        "https://raw.githubusercontent.com/nim-lang/packages/refs/heads/master/packages.json"
    )
    GITHUB_API_BASE = "https://api.github.com"
    GITHUB_BASE = "https://github.com"
    DEFAULT_GITHUB_ORG = "nim-lang"
    USER_AGENT = "nimbler"

    NIMBLE_DIR = os.path.join(os.path.expanduser("~"), ".nimble")
    PACKAGES_SUBDIR = "pkgs2"
    LOCAL_DEPS_DIR = "nimbledeps"
    REGISTRY_CACHE_FILE = "packages_official.json"
    MANIFEST_EXTENSION = ".nimble"
    METADATA_FILE = "nimblemeta.json"
    METADATA_FILE_VERSION = 1

    TOOLCHAIN_PACKAGE = "nim"
    TOOLCHAIN_COMMAND = ["nim", "-v"]
    TOOLCHAIN_PROBE_TIMEOUT = 2.0
    SENTINEL_VERSION = "0.0.0"

    SORT_KEYS = [key.value for key in SortKeys]
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_CACHE_TTL_SEC = 300

    CONFIG_FILE_NAME = "nimbler.yml"
    CONFIG_SEARCH_PATHS = [
        os.path.join(os.getcwd(), CONFIG_FILE_NAME),
        os.path.join(os.path.expanduser("~"), ".config", "nimbler", CONFIG_FILE_NAME),
    ]


# Keys a YAML config may override, mapped to their Constants attribute.
_CONFIG_KEYS = {
    "registry_url": "REGISTRY_URL",
    "nimble_dir": "NIMBLE_DIR",
    "request_timeout": "REQUEST_TIMEOUT",
    "http_retry_max": "HTTP_RETRY_MAX",
    "http_cache_ttl": "HTTP_CACHE_TTL_SEC",
    "toolchain_package": "TOOLCHAIN_PACKAGE",
    "toolchain_command": "TOOLCHAIN_COMMAND",
    "toolchain_probe_timeout": "TOOLCHAIN_PROBE_TIMEOUT",
}


def _load_yaml_config(path: Optional[str] = None) -> Dict[str, Any]:
    """Load the first YAML config found, or the explicit ``path``.

    Returns an empty dict when no file exists or the file is not a mapping.
    """
    import yaml  # pylint: disable=import-outside-toplevel

    candidates = [path] if path else Constants.CONFIG_SEARCH_PATHS
    for candidate in candidates:
        if not candidate or not os.path.isfile(candidate):
            continue
        try:
            with open(candidate, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except (OSError, yaml.YAMLError) as exc:
            logger.warning("Failed to load config %s: %s", candidate, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring config %s: top level is not a mapping", candidate)
            return {}
        logger.debug("Loaded config from %s", candidate)
        return data
    return {}


def apply_config(config: Dict[str, Any]) -> None:
    """Apply recognised config keys onto Constants; unknown keys are ignored."""
    for key, attr in _CONFIG_KEYS.items():
        if key in config and config[key] is not None:
            setattr(Constants, attr, config[key])


def packages_dir(localdeps: bool = False) -> str:
    """Return the install directory for global or project-local packages."""
    if localdeps:
        return os.path.join(os.getcwd(), Constants.LOCAL_DEPS_DIR, Constants.PACKAGES_SUBDIR)
    return os.path.join(Constants.NIMBLE_DIR, Constants.PACKAGES_SUBDIR)
