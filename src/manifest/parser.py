"""Parser for ``.nimble`` package manifests.

The grammar is line oriented and parsed best-effort: constructs that do not
match are skipped or folded into the pending value, never raised. The only
error surfaced is a missing file in ``parse_file``.

Per line, in priority order:

- ``requires "a >= 1.0", "b"`` appends to the direct dependency list, or
  to the active feature once a ``feature "name":`` header has been seen;
- ``feature "name":`` opens a named dependency group;
- ``key = value`` starts a value that may continue over following lines;
- anything else continues the pending value.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Dict, List, Optional

from constants import Constants
from .models import DependencySpec, ManifestValue, PackageManifest
from .values import parse_value

logger = logging.getLogger(__name__)

COMMENT_RE = re.compile(r'\s*#.*$')
REQUIRES_RE = re.compile(r'requires\s+(.+)$')
FEATURE_RE = re.compile(r'feature\s+"([^"]+)"\s*:')
ASSIGNMENT_RE = re.compile(r'(\w+)\s*=\s*(.+)')
BACKTICK_QUOTED_RE = re.compile(r'`([^`]+)`')
DOUBLE_QUOTED_RE = re.compile(r'"([^"]+)"')
TRAILING_OPERATOR_RE = re.compile(r'[`"][^`"]*[`"]\s*((?:>=|>|<=|<|==|!=)\s*[^,]+)')
URL_DEPENDENCY_RE = re.compile(r'`?\s*(https://.+?)\s*`?\s*(?:>=\s+(.+))?$')
VERSION_SPLIT_RE = re.compile(r'\s+>=\s+')
URL_MARKER = "https://"


def parse_requires(argument: str) -> List[str]:
    """Extract the dependency texts from the argument of a ``requires``.

    Each comma-separated token contributes its backtick-quoted text, or
    failing that its double-quoted text, plus any comparison that follows
    the closing quote. Tokens without quotes contribute nothing.
    """
    found: List[str] = []
    for part in argument.split(','):
        quoted = BACKTICK_QUOTED_RE.search(part) or DOUBLE_QUOTED_RE.search(part)
        if not quoted:
            continue
        dep = quoted.group(1).strip()
        trailing = TRAILING_OPERATOR_RE.search(part)
        if trailing:
            dep += ' ' + trailing.group(1).strip()
        if dep:
            found.append(dep)
    return found


def parse_dependency(text: str) -> DependencySpec:
    """Build a DependencySpec from one extracted dependency text.

    URL requirements take their name from the last path segment with any
    ``.git`` suffix and ``[feature]`` selector removed. Plain requirements
    are split on a whitespace-delimited ``>=``; any other operator stays in
    the name.
    """
    clean = re.sub(r'^"|"$', '', text.strip()).strip()

    if URL_MARKER in clean:
        match = URL_DEPENDENCY_RE.search(clean)
        if not match:
            return DependencySpec(name=clean, version="*")
        url = match.group(1)
        version = match.group(2) or "*"
        name = url.split('/')[-1]
        name = re.sub(r'\.git$', '', name)
        name = re.sub(r'\[.*\]', '', name, count=1)
        return DependencySpec(name=name, version=version, url=url)

    parts = VERSION_SPLIT_RE.split(clean)
    version = parts[1] if len(parts) > 1 and parts[1] else "*"
    return DependencySpec(name=parts[0], version=version)


def _field_string(values: Dict[str, ManifestValue], key: str) -> Optional[str]:
    value = values.get(key)
    return value.as_string() if value is not None else None


def _field_list(values: Dict[str, ManifestValue], key: str) -> Optional[List[str]]:
    value = values.get(key)
    if value is None:
        return None
    items = value.as_list()
    if items is not None:
        return items
    mapping = value.as_mapping()
    if mapping is not None:
        return list(mapping.values())
    single = value.as_string()
    return [single] if single else []


def parse_content(content: str, log: Optional[logging.Logger] = None) -> PackageManifest:
    """Parse manifest text into a PackageManifest. Never raises."""
    log = log or logger
    values: Dict[str, ManifestValue] = {}
    dependencies: List[str] = []
    features: Dict[str, List[str]] = {}

    lines = [COMMENT_RE.sub('', line) for line in content.split('\n')]
    lines = [line for line in lines if line.strip() != '']

    in_block = True  # begin/end delimiters are optional
    current_key: Optional[str] = None
    current_value: List[str] = []
    current_feature: Optional[str] = None

    def flush() -> None:
        if current_key:
            values[current_key] = parse_value(' '.join(current_value).strip())

    for line in lines:
        stripped = line.strip()
        if stripped == 'begin':
            in_block = True
            continue
        if stripped == 'end':
            break
        if not in_block:
            continue

        requires = REQUIRES_RE.search(stripped)
        if requires:
            target = features[current_feature] if current_feature else dependencies
            target.extend(parse_requires(requires.group(1)))
            continue

        feature = FEATURE_RE.search(stripped)
        if feature:
            flush()
            current_key, current_value = None, []
            current_feature = feature.group(1)
            features[current_feature] = []
            continue

        assignment = ASSIGNMENT_RE.search(stripped)
        if assignment:
            flush()
            current_key = assignment.group(1)
            current_value = [assignment.group(2)]
        elif current_key:
            current_value.append(stripped)

    flush()

    manifest = PackageManifest(
        name=_field_string(values, 'name'),
        version=_field_string(values, 'version'),
        author=_field_string(values, 'author'),
        description=_field_string(values, 'description'),
        license=_field_string(values, 'license'),
        src_dir=_field_string(values, 'srcDir'),
        src=_field_string(values, 'src'),
        bin=_field_list(values, 'bin') or [],
        skip_dirs=_field_list(values, 'skipDirs'),
        dependencies=[parse_dependency(dep) for dep in dependencies],
        features={
            feature_name: [parse_dependency(dep) for dep in feature_deps]
            for feature_name, feature_deps in features.items()
        },
    )
    log.debug(
        "Parsed manifest: %d dependencies, %d features",
        len(manifest.dependencies),
        len(manifest.features),
    )
    return manifest


def parse_file(path: str, log: Optional[logging.Logger] = None) -> PackageManifest:
    """Read and parse a manifest file.

    Raises:
        FileNotFoundError: if ``path`` does not exist.
    """
    with open(path, "r", encoding="utf-8") as fh:
        return parse_content(fh.read(), log)


def package_name_from_path(path: str) -> str:
    """Name implied by a manifest's file name, e.g. ``foo.nimble`` -> ``foo``."""
    base = os.path.basename(path)
    if base.endswith(Constants.MANIFEST_EXTENSION):
        return base[:-len(Constants.MANIFEST_EXTENSION)]
    return base


def find_manifest_file(directory: str = ".") -> Optional[str]:
    """Return the manifest in ``directory``, or None.

    When several manifests exist the first in name order is used and a
    warning is logged.
    """
    try:
        entries = sorted(os.listdir(directory))
    except OSError as exc:
        logger.warning("Error reading directory %s: %s", directory, exc)
        return None

    manifests = [entry for entry in entries if entry.endswith(Constants.MANIFEST_EXTENSION)]
    if not manifests:
        return None
    if len(manifests) > 1:
        logger.warning("Multiple %s files found in %s: %s",
                       Constants.MANIFEST_EXTENSION, directory, ", ".join(manifests))
        logger.warning("Using: %s", manifests[0])
    return os.path.join(directory, manifests[0])
