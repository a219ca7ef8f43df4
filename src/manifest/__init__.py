"""Manifest package: models and the line-oriented ``.nimble`` parser."""

from .models import DependencySpec, ManifestValue, PackageManifest, ResolvedDependency, ValueKind
from .parser import find_manifest_file, parse_content, parse_dependency, parse_file, parse_requires
from .values import parse_value

__all__ = [
    "DependencySpec",
    "ManifestValue",
    "PackageManifest",
    "ResolvedDependency",
    "ValueKind",
    "find_manifest_file",
    "parse_content",
    "parse_dependency",
    "parse_file",
    "parse_requires",
    "parse_value",
]
