"""Package registry lookups."""

from .nimble import NimbleRegistry, RegistryError, RegistryPackage, normalize_github_url

__all__ = ["NimbleRegistry", "RegistryError", "RegistryPackage", "normalize_github_url"]
