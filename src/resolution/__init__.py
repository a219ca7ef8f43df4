"""Dependency resolution package.

- discovery.py: candidate versions from the local install tree and toolchain probe
- encoding.py: variable table and exactly-one / at-least-one clause builders
- solver.py: PySAT backend
- resolver.py: SatDependencyResolver tying the pieces together
"""

from .discovery import CandidateDiscovery
from .errors import DependencyError, NoCandidateError, ResolutionError
from .resolver import SatDependencyResolver

__all__ = [
    "CandidateDiscovery",
    "DependencyError",
    "NoCandidateError",
    "ResolutionError",
    "SatDependencyResolver",
]
