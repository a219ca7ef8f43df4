"""Errors raised by dependency resolution."""

from typing import List, Optional, Tuple


class DependencyError(Exception):
    """Base class for resolution failures."""


class NoCandidateError(DependencyError):
    """No candidate version of a package satisfies its constraint."""

    def __init__(self, package: str, constraint: str):
        self.package = package
        self.constraint = constraint
        super().__init__(f"No version of {package} satisfies range {constraint}")


class ResolutionError(DependencyError):
    """The combined constraint set has no satisfying assignment.

    ``requirements`` holds the (package, constraint) pairs that took part.
    """

    def __init__(self, requirements: Optional[List[Tuple[str, str]]] = None):
        self.requirements = list(requirements or [])
        message = "Dependency resolution failed: constraints are unsatisfiable"
        if self.requirements:
            message += ": " + ", ".join(f"{name} {constraint}" for name, constraint in self.requirements)
        super().__init__(message)
