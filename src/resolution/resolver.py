"""SAT-based resolver for a manifest's direct dependencies.

The resolver picks exactly one candidate version per required package such
that every requirement's range is met. Candidate versions come from a
discovery collaborator; only direct dependencies are modelled, so a
dependency's own requirements are not part of the problem.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from constants import Constants
from manifest.models import DependencySpec, PackageManifest, ResolvedDependency
from versioning.constraints import satisfies, sort_versions
from .discovery import CandidateDiscovery
from .encoding import Clause, VariableTable, decode_model, encode_at_least_one, encode_exactly_one
from .errors import NoCandidateError, ResolutionError
from .solver import solve

logger = logging.getLogger(__name__)


@dataclass
class Encoding:
    """CNF instance built for one manifest."""
    table: VariableTable
    clauses: List[Clause] = field(default_factory=list)
    candidates: Dict[str, List[str]] = field(default_factory=dict)


class SatDependencyResolver:
    """Resolve direct dependencies of a manifest to concrete versions.

    Args:
        discovery: Supplies candidate and installed versions.
        registry: Optional object with ``load()`` and ``get_github_url(name)``
            used to fill in source URLs. Load failures only warn.
        log: Logger to report through; defaults to this module's logger.
    """

    def __init__(self, discovery: CandidateDiscovery, registry=None, log: Optional[logging.Logger] = None):
        self.discovery = discovery
        self.registry = registry
        self.log = log or logger
        self._resolved: Dict[Tuple[str, str], ResolvedDependency] = {}
        self._installed: Dict[str, Optional[str]] = {}

    def _reset(self) -> None:
        self._resolved.clear()
        self._installed.clear()

    def _load_registry(self) -> None:
        if self.registry is None:
            return
        try:
            self.registry.load()
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self.log.warning("Failed to load registry: %s", exc)

    def _installed_version(self, package: str) -> Optional[str]:
        if package not in self._installed:
            self._installed[package] = self.discovery.installed_version(package)
        return self._installed[package]

    def _check_toolchain(self, dep: DependencySpec) -> None:
        """Warn when the installed compiler misses the requirement; never fail."""
        requirement = dep.requirement
        if requirement in ("*", ""):
            return
        installed = self._installed_version(dep.name)
        if installed is None:
            self.log.warning("Could not determine installed %s version to check %s",
                             dep.name, requirement)
            return
        if not satisfies(installed, requirement):
            self.log.warning("Installed %s version %s does not satisfy required range %s",
                             dep.name, installed, requirement)

    def _collect_candidates(self, manifest: PackageManifest) -> Dict[str, List[str]]:
        candidates: Dict[str, List[str]] = {}
        for dep in manifest.dependencies:
            if dep.name == Constants.TOOLCHAIN_PACKAGE or dep.name in candidates:
                continue
            candidates[dep.name] = sort_versions(self.discovery.list_candidate_versions(dep.name))
        return candidates

    def encode(self, manifest: PackageManifest) -> Encoding:
        """Build the CNF instance for ``manifest``'s direct dependencies.

        Raises:
            NoCandidateError: a requirement matches none of its candidates.
        """
        encoding = Encoding(table=VariableTable())
        encoding.candidates = self._collect_candidates(manifest)

        for package, versions in encoding.candidates.items():
            for version in versions:
                encoding.table.allocate(package, version)
            encoding.clauses.extend(encode_exactly_one(encoding.table.variables_for(package)))

        for dep in manifest.dependencies:
            if dep.name == Constants.TOOLCHAIN_PACKAGE:
                self._check_toolchain(dep)
                continue
            requirement = dep.requirement
            valid = [v for v in encoding.candidates.get(dep.name, []) if satisfies(v, requirement)]
            if not valid:
                raise NoCandidateError(dep.name, requirement)
            variables = [encoding.table.lookup(dep.name, v) for v in valid]
            encoding.clauses.extend(encode_at_least_one([v for v in variables if v is not None]))

        return encoding

    def resolve(self, manifest: PackageManifest) -> List[ResolvedDependency]:
        """Resolve ``manifest``'s direct dependencies.

        Raises:
            NoCandidateError: a requirement matches none of its candidates.
            ResolutionError: the solver finds no consistent assignment.
        """
        self._reset()
        self._load_registry()

        encoding = self.encode(manifest)
        num_vars = len(encoding.table)
        if num_vars == 0:
            self.log.debug("No dependencies to resolve")
            return []

        model = solve(num_vars, encoding.clauses)
        if model is None:
            raise ResolutionError([
                (dep.name, dep.requirement)
                for dep in manifest.dependencies
                if dep.name in encoding.candidates
            ])

        selected = decode_model(model, encoding.table)
        self.log.debug("Selected versions: %s", selected)
        return [self.resolve_dependency(dep, selected) for dep in manifest.dependencies]

    def resolve_dependency(self, dep: DependencySpec, selected: Dict[str, str]) -> ResolvedDependency:
        """Bind ``dep`` to its selected version, reusing earlier results this run."""
        cache_key = (dep.name, dep.version)
        if cache_key in self._resolved:
            return self._resolved[cache_key]

        version = selected.get(dep.name, dep.version)
        resolved = ResolvedDependency(
            name=dep.name,
            version=version,
            url=dep.url or self._source_url(dep.name),
            installed=self._installed_version(dep.name) is not None,
            dependencies=[],
            package=PackageManifest(name=dep.name, version=version),
        )
        self._resolved[cache_key] = resolved
        return resolved

    def _source_url(self, package: str) -> str:
        if self.registry is not None:
            url = self.registry.get_github_url(package)
            if url:
                return url
        return f"{Constants.GITHUB_BASE}/{Constants.DEFAULT_GITHUB_ORG}/{package}"
