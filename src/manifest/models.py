"""Data models for parsed manifests and resolution output."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from versioning.models import WILDCARDS


class ValueKind(Enum):
    """Shapes a manifest value literal can take."""
    STRING = "string"
    ARRAY = "array"
    MAPPING = "mapping"


@dataclass(frozen=True)
class ManifestValue:
    """Tagged value produced by the value-literal parser.

    Consumers ask for the shape they expect; a mismatch yields None rather
    than an exception so manifest assembly stays lenient.
    """
    kind: ValueKind
    data: Union[str, List[str], Dict[str, str]]

    def as_string(self) -> Optional[str]:
        return self.data if self.kind is ValueKind.STRING else None  # type: ignore[return-value]

    def as_list(self) -> Optional[List[str]]:
        return list(self.data) if self.kind is ValueKind.ARRAY else None  # type: ignore[arg-type]

    def as_mapping(self) -> Optional[Dict[str, str]]:
        return dict(self.data) if self.kind is ValueKind.MAPPING else None  # type: ignore[arg-type]


@dataclass
class DependencySpec:
    """One requirement from a ``requires`` statement.

    ``version`` keeps the text after a ``>=`` split without the operator,
    ``*`` when unconstrained. ``url`` is empty unless the requirement named
    an explicit source.
    """
    name: str
    version: str = "*"
    url: str = ""

    @property
    def requirement(self) -> str:
        """Constraint text for the evaluator.

        A bare version here can only come from a stripped ``>=``, so the
        operator is restored; explicit operators and wildcards pass through.
        """
        text = self.version.strip()
        if text in WILDCARDS or text[0] in "<>=!":
            return text
        return f">={text}"


@dataclass
class PackageManifest:
    """Structured view of a ``.nimble`` manifest."""
    name: Optional[str] = None
    version: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    license: Optional[str] = None
    src_dir: Optional[str] = None
    src: Optional[str] = None
    bin: List[str] = field(default_factory=list)
    skip_dirs: Optional[List[str]] = None
    dependencies: List[DependencySpec] = field(default_factory=list)
    features: Dict[str, List[DependencySpec]] = field(default_factory=dict)


@dataclass
class ResolvedDependency:
    """A requirement bound to a concrete version and source."""
    name: str
    version: str
    url: str
    installed: bool
    dependencies: List["ResolvedDependency"] = field(default_factory=list)
    package: Optional[PackageManifest] = None
