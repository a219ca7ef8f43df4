"""Data models for version constraints."""

from dataclasses import dataclass
from enum import Enum


class Operator(Enum):
    """Comparison operators accepted in a version constraint."""
    GE = ">="
    GT = ">"
    LE = "<="
    LT = "<"
    EQ = "=="
    NE = "!="


# Longest operators first so ">=" is not read as ">".
OPERATORS_BY_LENGTH = sorted(Operator, key=lambda op: len(op.value), reverse=True)

WILDCARDS = ("*", "")


@dataclass(frozen=True)
class Constraint:
    """A parsed constraint: operator plus the version text it compares to."""
    operator: Operator
    version: str

    def __str__(self) -> str:
        return f"{self.operator.value}{self.version}"
