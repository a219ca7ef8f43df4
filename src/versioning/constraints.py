"""Version constraint evaluation and ordering using semantic versioning."""

from functools import cmp_to_key
from typing import Iterable, List, Optional, Tuple

import semantic_version

from .models import OPERATORS_BY_LENGTH, WILDCARDS, Constraint, Operator


def _parse_strict(text: str) -> Optional[semantic_version.Version]:
    """Return the strict semver for ``text`` without build metadata, or None."""
    try:
        return semantic_version.Version(text.strip()).truncate('prerelease')
    except ValueError:
        return None


def _parse_loose(text: str) -> Optional[semantic_version.Version]:
    """Coerce near-semver text such as "1.6" or "2.0.0.1"; None when hopeless."""
    try:
        return semantic_version.Version.coerce(text.strip()).truncate('prerelease')
    except ValueError:
        return None


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def split_constraint(constraint: str) -> Tuple[Operator, str]:
    """Split a constraint into (operator, version text).

    A constraint without a leading operator compares for equality.
    """
    text = constraint.strip()
    for op in OPERATORS_BY_LENGTH:
        if text.startswith(op.value):
            return op, text[len(op.value):].strip()
    return Operator.EQ, text


def parse_constraint(constraint: str) -> Optional[Constraint]:
    """Return a Constraint, or None for the wildcard forms ``*`` and ``""``."""
    if constraint is None or constraint.strip() in WILDCARDS:
        return None
    op, version = split_constraint(constraint)
    return Constraint(op, version)


def _compare_with(op: Operator, result: int) -> bool:
    if op is Operator.GE:
        return result >= 0
    if op is Operator.GT:
        return result > 0
    if op is Operator.LE:
        return result <= 0
    if op is Operator.LT:
        return result < 0
    if op is Operator.NE:
        return result != 0
    return result == 0


def satisfies(version: str, constraint: str) -> bool:
    """Return True when ``version`` meets ``constraint``.

    Wildcards always match. When either side is not strict semver the check
    degrades to string equality with the constraint's version text, whatever
    the operator.
    """
    parsed = parse_constraint(constraint)
    if parsed is None:
        return True
    left = _parse_strict(version)
    right = _parse_strict(parsed.version)
    if left is None or right is None:
        return version.strip() == parsed.version
    return _compare_with(parsed.operator, _cmp(left, right))


def order(a: str, b: str) -> int:
    """Total order over version strings: -1, 0 or 1.

    Strict semvers compare by precedence and anything else is coerced when
    possible. Every precedence tie, and every pair that cannot be coerced,
    is decided by plain string comparison. A coercible version always ranks
    above one that is not.
    """
    left, right = _parse_strict(a), _parse_strict(b)
    if left is not None and right is not None:
        return _cmp(left, right) or _cmp(a, b)

    left, right = _parse_loose(a), _parse_loose(b)
    if left is not None and right is not None:
        return _cmp(left, right) or _cmp(a, b)
    if left is not None:
        return 1
    if right is not None:
        return -1
    return _cmp(a, b)


def sort_versions(versions: Iterable[str], descending: bool = True) -> List[str]:
    """Deduplicate ``versions`` and sort them with ``order``."""
    unique = list(dict.fromkeys(versions))
    return sorted(unique, key=cmp_to_key(order), reverse=descending)


def highest(versions: Iterable[str]) -> Optional[str]:
    """Highest version by ``order``, or None for an empty input."""
    ordered = sort_versions(versions)
    return ordered[0] if ordered else None
