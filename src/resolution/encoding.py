"""CNF encoding of package version choices.

Each (package, version) pair is one boolean variable. Clauses are lists of
signed variable ids in DIMACS convention: ``3`` means variable 3 is true,
``-3`` means it is false.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

Clause = List[int]


class VariableTable:
    """Bidirectional map between variable ids and (package, version) pairs.

    Ids start at 1 and are allocated in call order, so a table rebuilt from
    the same inputs assigns the same ids.
    """

    def __init__(self) -> None:
        self._ids: Dict[Tuple[str, str], int] = {}
        self._pairs: Dict[int, Tuple[str, str]] = {}
        self._by_package: Dict[str, List[int]] = {}

    def allocate(self, package: str, version: str) -> int:
        key = (package, version)
        if key in self._ids:
            return self._ids[key]
        var_id = len(self._ids) + 1
        self._ids[key] = var_id
        self._pairs[var_id] = key
        self._by_package.setdefault(package, []).append(var_id)
        return var_id

    def lookup(self, package: str, version: str) -> Optional[int]:
        return self._ids.get((package, version))

    def pair(self, var_id: int) -> Optional[Tuple[str, str]]:
        return self._pairs.get(var_id)

    def variables_for(self, package: str) -> List[int]:
        return list(self._by_package.get(package, []))

    def __len__(self) -> int:
        return len(self._ids)


def encode_at_least_one(variables: Sequence[int]) -> List[Clause]:
    """One clause requiring some variable in ``variables`` to be true."""
    return [list(variables)] if variables else []


def encode_at_most_one(variables: Sequence[int]) -> List[Clause]:
    """Pairwise exclusion clauses: no two of ``variables`` may both be true."""
    clauses: List[Clause] = []
    for i, left in enumerate(variables):
        for right in variables[i + 1:]:
            clauses.append([-left, -right])
    return clauses


def encode_exactly_one(variables: Sequence[int]) -> List[Clause]:
    """Exactly one of ``variables`` is true.

    A single variable becomes a unit clause forcing it true.
    """
    if len(variables) == 1:
        return [[variables[0]]]
    return encode_at_least_one(variables) + encode_at_most_one(variables)


def decode_model(model: Iterable[int], table: VariableTable) -> Dict[str, str]:
    """Map each package to the version whose variable the model sets true."""
    selected: Dict[str, str] = {}
    for literal in model:
        if literal <= 0:
            continue
        pair = table.pair(literal)
        if pair is not None:
            package, version = pair
            selected[package] = version
    return selected
