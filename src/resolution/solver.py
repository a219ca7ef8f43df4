"""Boolean satisfiability backend built on PySAT."""

import logging
from typing import List, Optional, Sequence

from pysat.solvers import Solver

from common.logging_utils import Timer

logger = logging.getLogger(__name__)

SOLVER_NAME = "m22"  # MiniSat 2.2


def solve(num_vars: int, clauses: Sequence[Sequence[int]]) -> Optional[List[int]]:
    """Solve a CNF instance.

    Args:
        num_vars: Number of variables; every literal must satisfy
            ``1 <= abs(literal) <= num_vars``.
        clauses: Disjunctions of signed variable ids.

    Returns:
        The model as a list of signed literals covering variables
        ``1..num_vars``, or None when the instance is unsatisfiable.
    """
    with Timer() as t, Solver(name=SOLVER_NAME, bootstrap_with=[list(c) for c in clauses]) as sat:
        satisfiable = sat.solve()
        model = sat.get_model() if satisfiable else None
    logger.debug("SAT solve over %d variables and %d clauses: %s in %sms",
                 num_vars, len(clauses), "sat" if satisfiable else "unsat", t.duration_ms())
    if model is None:
        return None

    assigned = {abs(literal): literal for literal in model}
    # Variables absent from every clause are unconstrained; report them false.
    return [assigned.get(var_id, -var_id) for var_id in range(1, num_vars + 1)]
