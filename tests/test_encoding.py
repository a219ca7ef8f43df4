"""Tests for CNF encoding helpers and the SAT backend."""

from resolution.encoding import (
    VariableTable,
    decode_model,
    encode_at_least_one,
    encode_at_most_one,
    encode_exactly_one,
)
from resolution.solver import solve


class TestVariableTable:

    def test_allocation_is_stable_and_one_based(self):
        table = VariableTable()

        assert table.allocate("jsony", "1.1.0") == 1
        assert table.allocate("jsony", "1.0.0") == 2
        assert table.allocate("cligen", "1.5.0") == 3
        assert table.allocate("jsony", "1.1.0") == 1
        assert len(table) == 3

    def test_lookups(self):
        table = VariableTable()
        table.allocate("jsony", "1.1.0")
        table.allocate("cligen", "1.5.0")

        assert table.lookup("cligen", "1.5.0") == 2
        assert table.lookup("cligen", "9.9.9") is None
        assert table.pair(1) == ("jsony", "1.1.0")
        assert table.variables_for("jsony") == [1]
        assert table.variables_for("missing") == []

    def test_variables_for_keeps_allocation_order(self):
        table = VariableTable()
        table.allocate("jsony", "1.2.0")
        table.allocate("cligen", "1.5.0")
        table.allocate("jsony", "1.0.0")

        assert table.variables_for("jsony") == [1, 3]


class TestClauses:

    def test_exactly_one_single_candidate_is_unit_clause(self):
        assert encode_exactly_one([4]) == [[4]]

    def test_exactly_one_pairs(self):
        assert encode_exactly_one([1, 2, 3]) == [[1, 2, 3], [-1, -2], [-1, -3], [-2, -3]]

    def test_empty_inputs(self):
        assert encode_at_least_one([]) == []
        assert encode_at_most_one([]) == []

    def test_decode_model_ignores_false_literals(self):
        table = VariableTable()
        table.allocate("jsony", "1.1.0")
        table.allocate("jsony", "1.0.0")

        assert decode_model([-1, 2], table) == {"jsony": "1.0.0"}


class TestSolve:

    def test_satisfiable_model_covers_every_variable(self):
        model = solve(3, [[1, 2], [-1, -2], [-1]])

        assert model is not None
        assert len(model) == 3
        assert 2 in model
        assert -1 in model
        assert -3 in model

    def test_unsatisfiable(self):
        assert solve(1, [[1], [-1]]) is None
