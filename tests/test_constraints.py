"""Tests for version constraint evaluation and ordering."""

import pytest

from versioning.constraints import highest, order, parse_constraint, satisfies, sort_versions, split_constraint
from versioning.models import Constraint, Operator


class TestSatisfies:
    """satisfies() over semver and non-semver inputs."""

    @pytest.mark.parametrize("constraint", ["*", ""])
    def test_wildcards_always_match(self, constraint):
        assert satisfies("0.0.0", constraint)
        assert satisfies("not-a-version", constraint)

    @pytest.mark.parametrize("version,constraint,expected", [
        ("1.6.0", ">=1.6.0", True),
        ("1.5.9", ">=1.6.0", False),
        ("2.0.0", ">1.6.0", True),
        ("1.6.0", ">1.6.0", False),
        ("1.6.0", "<=1.6.0", True),
        ("1.6.1", "<1.6.1", False),
        ("1.6.0", "==1.6.0", True),
        ("1.6.0", "!=1.6.0", False),
        ("1.6.0", ">= 1.0.0", True),
    ])
    def test_operators(self, version, constraint, expected):
        assert satisfies(version, constraint) is expected

    def test_bare_constraint_means_equality(self):
        assert satisfies("1.2.3", "1.2.3")
        assert not satisfies("1.2.4", "1.2.3")

    def test_prerelease_ranks_below_release(self):
        assert not satisfies("1.0.0-rc.1", ">=1.0.0")

    def test_non_semver_falls_back_to_string_equality(self):
        """Operator is ignored once either side fails to parse."""
        assert satisfies("1.6", ">=1.6")
        assert not satisfies("1.7", ">=1.6")
        assert not satisfies("2.0.0", ">=1.6")

    def test_sentinel_misses_real_range(self):
        assert not satisfies("0.0.0", ">=1.0.0")


class TestConstraintParsing:

    def test_split_prefers_longest_operator(self):
        assert split_constraint(">=1.0.0") == (Operator.GE, "1.0.0")
        assert split_constraint("<= 2.0") == (Operator.LE, "2.0")
        assert split_constraint("1.0.0") == (Operator.EQ, "1.0.0")

    def test_parse_constraint(self):
        assert parse_constraint("*") is None
        assert parse_constraint("") is None
        assert parse_constraint("!=1.0.0") == Constraint(Operator.NE, "1.0.0")
        assert str(Constraint(Operator.GT, "1.0.0")) == ">1.0.0"


class TestOrder:
    """order() is a total order consistent with satisfies()."""

    def test_semver_precedence(self):
        assert order("1.10.0", "1.9.0") == 1
        assert order("1.9.0", "1.10.0") == -1
        assert order("1.0.0", "1.0.0") == 0

    def test_build_metadata_only_breaks_ties(self):
        assert order("1.0.0+build.1", "1.0.0") == 1
        assert order("1.0.0+zzz", "1.0.1") == -1
        assert satisfies("1.0.0+build.1", "==1.0.0")

    def test_ties_are_transitive(self):
        """Precedence ties are settled the same way whether strict or coerced."""
        x, y, z = "1.6.0+b", "1.6.0+a", "1.6.0+a_1"

        assert order(y, z) == -1
        assert order(z, x) == -1
        assert order(y, x) == -1
        assert sort_versions([x, y, z]) == sort_versions([z, x, y]) == [x, z, y]

    @pytest.mark.parametrize("a,b", [
        ("1.0.0", "2.0.0"),
        ("1.6", "1.6.0"),
        ("abc", "1.0.0"),
        ("abc", "abd"),
        ("2.0.0.1", "2.0.0"),
    ])
    def test_antisymmetric(self, a, b):
        assert order(a, b) == -order(b, a)

    def test_order_agrees_with_satisfies(self):
        versions = ["0.9.0", "1.0.0", "1.2.0", "2.0.0"]
        for v in versions:
            assert satisfies(v, ">=1.0.0") == (order(v, "1.0.0") >= 0)

    def test_sort_and_highest(self):
        assert sort_versions(["1.0.0", "2.0.0", "1.10.0", "1.0.0"]) == ["2.0.0", "1.10.0", "1.0.0"]
        assert sort_versions(["2.0.0", "1.0.0"], descending=False) == ["1.0.0", "2.0.0"]
        assert highest(["0.1.0", "0.10.0", "0.9.0"]) == "0.10.0"
        assert highest([]) is None
