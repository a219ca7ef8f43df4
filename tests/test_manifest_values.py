"""Tests for manifest value-literal parsing."""

from manifest.models import ValueKind
from manifest.values import parse_value


class TestParseValue:
    """parse_value shapes."""

    def test_array_with_at_prefix(self):
        value = parse_value('@["tests", "docs", "examples"]')

        assert value.kind is ValueKind.ARRAY
        assert value.as_list() == ["tests", "docs", "examples"]

    def test_plain_array(self):
        assert parse_value('["tests", "docs", "examples"]').as_list() == ["tests", "docs", "examples"]

    def test_string(self):
        value = parse_value('"test"')

        assert value.kind is ValueKind.STRING
        assert value.as_string() == "test"

    def test_bare_number_kept_raw(self):
        assert parse_value("1.0.0").as_string() == "1.0.0"

    def test_empty_array(self):
        assert parse_value("@[]").as_list() == []

    def test_empty_string(self):
        assert parse_value('""').as_string() == ""

    def test_mapping(self):
        value = parse_value('{"tool": "src/tool", "other": "src/other"}')

        assert value.kind is ValueKind.MAPPING
        assert value.as_mapping() == {"tool": "src/tool", "other": "src/other"}

    def test_shape_mismatch_returns_none(self):
        value = parse_value('"text"')

        assert value.as_list() is None
        assert value.as_mapping() is None
