"""Tests for the overrides file."""

import pytest

from swaggen.errors import ConfigurationError
from swaggen.overrides import Override, load_overrides, parse_overrides


class TestParse:
    def test_rules(self):
        rules = parse_overrides(
            "// comment\n\nreplace database/sql.NullInt64 int\nskip database/sql.NullString\n"
        )
        assert rules == {
            "database/sql.NullInt64": Override("database/sql.NullInt64", "int"),
            "database/sql.NullString": Override("database/sql.NullString"),
        }
        assert rules["database/sql.NullString"].skip
        assert not rules["database/sql.NullInt64"].skip

    def test_directive_case_insensitive(self):
        assert "a.B" in parse_overrides("SKIP a.B")

    def test_later_rule_wins(self):
        rules = parse_overrides("replace a.B int\nreplace a.B string\n")
        assert rules["a.B"].replacement == "string"

    @pytest.mark.parametrize("line", ["replace a.B", "skip a.B c", "rename a.B c"])
    def test_malformed(self, line):
        with pytest.raises(ConfigurationError, match="could not parse override"):
            parse_overrides(line, ".swaggo")


class TestLoad:
    def test_missing_file(self, tmp_path):
        assert load_overrides(tmp_path / ".swaggo") == {}

    def test_disabled(self):
        assert load_overrides("") == {}

    def test_reads_file(self, tmp_path):
        path = tmp_path / ".swaggo"
        path.write_text("replace github.com/shopspring/decimal.Decimal string\n")
        rules = load_overrides(path)
        assert rules["github.com/shopspring/decimal.Decimal"].replacement == "string"
