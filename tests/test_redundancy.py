"""
Tests for wdecustoms.resolution.redundancy module.

Tests redundant file rules including:
- Mandatory rules (readme, .pdb, .md)
- Extension anchoring of operator patterns starting with "."
- Case-insensitive matching
- Invalid patterns
"""

from __future__ import annotations

import pytest

from wdecustoms.exceptions import ConfigError
from wdecustoms.models import CustomizationFile, FileStatus
from wdecustoms.resolution.redundancy import (
    MANDATORY_PATTERNS,
    RedundancyFilter,
    check_redundancy,
    compile_redundancy_rules,
)


class TestMandatoryRules:
    """Tests for the rules that are always applied."""

    @pytest.mark.parametrize(
        "name", ["README.txt", "readme", "Custom.Readme.html", "Custom.pdb", "NOTES.MD"]
    )
    def test_always_redundant(self, name):
        """Test that mandatory rules apply without any configured pattern."""
        assert RedundancyFilter().is_redundant(CustomizationFile(name))

    @pytest.mark.parametrize("name", ["Custom.dll", "Custom.pdb.bak", "mdfile.dll"])
    def test_not_redundant(self, name):
        """Test names that only look similar to a mandatory rule."""
        assert not RedundancyFilter().is_redundant(CustomizationFile(name))

    def test_mandatory_rules_come_last(self):
        """Test that operator rules are checked before the mandatory ones."""
        rules = compile_redundancy_rules(["_old"])

        assert rules[0].pattern == "_old"
        assert [r.pattern for r in rules[1:]] == list(MANDATORY_PATTERNS)


class TestOperatorPatterns:
    """Tests for configured patterns."""

    def test_leading_dot_anchors_at_end(self):
        """Test that ".config" only matches the extension."""
        rf = RedundancyFilter([".config"])

        assert rf.is_redundant(CustomizationFile("App.exe.config"))
        assert not rf.is_redundant(CustomizationFile("App.config.bak"))

    def test_plain_pattern_matches_anywhere(self):
        """Test that other patterns are unanchored substring searches."""
        rf = RedundancyFilter(["_old"])

        assert rf.is_redundant(CustomizationFile("Custom_old.dll"))
        assert rf.is_redundant(CustomizationFile("Custom_OLD_2.dll"))

    def test_regex_syntax(self):
        """Test that patterns are regular expressions."""
        rf = RedundancyFilter([r"^Test\..*\.dll$"])

        assert rf.is_redundant(CustomizationFile("Test.Module.dll"))
        assert not rf.is_redundant(CustomizationFile("MyTest.Module.dll"))

    def test_match_returns_first_rule(self):
        """Test that the first matching rule is reported."""
        rules = compile_redundancy_rules(["Custom", "dll"])

        assert check_redundancy(CustomizationFile("Custom.dll"), rules).pattern == "Custom"

    def test_empty_patterns_are_ignored(self):
        """Test that blank entries do not match everything."""
        assert not RedundancyFilter([""]).is_redundant(CustomizationFile("Custom.dll"))

    def test_invalid_pattern(self):
        """Test that a broken regex is a configuration error."""
        with pytest.raises(ConfigError, match="invalid redundant file pattern"):
            RedundancyFilter(["(unclosed"])


class TestFilter:
    """Tests for RedundancyFilter.filter."""

    def test_split_keeps_order_and_parallel_statuses(self):
        """Test that statuses stay parallel to the input."""
        files = [
            CustomizationFile("a.dll"),
            CustomizationFile("readme.txt"),
            CustomizationFile("b.dll"),
        ]

        kept, statuses = RedundancyFilter().filter(files)

        assert [f.file_name for f in kept] == ["a.dll", "b.dll"]
        assert statuses == [None, FileStatus.REDUNDANT, None]
