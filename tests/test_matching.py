"""Unit tests for literal substring matching."""

import pytest

from remote_mcp.matching import occurrence_count, replace


class TestOccurrenceCount:
    """Tests for occurrence_count."""

    def test_absent_string_counts_zero(self):
        assert occurrence_count("hello world", "bye") == 0

    def test_counts_every_occurrence(self):
        assert occurrence_count("foo bar foo baz foo", "foo") == 3

    def test_non_overlapping(self):
        assert occurrence_count("aaaa", "aa") == 2
        assert occurrence_count("aaa", "aa") == 1

    def test_regex_metacharacters_are_literal(self):
        content = "a.b a+b a*b (x) [y] $z ^w \\d"
        assert occurrence_count(content, ".") == 1
        assert occurrence_count(content, "a.b") == 1
        assert occurrence_count(content, "a*b") == 1
        assert occurrence_count(content, "(x)") == 1
        assert occurrence_count(content, "[y]") == 1
        assert occurrence_count(content, "$z") == 1
        assert occurrence_count(content, "\\d") == 1
        assert occurrence_count("axb", "a.b") == 0

    def test_multiline_target(self):
        content = "def f():\n    pass\n\ndef g():\n    pass\n"
        assert occurrence_count(content, "():\n    pass") == 2

    def test_empty_target_rejected(self):
        with pytest.raises(ValueError):
            occurrence_count("abc", "")


class TestReplace:
    """Tests for replace."""

    def test_first_occurrence_only(self):
        assert replace("foo bar foo", "foo", "baz") == "baz bar foo"

    def test_replace_all(self):
        assert replace("foo bar foo", "foo", "baz", replace_all=True) == "baz bar baz"

    def test_replace_all_non_overlapping(self):
        assert replace("aaaa", "aa", "b", replace_all=True) == "bb"

    def test_metacharacters_in_replacement_are_literal(self):
        assert replace("x = 1", "1", "\\1 $& \\g<0>") == "x = \\1 $& \\g<0>"

    def test_single_occurrence(self):
        content = "alpha\nbeta\ngamma\n"
        assert replace(content, "beta", "BETA") == "alpha\nBETA\ngamma\n"

    def test_pure(self):
        content = "keep"
        replace(content, "keep", "drop")
        assert content == "keep"

    def test_replace_all_removes_every_target(self):
        content = "one two one two one"
        result = replace(content, "one", "1", replace_all=True)
        assert result.count("1") == 3
        assert "one" not in result
