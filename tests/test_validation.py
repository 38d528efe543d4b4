"""Tests for label/title/body validators and max-count parsing."""

import pytest

from safe_outputs.core.validation import (
    MAX_LABEL_LENGTH,
    filter_allowed_items,
    parse_leading_int,
    sanitize_label_content,
    validate_body,
    validate_labels,
    validate_max_count,
    validate_title,
)


class TestValidateLabels:
    def test_rejects_removal_syntax(self):
        result = validate_labels(["-bug"])
        assert not result.valid
        assert result.error == "Label removal is not permitted. Found line starting with '-': -bug"

    def test_removal_syntax_rejected_even_among_valid_labels(self):
        result = validate_labels(["enhancement", "-bug"], max_count=10)
        assert not result.valid
        assert "-bug" in result.error

    def test_dedupe_is_case_sensitive_and_order_preserving(self):
        result = validate_labels(["a", "a", "A"], max_count=10)
        assert result.valid
        assert result.value == ["a", "A"]

    def test_safe_labels_pass_through_unchanged(self):
        labels = ["bug", "needs triage", "area/api"]
        result = validate_labels(labels, max_count=10)
        assert result.value == labels

    def test_sanitizes_unsafe_characters(self):
        result = validate_labels(["<b>bug</b>", "\x1b[31mred\x1b[0m"], max_count=10)
        assert result.value == ["bbug/b", "red"]

    def test_caps_label_length(self):
        result = validate_labels(["x" * 100])
        assert result.value == ["x" * MAX_LABEL_LENGTH]

    def test_allow_list_filters_before_sanitizing(self):
        result = validate_labels(["bug", "wontfix", "triage"], allowed_labels=["bug", "triage"], max_count=10)
        assert result.value == ["bug", "triage"]

    def test_blocked_patterns_drop_matches(self):
        result = validate_labels(["bug", "internal-only", "triage"], blocked_patterns=["internal*"], max_count=10)
        assert result.value == ["bug", "triage"]

    def test_truncates_to_max_count(self):
        result = validate_labels(["a", "b", "c", "d"], max_count=2)
        assert result.valid
        assert result.value == ["a", "b"]

    def test_empty_after_filtering_is_invalid(self):
        result = validate_labels(["   ", "<>"])
        assert not result.valid
        assert result.error == "No valid labels found after sanitization"

    def test_non_list_is_invalid(self):
        result = validate_labels("bug")
        assert not result.valid
        assert result.error == "labels must be an array"


def test_sanitize_label_content_strips_control_characters():
    assert sanitize_label_content("  bug\x00\x07 ") == "bug"


class TestValidateMaxCount:
    def test_env_value_wins(self):
        assert validate_max_count("5", 2).value == 5

    def test_config_default_used_without_env(self):
        assert validate_max_count(None, 2).value == 2

    def test_fallback_default(self):
        assert validate_max_count("", None, fallback_default=3).value == 3

    def test_leading_integer_is_accepted(self):
        assert validate_max_count("7abc", None).value == 7

    @pytest.mark.parametrize("raw", ["0", "-1", "abc"])
    def test_invalid_values(self, raw):
        result = validate_max_count(raw, None)
        assert not result.valid
        assert result.error == f"Invalid max value: {raw}. Must be a positive integer"


@pytest.mark.parametrize(
    "raw, expected",
    [(42, 42), ("42", 42), (" 42abc", 42), ("abc", None), (True, None), (3.9, 3)],
)
def test_parse_leading_int(raw, expected):
    assert parse_leading_int(raw) == expected


def test_validate_title():
    assert validate_title("  Fix it  ").value == "Fix it"
    assert validate_title(None).error == "title is required"
    assert validate_title(12).error == "title must be a string"
    assert validate_title("   ").error == "title cannot be empty"


def test_validate_body():
    assert validate_body(None).value == ""
    assert validate_body(None, required=True).error == "body is required"
    assert validate_body(" ", required=True).error == "body cannot be empty"
    assert validate_body("hello").value == "hello"


def test_filter_allowed_items():
    items = ["alice", "mallory", "bob", "alice"]
    assert filter_allowed_items(items, ["alice", "bob"], 5) == ["alice", "bob"]
    assert filter_allowed_items(items, None, 2) == ["alice", "mallory"]
    assert filter_allowed_items("alice", None, 2) == []
