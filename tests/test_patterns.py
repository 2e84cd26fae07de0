"""Tests for provider-state pattern matching."""

from pact_provider_runtime.patterns import first_match, matches


def test_literal_pattern_matches_exact_name() -> None:
    assert matches(["cart is empty"], "cart is empty") is True
    assert matches(["cart is empty"], "cart is full") is False


def test_regex_pattern_must_match_whole_name() -> None:
    assert matches([r"order \d+ exists"], "order 42 exists") is True
    assert matches([r"order \d+"], "order 42 exists") is False


def test_any_pattern_in_list_matches() -> None:
    patterns = ["no orders", r"order (\d+) exists"]
    assert matches(patterns, "order 7 exists") is True
    assert matches(patterns, "no orders") is True
    assert matches(patterns, "something else") is False


def test_invalid_regex_only_matches_literally() -> None:
    """A state name with regex metacharacters still matches its own literal."""
    assert matches(["user (admin exists"], "user (admin exists") is True
    assert first_match(["user (admin exists"], "user (admin exists") is None


def test_first_match_returns_capture_groups_in_order() -> None:
    match = first_match([r"(\w+) has (\d+) items"], "alice has 3 items")
    assert match is not None
    assert match.pattern == r"(\w+) has (\d+) items"
    assert match.arguments == ["alice", "3"]


def test_first_match_uses_declaration_order() -> None:
    patterns = [r"order (\d+) exists", r"order (\d+) (exists)"]
    match = first_match(patterns, "order 1 exists")
    assert match is not None
    assert match.pattern == patterns[0]
    assert match.arguments == ["1"]


def test_first_match_skips_non_matching_patterns() -> None:
    patterns = ["order exists", r"order (\d+) exists"]
    match = first_match(patterns, "order 5 exists")
    assert match is not None
    assert match.pattern == r"order (\d+) exists"


def test_first_match_literal_without_groups_has_no_arguments() -> None:
    match = first_match(["cart is empty"], "cart is empty")
    assert match is not None
    assert match.arguments == []


def test_first_match_none_when_nothing_matches() -> None:
    assert first_match([r"order (\d+) exists"], "order abc exists") is None
