"""Tests for converting captured tokens into handler arguments."""

from collections.abc import Sequence
from typing import Any, List, Mapping, Optional

import pytest

from pact_provider_runtime.binding import (
    HandlerParameter,
    bind_argument,
    bind_arguments,
    is_mapping_type,
    split_collection,
)
from pact_provider_runtime.schema import TypeConversionError, UnsupportedParameterType


class TestScalars:
    def test_string_passes_through(self) -> None:
        assert bind_argument(" raw value ", str) == " raw value "

    def test_unannotated_passes_through(self) -> None:
        import inspect

        assert bind_argument("42", inspect.Parameter.empty) == "42"

    @pytest.mark.parametrize("token, expected", [("42", 42), ("-7", -7), ("+3", 3), ("0", 0)])
    def test_int(self, token: str, expected: int) -> None:
        value = bind_argument(token, int)
        assert value == expected
        assert type(value) is int

    @pytest.mark.parametrize("token, expected", [("1.5", 1.5), ("-0.25", -0.25), ("3", 3.0), ("1e3", 1000.0)])
    def test_float(self, token: str, expected: float) -> None:
        value = bind_argument(token, float)
        assert value == expected
        assert type(value) is float

    def test_optional_int(self) -> None:
        assert bind_argument("9", Optional[int]) == 9

    @pytest.mark.parametrize("token", ["abc", "4.2", " 42", "4_2", ""])
    def test_invalid_int_raises(self, token: str) -> None:
        with pytest.raises(TypeConversionError) as info:
            bind_argument(token, int, state_name="order x exists", parameter_index=0)
        assert info.value.token == token
        assert info.value.target_type is int
        assert info.value.parameter_index == 0
        assert info.value.state_name == "order x exists"

    def test_invalid_float_raises(self) -> None:
        with pytest.raises(TypeConversionError, match="Cannot convert 'ten' to float"):
            bind_argument("ten", float)


class TestCollections:
    def test_split_and_trim(self) -> None:
        assert bind_argument("a, b ,c", list[str]) == ["a", "b", "c"]

    @pytest.mark.parametrize("annotation", [list, List[str], Sequence[str], list[str]])
    def test_list_like_annotations(self, annotation: Any) -> None:
        assert bind_argument("x,y", annotation) == ["x", "y"]

    def test_tuple_annotation(self) -> None:
        assert bind_argument("x, y", tuple[str, ...]) == ("x", "y")

    def test_no_numeric_coercion(self) -> None:
        assert bind_argument("1, 2", list[str]) == ["1", "2"]

    def test_single_element(self) -> None:
        assert split_collection("solo") == ["solo"]

    def test_blank_element_is_kept(self) -> None:
        assert bind_argument("a, ,b", list[str]) == ["a", "", "b"]

    def test_adjacent_commas_are_skipped(self) -> None:
        assert split_collection(",a,,b,") == ["a", "b"]

    def test_non_string_elements_are_unsupported(self) -> None:
        with pytest.raises(UnsupportedParameterType):
            bind_argument("1,2", list[int])


class TestUnsupported:
    @pytest.mark.parametrize("annotation", [bool, bytes, dict, set[str], object])
    def test_unsupported_types(self, annotation: Any) -> None:
        with pytest.raises(UnsupportedParameterType) as info:
            bind_argument("x", annotation, parameter_index=2)
        assert info.value.parameter_type is annotation
        assert info.value.parameter_index == 2


def test_is_mapping_type() -> None:
    assert is_mapping_type(dict)
    assert is_mapping_type(dict[str, Any])
    assert is_mapping_type(Mapping[str, Any])
    assert not is_mapping_type(list)
    assert not is_mapping_type(str)


def test_bind_arguments_positional() -> None:
    parameters = [
        HandlerParameter(name="name", annotation=str),
        HandlerParameter(name="count", annotation=int),
        HandlerParameter(name="tags", annotation=list[str]),
    ]
    values = bind_arguments(["alice", "3", "a,b"], parameters, state_name="s", pattern="p")
    assert values == ["alice", 3, ["a", "b"]]


def test_bind_arguments_reports_parameter_index() -> None:
    parameters = [
        HandlerParameter(name="name", annotation=str),
        HandlerParameter(name="count", annotation=int),
    ]
    with pytest.raises(TypeConversionError) as info:
        bind_arguments(["alice", "many"], parameters, state_name="alice has many", pattern="(.*) has (.*)")
    assert info.value.parameter_index == 1
    assert info.value.pattern == "(.*) has (.*)"
