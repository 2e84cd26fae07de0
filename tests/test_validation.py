"""Tests for structural validation of test definitions."""

from typing import TYPE_CHECKING, Annotated

import pytest
import requests

from pact_provider_runtime.adapters.targets import Target
from pact_provider_runtime.declarations import (
    CurrentConsumer,
    CurrentInteraction,
    Resource,
    request_filter,
    state,
)
from pact_provider_runtime.registry import build_registry
from pact_provider_runtime.schema import Consumer, DefinitionValidationError, Interaction
from pact_provider_runtime.validation import validate_definition

if TYPE_CHECKING:
    from decimal import Decimal
    from http.client import HTTPConnection


class ValidDefinition:
    target: Annotated[Target, Resource]
    interaction: Annotated[Interaction, CurrentInteraction]
    consumer: Annotated[Consumer, CurrentConsumer]

    @state("ready")
    def ready(self) -> None:
        pass

    @state(r"order (\d+)")
    def order(self, order_id: int):
        pass

    @request_filter
    def sign(self, request: requests.PreparedRequest) -> None:
        pass

    @request_filter
    def untyped(self, request) -> None:
        pass


def _codes(definition: type) -> list[str]:
    return [v.code for v in validate_definition(build_registry(definition)).violations]


def test_valid_definition_has_empty_report() -> None:
    report = validate_definition(build_registry(ValidDefinition))
    assert report.is_valid
    assert report.violations == []
    report.raise_for_violations()


def test_missing_target_field() -> None:
    class Definition:
        pass

    assert _codes(Definition) == ["TARGET_MISSING"]


def test_two_target_fields() -> None:
    class Definition:
        first: Annotated[Target, Resource]
        second: Annotated[Target, Resource]

    report = validate_definition(build_registry(Definition))
    assert [v.code for v in report.violations] == ["TARGET_AMBIGUOUS"]
    assert report.violations[0].subject == "first, second"


def test_two_current_interaction_fields_is_one_violation() -> None:
    class Definition:
        target: Annotated[Target, Resource]
        first: Annotated[Interaction, CurrentInteraction]
        second: Annotated[Interaction, CurrentInteraction]

    report = validate_definition(build_registry(Definition))
    assert len(report.violations) == 1
    assert report.violations[0].code == "CURRENT_INTERACTION_AMBIGUOUS"
    assert "CurrentInteraction" in report.violations[0].message


def test_two_current_consumer_fields() -> None:
    class Definition:
        target: Annotated[Target, Resource]
        first: Annotated[Consumer, CurrentConsumer]
        second: Annotated[Consumer, CurrentConsumer]

    assert _codes(Definition) == ["CURRENT_CONSUMER_AMBIGUOUS"]


def test_state_handler_rules() -> None:
    class Definition:
        target: Annotated[Target, Resource]

        @state("private")
        def _private(self) -> None:
            pass

        @state("returns")
        def returns_value(self) -> bool:
            return True

    assert _codes(Definition) == ["STATE_NOT_PUBLIC", "STATE_RETURNS_VALUE"]


def test_request_filter_rules() -> None:
    class Definition:
        target: Annotated[Target, Resource]

        @request_filter
        def _hidden(self, request: requests.PreparedRequest) -> None:
            pass

        @request_filter
        def too_many(self, request: requests.PreparedRequest, extra: str) -> None:
            pass

        @request_filter
        def wrong_type(self, request: str) -> None:
            pass

        @request_filter
        def plain_request(self, request: requests.Request) -> None:
            pass

    assert _codes(Definition) == ["FILTER_NOT_PUBLIC", "FILTER_ARGUMENT_COUNT", "FILTER_ARGUMENT_TYPE"]


def test_all_violations_are_reported_together() -> None:
    class Definition:
        first: Annotated[Interaction, CurrentInteraction]
        second: Annotated[Interaction, CurrentInteraction]

        @state("x")
        def _hidden(self) -> int:
            return 1

        @request_filter
        def no_args(self) -> None:
            pass

    report = validate_definition(build_registry(Definition))
    assert len(report.violations) == 5

    with pytest.raises(DefinitionValidationError) as info:
        report.raise_for_violations()
    assert info.value.violations == report.messages
    for message in report.messages:
        assert message in str(info.value)
    assert str(info.value).count(" * ") == 4


def test_unresolvable_handler_is_reported_with_other_violations() -> None:
    class Definition:
        @state(r"order (\d+)")
        def order(self, order_id: "Decimal") -> None:
            pass

        @state("private")
        def _private(self) -> None:
            pass

    report = validate_definition(build_registry(Definition))
    assert [v.code for v in report.violations] == ["STATE_UNRESOLVED", "STATE_NOT_PUBLIC", "TARGET_MISSING"]

    with pytest.raises(DefinitionValidationError) as info:
        report.raise_for_violations()
    message = str(info.value)
    assert "Cannot resolve annotations of" in message
    assert "Decimal" in message
    assert "Method _private should be public." in message
    assert "none was found" in message


def test_unresolvable_request_filter() -> None:
    class Definition:
        target: Annotated[Target, Resource]

        @request_filter
        def sign(self, request: "HTTPConnection") -> None:
            pass

    assert _codes(Definition) == ["FILTER_UNRESOLVED"]


def test_unresolvable_marked_field() -> None:
    class Definition:
        target: Annotated[Target, Resource]
        interaction: "Annotated[HTTPConnection, CurrentInteraction]"

    report = validate_definition(build_registry(Definition))
    assert [v.code for v in report.violations] == ["FIELD_UNRESOLVED"]
    assert report.violations[0].subject == "interaction"
