"""Capabilities of the target collaborator that replays interactions."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pact_provider_runtime.schema import Consumer, Interaction


@runtime_checkable
class Target(Protocol):
    """Sends an interaction's request to the provider and asserts its response."""

    def test_interaction(self, consumer: Consumer, interaction: Interaction) -> None: ...


@runtime_checkable
class DefinitionAwareTarget(Protocol):
    """Target that needs the test definition, e.g. to run its request filters."""

    def set_test_definition(self, definition: Any, instance: Any) -> None: ...


@runtime_checkable
class InteractionAwareTarget(Protocol):
    """Target that is told which consumer and interaction are being verified."""

    def set_consumer(self, consumer: Consumer) -> None: ...

    def set_interaction(self, interaction: Interaction) -> None: ...


def is_target_type(annotation: Any) -> bool:
    """True if a field annotation names a class implementing ``Target``."""
    if annotation is Target:
        return True
    return isinstance(annotation, type) and issubclass(annotation, Target)
