"""Resolution of provider states to state-handler invocations."""

from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from pact_provider_runtime.binding import bind_arguments
from pact_provider_runtime.patterns import first_match, matches
from pact_provider_runtime.registry import BindingMode, DefinitionRegistry, StateHandlerDescriptor
from pact_provider_runtime.schema import (
    ArgumentCountMismatch,
    Interaction,
    InvocationFailure,
    ProviderState,
)

logger = logging.getLogger(__name__)


class StateInvocation(BaseModel):
    """A fully bound call of one state handler for one provider state."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    handler: StateHandlerDescriptor
    state_name: str
    mode: BindingMode
    pattern: str | None = None
    arguments: tuple[Any, ...] = Field(default_factory=tuple)


def matching_handlers(registry: DefinitionRegistry, state_name: str) -> list[StateHandlerDescriptor]:
    """All handlers whose patterns match the state name, in discovery order."""
    return [handler for handler in registry.state_handlers if matches(handler.patterns, state_name)]


def bind_state(handler: StateHandlerDescriptor, state: ProviderState) -> StateInvocation:
    """Choose the binding mode of a handler and bind its arguments for a state."""
    mode = handler.binding_mode

    if mode == "none":
        return StateInvocation(handler=handler, state_name=state.name, mode=mode)

    if mode == "map":
        # The params mapping is passed through untouched.
        return StateInvocation(
            handler=handler, state_name=state.name, mode=mode, arguments=(state.params,)
        )

    expected = len(handler.parameters)
    match = first_match(handler.patterns, state.name)
    if match is None:
        raise ArgumentCountMismatch(state.name, None, expected, 0)
    if len(match.arguments) != expected:
        raise ArgumentCountMismatch(state.name, match.pattern, expected, len(match.arguments))

    arguments = bind_arguments(
        match.arguments,
        handler.parameters,
        state_name=state.name,
        pattern=match.pattern,
    )
    return StateInvocation(
        handler=handler,
        state_name=state.name,
        mode=mode,
        pattern=match.pattern,
        arguments=tuple(arguments),
    )


def resolve_state(registry: DefinitionRegistry, state: ProviderState) -> list[StateInvocation]:
    """Resolve and bind every handler that applies to a provider state."""
    handlers = matching_handlers(registry, state.name)
    if not handlers:
        logger.warning("No state handler matches provider state '%s'", state.name)
    return [bind_state(handler, state) for handler in handlers]


def invoke(invocation: StateInvocation, instance: Any) -> None:
    """Call a bound state handler on the test instance."""
    method = getattr(instance, invocation.handler.name)
    logger.debug(
        "Applying provider state '%s' with %s(%s)",
        invocation.state_name,
        invocation.handler.name,
        invocation.mode,
    )
    try:
        method(*invocation.arguments)
    except Exception as exc:
        raise InvocationFailure(
            f"State handler {invocation.handler.owner}.{invocation.handler.name} failed "
            f"for provider state '{invocation.state_name}': {exc}",
            target=invocation.handler.name,
            state_name=invocation.state_name,
        ) from exc


def apply_provider_states(
    registry: DefinitionRegistry,
    instance: Any,
    interaction: Interaction,
    on_applied: Callable[[StateInvocation], None] | None = None,
) -> list[StateInvocation]:
    """Apply every provider state of an interaction, in order, failing fast.

    ``on_applied`` is called after each handler returns, before the next one runs.
    """
    applied: list[StateInvocation] = []
    for state in interaction.provider_states:
        for invocation in resolve_state(registry, state):
            invoke(invocation, instance)
            applied.append(invocation)
            if on_applied is not None:
                on_applied(invocation)
    return applied
