"""Declarations used by provider test definitions.

A test definition is a plain class. State handlers and request filters are
declared with decorators; context fields are declared with
``typing.Annotated`` markers::

    class OrderProviderTest:
        target: Annotated[Target, Resource]
        interaction: Annotated[Interaction, CurrentInteraction]
        consumer: Annotated[Consumer, CurrentConsumer]

        @state("order (\\d+) exists")
        def order_exists(self, order_id: int) -> None:
            ...

        @request_filter
        def add_auth_header(self, request: requests.PreparedRequest) -> None:
            request.headers["Authorization"] = "Bearer test"
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

STATE_PATTERNS_ATTR = "__pact_state_patterns__"
REQUEST_FILTER_ATTR = "__pact_request_filter__"

F = TypeVar("F", bound=Callable[..., Any])


class _FieldMarker:
    def __init__(self, name: str, role: str) -> None:
        self.name = name
        self.role = role

    def __repr__(self) -> str:
        return self.name


#: Externally supplied resource; the target collaborator is one.
Resource = _FieldMarker("Resource", "target")
#: Receives the interaction being verified.
CurrentInteraction = _FieldMarker("CurrentInteraction", "current_interaction")
#: Receives the consumer of the contract being verified.
CurrentConsumer = _FieldMarker("CurrentConsumer", "current_consumer")

FIELD_MARKERS = (Resource, CurrentInteraction, CurrentConsumer)


def _unwrap(func: Any) -> Any:
    return func.__func__ if isinstance(func, (staticmethod, classmethod)) else func


def state(*patterns: str) -> Callable[[F], F]:
    """Declare a provider-state handler for one or more literal or regex patterns."""
    if not patterns:
        raise ValueError("@state requires at least one state name or pattern")
    for pattern in patterns:
        if not isinstance(pattern, str) or not pattern:
            raise ValueError(f"@state patterns must be non-empty strings, got {pattern!r}")

    def decorator(func: F) -> F:
        target = _unwrap(func)
        existing = getattr(target, STATE_PATTERNS_ATTR, ())
        # Stacked decorators apply bottom-up; keep source order.
        setattr(target, STATE_PATTERNS_ATTR, tuple(patterns) + tuple(existing))
        return func

    return decorator


def request_filter(func: F) -> F:
    """Declare a method that adjusts the outgoing provider request."""
    setattr(_unwrap(func), REQUEST_FILTER_ATTR, True)
    return func
