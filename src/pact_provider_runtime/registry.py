"""Registry of state handlers, request filters and context fields of a test definition.

The registry is built once per test definition by walking its class
hierarchy base-to-derived: members are registered in declaration order,
starting from the most distant ancestor. An override keeps the position of
the member it overrides and resolves to the most-derived implementation.
"""

from __future__ import annotations

import inspect
import logging
import re
import sys
import types
from typing import Annotated, Any, Literal, get_args, get_origin, get_type_hints

from pydantic import BaseModel, ConfigDict, Field

from pact_provider_runtime.adapters.targets import is_target_type
from pact_provider_runtime.binding import HandlerParameter, unwrap_optional, is_mapping_type
from pact_provider_runtime.declarations import (
    FIELD_MARKERS,
    REQUEST_FILTER_ATTR,
    STATE_PATTERNS_ATTR,
)
from pact_provider_runtime.schema import Consumer, Interaction, ProviderRuntimeError

logger = logging.getLogger(__name__)

BindingMode = Literal["none", "map", "regex"]
ContextRole = Literal["target", "current_interaction", "current_consumer"]

_FIELD_TYPES: dict[str, type] = {
    "current_interaction": Interaction,
    "current_consumer": Consumer,
}


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

class StateHandlerDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    owner: str
    patterns: tuple[str, ...] = Field(..., min_length=1)
    parameters: tuple[HandlerParameter, ...] = ()
    returns: Any = inspect.Signature.empty
    resolution_error: str | None = None

    @property
    def public(self) -> bool:
        return not self.name.startswith("_")

    @property
    def binding_mode(self) -> BindingMode:
        if not self.parameters:
            return "none"
        if len(self.parameters) == 1 and is_mapping_type(self.parameters[0].annotation):
            return "map"
        return "regex"


class RequestFilterDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    owner: str
    parameters: tuple[HandlerParameter, ...] = ()
    resolution_error: str | None = None

    @property
    def public(self) -> bool:
        return not self.name.startswith("_")


class ContextField(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    owner: str
    role: ContextRole
    annotation: Any


class UnresolvedField(BaseModel):
    """A marked context field whose annotation could not be evaluated."""

    model_config = ConfigDict(frozen=True)

    name: str
    owner: str
    error: str


class DefinitionRegistry(BaseModel):
    """Everything the engine needs to know about one test definition."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    definition: type
    state_handlers: tuple[StateHandlerDescriptor, ...] = ()
    request_filters: tuple[RequestFilterDescriptor, ...] = ()
    fields: tuple[ContextField, ...] = ()
    unresolved_fields: tuple[UnresolvedField, ...] = ()

    def fields_for(self, role: ContextRole) -> list[ContextField]:
        return [item for item in self.fields if item.role == role]

    def field_for(self, role: ContextRole) -> ContextField | None:
        candidates = self.fields_for(role)
        return candidates[0] if candidates else None

    def apply_request_filters(self, instance: Any, request: Any) -> None:
        """Run every request filter of the definition against an outgoing request."""
        for descriptor in self.request_filters:
            getattr(instance, descriptor.name)(request)


# ---------------------------------------------------------------------------
# Discovery helpers
# ---------------------------------------------------------------------------

def _hierarchy(definition: type) -> list[type]:
    return [klass for klass in reversed(definition.__mro__) if klass is not object]


def _member_names(definition: type) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for klass in _hierarchy(definition):
        for name in vars(klass):
            if name not in seen:
                seen.add(name)
                ordered.append(name)
    return ordered


def _owner(definition: type, name: str) -> str:
    for klass in definition.__mro__:
        if name in vars(klass):
            return klass.__qualname__
    return definition.__qualname__


def _signature(raw: Any) -> tuple[tuple[HandlerParameter, ...], Any, str | None]:
    """Parameters, return annotation and annotation resolution error of a method.

    When annotations cannot be evaluated the parameters are kept by name only,
    and the error is returned for validation to report.
    """
    func = raw.__func__ if isinstance(raw, (staticmethod, classmethod)) else raw
    error: str | None = None
    try:
        hints = get_type_hints(func)
    except (NameError, TypeError) as exc:
        hints, error = {}, str(exc)

    params = list(inspect.signature(func).parameters.values())
    if not isinstance(raw, staticmethod):
        params = params[1:]

    parameters: list[HandlerParameter] = []
    for param in params:
        if param.kind not in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            continue
        fallback = param.annotation if error is None else inspect.Parameter.empty
        parameters.append(HandlerParameter(name=param.name, annotation=hints.get(param.name, fallback)))
    returns = hints.get("return", inspect.Signature.empty)
    return tuple(parameters), returns, error


def _field_type_matches(role: str, annotation: Any) -> bool:
    annotation = unwrap_optional(annotation)
    if role == "target":
        return is_target_type(annotation)
    expected = _FIELD_TYPES[role]
    return isinstance(annotation, type) and issubclass(annotation, expected)


def _declares_marker(annotation: Any) -> bool:
    """True if an annotation, evaluated or not, names one of the field markers."""
    if isinstance(annotation, str):
        return any(re.search(rf"\b{marker.name}\b", annotation) for marker in FIELD_MARKERS)
    if get_origin(annotation) is Annotated:
        return any(item is marker for item in get_args(annotation)[1:] for marker in FIELD_MARKERS)
    return False


def _resolve_field_annotation(klass: type, name: str, annotation: Any) -> Any:
    module = sys.modules.get(klass.__module__)
    holder = types.SimpleNamespace(__annotations__={name: annotation})
    hints = get_type_hints(
        holder,
        globalns=vars(module) if module is not None else {},
        localns=dict(vars(klass)),
        include_extras=True,
    )
    return hints[name]


def _discover_fields(definition: type) -> tuple[tuple[ContextField, ...], tuple[UnresolvedField, ...]]:
    fields: dict[str, ContextField | UnresolvedField | None] = {}
    for klass in _hierarchy(definition):
        for name, raw in inspect.get_annotations(klass).items():
            discovered: ContextField | UnresolvedField | None = None
            try:
                annotation = _resolve_field_annotation(klass, name, raw)
            except (NameError, TypeError) as exc:
                if _declares_marker(raw):
                    discovered = UnresolvedField(name=name, owner=klass.__qualname__, error=str(exc))
                else:
                    logger.debug("Ignoring unresolvable field %s.%s: %s", klass.__qualname__, name, exc)
                fields[name] = discovered
                continue

            if get_origin(annotation) is Annotated:
                base, *metadata = get_args(annotation)
                for marker in FIELD_MARKERS:
                    if any(item is marker for item in metadata) and _field_type_matches(marker.role, base):
                        discovered = ContextField(
                            name=name, owner=klass.__qualname__, role=marker.role, annotation=base
                        )
                        break
            # A redeclared field replaces the inherited one in place.
            fields[name] = discovered
    return (
        tuple(item for item in fields.values() if isinstance(item, ContextField)),
        tuple(item for item in fields.values() if isinstance(item, UnresolvedField)),
    )


# ---------------------------------------------------------------------------
# Registry construction
# ---------------------------------------------------------------------------

def build_registry(definition: type) -> DefinitionRegistry:
    """Discover state handlers, request filters and context fields of a test definition."""
    if not isinstance(definition, type):
        raise ProviderRuntimeError(f"Test definition must be a class, got {definition!r}")

    handlers: list[StateHandlerDescriptor] = []
    filters: list[RequestFilterDescriptor] = []

    for name in _member_names(definition):
        raw = inspect.getattr_static(definition, name)
        func = raw.__func__ if isinstance(raw, (staticmethod, classmethod)) else raw
        if not callable(func):
            continue

        patterns = getattr(func, STATE_PATTERNS_ATTR, None)
        is_filter = getattr(func, REQUEST_FILTER_ATTR, False)
        if not patterns and not is_filter:
            continue

        parameters, returns, error = _signature(raw)
        owner = _owner(definition, name)
        if error is not None:
            logger.debug("Cannot resolve annotations of %s.%s: %s", owner, name, error)
        if patterns:
            handlers.append(
                StateHandlerDescriptor(
                    name=name,
                    owner=owner,
                    patterns=tuple(patterns),
                    parameters=parameters,
                    returns=returns,
                    resolution_error=error,
                )
            )
        if is_filter:
            filters.append(
                RequestFilterDescriptor(
                    name=name, owner=owner, parameters=parameters, resolution_error=error
                )
            )

    fields, unresolved_fields = _discover_fields(definition)
    registry = DefinitionRegistry(
        definition=definition,
        state_handlers=tuple(handlers),
        request_filters=tuple(filters),
        fields=fields,
        unresolved_fields=unresolved_fields,
    )
    logger.debug(
        "Registered %d state handler(s), %d request filter(s) and %d context field(s) for %s",
        len(registry.state_handlers),
        len(registry.request_filters),
        len(registry.fields),
        definition.__qualname__,
    )
    return registry
