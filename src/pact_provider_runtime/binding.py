"""Conversion of captured state-name tokens into typed handler arguments."""

from __future__ import annotations

import collections.abc
import inspect
import re
from typing import Any, Sequence, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict

from pact_provider_runtime.schema import TypeConversionError, UnsupportedParameterType

_INT_LITERAL = re.compile(r"[+-]?\d+")
_FLOAT_LITERAL = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)

_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)
_SEQUENCE_ORIGINS = (
    list,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Collection,
    collections.abc.Iterable,
)


class HandlerParameter(BaseModel):
    """A declared positional parameter of a state handler."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    annotation: Any = inspect.Parameter.empty


def unwrap_optional(annotation: Any) -> Any:
    if get_origin(annotation) is Union or type(annotation).__name__ == "UnionType":
        members = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def is_mapping_type(annotation: Any) -> bool:
    """True for ``dict``, ``Mapping`` and their parameterized forms."""
    annotation = unwrap_optional(annotation)
    origin = get_origin(annotation) or annotation
    return isinstance(origin, type) and issubclass(origin, _MAPPING_ORIGINS)


def _collection_factory(annotation: Any) -> type | None:
    """Return list/tuple when annotation is a collection of strings, else None."""
    origin = get_origin(annotation) or annotation
    if not isinstance(origin, type) or issubclass(origin, (str, bytes)):
        return None

    args = get_args(annotation)
    if origin is tuple:
        if args and not (len(args) == 2 and args[1] is Ellipsis and args[0] is str):
            return None
        return tuple
    if not issubclass(origin, _SEQUENCE_ORIGINS) or issubclass(origin, _MAPPING_ORIGINS):
        return None
    if args and args != (str,):
        return None
    if origin in (set, frozenset) or issubclass(origin, collections.abc.Set):
        return None
    return list


def split_collection(token: str) -> list[str]:
    """Split a captured token on commas and trim every element.

    Empty tokens between adjacent commas are skipped; a blank element such as
    the middle of ``"a, ,b"`` is kept as an empty string.
    """
    return [piece.strip() for piece in token.split(",") if piece]


def bind_argument(
    token: str | None,
    annotation: Any,
    *,
    state_name: str | None = None,
    pattern: str | None = None,
    parameter_index: int | None = None,
) -> Any:
    """Convert one captured token to the handler's declared parameter type.

    Unannotated parameters receive the raw token.
    """
    where = {"state_name": state_name, "pattern": pattern, "parameter_index": parameter_index}
    annotation = unwrap_optional(annotation)

    if annotation is inspect.Parameter.empty or annotation is Any or annotation is str:
        return token

    # bool is an int subclass but has no literal form in a state name.
    if annotation is bool:
        raise UnsupportedParameterType(annotation, **where)

    if annotation is int:
        if token is None or not _INT_LITERAL.fullmatch(token):
            raise TypeConversionError(str(token), int, **where)
        return int(token)

    if annotation is float:
        if token is None or not _FLOAT_LITERAL.fullmatch(token):
            raise TypeConversionError(str(token), float, **where)
        return float(token)

    factory = _collection_factory(annotation)
    if factory is not None:
        elements = split_collection(token) if token is not None else []
        return factory(elements)

    raise UnsupportedParameterType(annotation, **where)


def bind_arguments(
    tokens: Sequence[str | None],
    parameters: Sequence[HandlerParameter],
    *,
    state_name: str | None = None,
    pattern: str | None = None,
) -> list[Any]:
    """Bind captured tokens positionally; caller guarantees equal lengths."""
    return [
        bind_argument(
            token,
            parameter.annotation,
            state_name=state_name,
            pattern=pattern,
            parameter_index=index,
        )
        for index, (token, parameter) in enumerate(zip(tokens, parameters))
    ]
