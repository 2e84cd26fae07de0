"""Core runtime types, error taxonomy and pact document loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ProviderRuntimeError(RuntimeError):
    """Raised for verification loading/execution errors."""


class DefinitionValidationError(ProviderRuntimeError):
    """A test definition violates one or more structural rules.

    Raised before any contract is retrieved or any handler is called. The
    message joins every violation with `` * `` so a single run reports all
    defects at once.
    """

    def __init__(self, violations: list[str]) -> None:
        self.violations = list(violations)
        super().__init__(" * ".join(self.violations))


class BindingError(ProviderRuntimeError):
    """Base for errors raised while binding handler arguments."""

    def __init__(
        self,
        message: str,
        *,
        state_name: str | None = None,
        pattern: str | None = None,
        parameter_index: int | None = None,
    ) -> None:
        self.state_name = state_name
        self.pattern = pattern
        self.parameter_index = parameter_index
        super().__init__(message)


class ArgumentCountMismatch(BindingError):
    def __init__(self, state_name: str, pattern: str | None, expected: int, actual: int) -> None:
        self.expected = expected
        self.actual = actual
        if pattern is None:
            message = (
                f"Consumer state '{state_name}' has no capturing pattern on the provider "
                f"handler but the handler declares {expected} argument(s)"
            )
        else:
            message = (
                f"Consumer state '{state_name}' matches with provider state '{pattern}' "
                f"but provider method contains {expected} arguments instead of matching {actual}"
            )
        super().__init__(message, state_name=state_name, pattern=pattern)


class TypeConversionError(BindingError):
    def __init__(
        self,
        token: str,
        target_type: type,
        *,
        state_name: str | None = None,
        pattern: str | None = None,
        parameter_index: int | None = None,
    ) -> None:
        self.token = token
        self.target_type = target_type
        where = f" (state '{state_name}', argument {parameter_index})" if state_name else ""
        super().__init__(
            f"Cannot convert '{token}' to {target_type.__name__}{where}",
            state_name=state_name,
            pattern=pattern,
            parameter_index=parameter_index,
        )


class UnsupportedParameterType(BindingError):
    def __init__(
        self,
        parameter_type: Any,
        *,
        state_name: str | None = None,
        pattern: str | None = None,
        parameter_index: int | None = None,
    ) -> None:
        self.parameter_type = parameter_type
        super().__init__(
            f"Argument {parameter_index} is of type {parameter_type!r} and it is not "
            f"a number nor a string or a collection of strings",
            state_name=state_name,
            pattern=pattern,
            parameter_index=parameter_index,
        )


class InvocationFailure(ProviderRuntimeError):
    """A state handler or the delegated test body raised.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, message: str, *, target: str, state_name: str | None = None) -> None:
        self.target = target
        self.state_name = state_name
        super().__init__(message)


class ConfigurationError(ProviderRuntimeError):
    """A contract source or configuration file is missing required settings."""


class ContractSourceError(ProviderRuntimeError):
    """Contracts could not be retrieved or parsed."""


# ---------------------------------------------------------------------------
# Pact data model
# ---------------------------------------------------------------------------

class Consumer(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)


class Provider(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)


class ProviderState(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    params: dict[str, Any] = Field(default_factory=dict)


class Interaction(BaseModel):
    """One request/response exchange plus the provider states it assumes."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    description: str
    provider_states: list[ProviderState] = Field(default_factory=list, alias="providerStates")
    request: dict[str, Any] = Field(default_factory=dict)
    response: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _normalize_v2_provider_state(cls, data: Any) -> Any:
        # Pact v2 documents carry a single "providerState" string.
        if isinstance(data, dict) and "providerState" in data:
            data = dict(data)
            legacy = data.pop("providerState")
            if legacy and "providerStates" not in data and "provider_states" not in data:
                data["providerStates"] = [{"name": legacy}]
        return data


class Contract(BaseModel):
    model_config = ConfigDict(frozen=True)

    consumer: Consumer
    provider: Provider
    interactions: list[Interaction] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Pact loading
# ---------------------------------------------------------------------------

def parse_contract(raw: Any, origin: str = "<memory>") -> Contract:
    """Validate a decoded pact document into a Contract."""
    if not isinstance(raw, dict):
        raise ContractSourceError(f"Pact document must be a mapping: {origin}")
    try:
        return Contract.model_validate(raw)
    except ValidationError as exc:
        raise ContractSourceError(f"Invalid pact document {origin}: {exc}") from exc


def load_contract_file(path: Path) -> Contract:
    """Load a contract from a pact JSON file."""
    if not path.exists():
        raise ContractSourceError(f"Pact file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        try:
            raw = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ContractSourceError(f"Pact file is not valid JSON: {path}: {exc}") from exc

    return parse_contract(raw, origin=str(path))
