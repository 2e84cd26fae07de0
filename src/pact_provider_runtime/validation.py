"""Structural validation of provider test definitions.

``validate_definition`` never raises; it evaluates every rule and returns a
``ValidationReport``. Callers decide whether to stop, normally through
``ValidationReport.raise_for_violations()``.

Rules:

1. ``@state`` handlers are public and return nothing.
2. ``@request_filter`` methods are public and take a single HTTP request.
3. Exactly one ``Resource`` field implements ``Target``.
4. At most one ``CurrentInteraction`` field.
5. At most one ``CurrentConsumer`` field.
6. Annotations of handlers, filters and marked fields can be evaluated.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any

import requests
from pydantic import BaseModel, ConfigDict, Field

from pact_provider_runtime.binding import unwrap_optional
from pact_provider_runtime.registry import DefinitionRegistry
from pact_provider_runtime.schema import DefinitionValidationError

logger = logging.getLogger(__name__)

_REQUEST_TYPES = (requests.Request, requests.PreparedRequest)
_REQUEST_TYPE_NAME = "requests.PreparedRequest"


class ValidationViolation(BaseModel):
    """A single structural defect of a test definition."""

    model_config = ConfigDict(frozen=True)

    code: str
    subject: str
    message: str


class ValidationReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    definition: str
    violations: list[ValidationViolation] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.violations

    @property
    def messages(self) -> list[str]:
        return [violation.message for violation in self.violations]

    def raise_for_violations(self) -> None:
        if self.violations:
            raise DefinitionValidationError(self.messages)


def _is_request_type(annotation: Any) -> bool:
    annotation = unwrap_optional(annotation)
    if annotation is inspect.Parameter.empty or annotation is Any:
        return True
    return isinstance(annotation, type) and issubclass(annotation, _REQUEST_TYPES)


def validate_definition(registry: DefinitionRegistry) -> ValidationReport:
    """Check a test definition's handlers, filters and context fields."""
    violations: list[ValidationViolation] = []

    def add(code: str, subject: str, message: str) -> None:
        logger.error(message)
        violations.append(ValidationViolation(code=code, subject=subject, message=message))

    # Rule 1: state handlers
    for handler in registry.state_handlers:
        if handler.resolution_error is not None:
            add(
                "STATE_UNRESOLVED",
                handler.name,
                f"Cannot resolve annotations of {handler.owner}.{handler.name}: "
                f"{handler.resolution_error}",
            )
        if not handler.public:
            add("STATE_NOT_PUBLIC", handler.name, f"Method {handler.name} should be public.")
        if handler.returns not in (inspect.Signature.empty, None, type(None)):
            add(
                "STATE_RETURNS_VALUE",
                handler.name,
                f"Method {handler.name} should return None",
            )

    # Rule 2: request filters
    for request_filter in registry.request_filters:
        if request_filter.resolution_error is not None:
            add(
                "FILTER_UNRESOLVED",
                request_filter.name,
                f"Cannot resolve annotations of {request_filter.owner}.{request_filter.name}: "
                f"{request_filter.resolution_error}",
            )
        if not request_filter.public:
            add(
                "FILTER_NOT_PUBLIC",
                request_filter.name,
                f"Method {request_filter.name} annotated with @request_filter should be public.",
            )
        if len(request_filter.parameters) != 1:
            add(
                "FILTER_ARGUMENT_COUNT",
                request_filter.name,
                f"Method {request_filter.name} should take only a single {_REQUEST_TYPE_NAME} parameter",
            )
        elif not _is_request_type(request_filter.parameters[0].annotation):
            add(
                "FILTER_ARGUMENT_TYPE",
                request_filter.name,
                f"Method {request_filter.name} should take only {_REQUEST_TYPE_NAME} parameter",
            )

    # Rule 6: marked fields
    for field in registry.unresolved_fields:
        add(
            "FIELD_UNRESOLVED",
            field.name,
            f"Cannot resolve annotation of field {field.owner}.{field.name}: {field.error}",
        )

    # Rule 3: target field
    targets = registry.fields_for("target")
    if len(targets) > 1:
        add(
            "TARGET_AMBIGUOUS",
            ", ".join(item.name for item in targets),
            "Test should have one field annotated with Resource of type Target",
        )
    elif not targets:
        add(
            "TARGET_MISSING",
            "<fields>",
            "Field annotated with Resource should implement Target but none was found",
        )

    # Rules 4-5: context fields
    for role, marker, type_name in (
        ("current_interaction", "CurrentInteraction", "Interaction"),
        ("current_consumer", "CurrentConsumer", "Consumer"),
    ):
        candidates = registry.fields_for(role)
        if len(candidates) > 1:
            add(
                f"{role.upper()}_AMBIGUOUS",
                ", ".join(item.name for item in candidates),
                f"Only one field annotated with {marker} of type {type_name} should be present",
            )

    return ValidationReport(definition=registry.definition.__qualname__, violations=violations)
