"""Verification engine: replays every contract interaction against the provider."""

from __future__ import annotations

import logging
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field

from pact_provider_runtime.adapters.targets import DefinitionAwareTarget, InteractionAwareTarget
from pact_provider_runtime.events import NullEmitter, VerificationEventEmitter
from pact_provider_runtime.registry import DefinitionRegistry, build_registry
from pact_provider_runtime.resolver import apply_provider_states
from pact_provider_runtime.schema import (
    Consumer,
    Contract,
    Interaction,
    InvocationFailure,
    ProviderRuntimeError,
)
from pact_provider_runtime.sources import ContractSource
from pact_provider_runtime.validation import validate_definition

logger = logging.getLogger(__name__)

TARGET = "target"
CURRENT_CONSUMER = "current_consumer"
CURRENT_INTERACTION = "current_interaction"


class ExecutionContext:
    """Named slots handed to the test body for each interaction."""

    SLOTS = (TARGET, CURRENT_CONSUMER, CURRENT_INTERACTION)

    def __init__(self, registry: DefinitionRegistry, instance: Any) -> None:
        self.registry = registry
        self.instance = instance
        self._slots: dict[str, Any] = dict.fromkeys(self.SLOTS)

    def get(self, slot: str) -> Any:
        if slot not in self._slots:
            raise KeyError(f"Unknown execution context slot: {slot}")
        return self._slots[slot]

    def set(self, slot: str, value: Any) -> None:
        if slot not in self._slots:
            raise KeyError(f"Unknown execution context slot: {slot}")
        self._slots[slot] = value

    @property
    def definition(self) -> type:
        return self.registry.definition

    @property
    def target(self) -> Any:
        return self._slots[TARGET]

    @property
    def consumer(self) -> Consumer | None:
        return self._slots[CURRENT_CONSUMER]

    @property
    def interaction(self) -> Interaction | None:
        return self._slots[CURRENT_INTERACTION]


TestBody = Callable[[ExecutionContext], None]
TargetProvider = Callable[[], Any]


class VerifiedInteraction(BaseModel):
    model_config = ConfigDict(frozen=True)

    consumer: str
    description: str
    provider_states: list[str] = Field(default_factory=list)


class VerificationSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    definition: str
    contracts: int = 0
    interactions: int = 0
    verified: list[VerifiedInteraction] = Field(default_factory=list)


def verify_with_target(context: ExecutionContext) -> None:
    """Default test body: let the target replay the interaction and assert the response."""
    context.target.test_interaction(context.consumer, context.interaction)


def _fetch_target(
    registry: DefinitionRegistry,
    instance: Any,
    target_provider: TargetProvider | None,
) -> Any:
    target_field = registry.field_for("target")
    if target_provider is not None:
        target = target_provider()
        if target_field is not None:
            setattr(instance, target_field.name, target)
    else:
        target = getattr(instance, target_field.name, None) if target_field is not None else None

    if target is None:
        raise ProviderRuntimeError(
            f"No target available for {registry.definition.__qualname__}; "
            f"pass target_provider or assign the Resource field"
        )
    return target


def _verify_interaction(
    registry: DefinitionRegistry,
    instance: Any,
    context: ExecutionContext,
    consumer: Consumer,
    interaction: Interaction,
    proceed: TestBody,
    target_provider: TargetProvider | None,
    emitter: VerificationEventEmitter,
) -> None:
    # Provider states first; any failure aborts the run.
    apply_provider_states(
        registry,
        instance,
        interaction,
        on_applied=lambda invocation: emitter.emit_provider_state_applied(
            consumer, invocation.state_name, invocation.handler.name
        ),
    )

    target = _fetch_target(registry, instance, target_provider)
    if isinstance(target, DefinitionAwareTarget):
        target.set_test_definition(registry, instance)
    if isinstance(target, InteractionAwareTarget):
        target.set_consumer(consumer)
        target.set_interaction(interaction)

    interaction_field = registry.field_for("current_interaction")
    if interaction_field is not None:
        setattr(instance, interaction_field.name, interaction)

    context.set(TARGET, target)
    context.set(CURRENT_INTERACTION, interaction)

    logger.info("Verifying '%s' from consumer %s", interaction.description, consumer.name)
    try:
        proceed(context)
    except Exception as exc:
        raise InvocationFailure(
            f"Verification of '{interaction.description}' from consumer {consumer.name} failed: {exc}",
            target=interaction.description,
        ) from exc


def verify_contracts(
    instance: Any,
    source: ContractSource,
    proceed: TestBody | None = None,
    target_provider: TargetProvider | None = None,
    registry: DefinitionRegistry | None = None,
    emitter: VerificationEventEmitter | None = None,
) -> VerificationSummary:
    """Verify every interaction of every contract against a provider test instance.

    The test definition is validated first; a non-empty report raises
    ``DefinitionValidationError`` before contracts are retrieved. Afterwards
    each interaction gets its provider states applied, its context propagated
    and ``proceed`` called exactly once. The first failure aborts the run.
    """
    emitter = emitter or NullEmitter()
    proceed = proceed or verify_with_target
    registry = registry or build_registry(type(instance))

    validate_definition(registry).raise_for_violations()

    definition_name = registry.definition.__qualname__
    contracts: list[Contract] = list(source.retrieve())
    if not contracts:
        logger.warning("No contracts read for execution")
        return VerificationSummary(definition=definition_name)

    emitter.emit_verification_started(definition_name, len(contracts))
    consumer_field = registry.field_for("current_consumer")
    context = ExecutionContext(registry, instance)
    verified: list[VerifiedInteraction] = []

    for contract in contracts:
        consumer = contract.consumer
        emitter.emit_contract_started(consumer, contract.provider.name)
        if consumer_field is not None:
            setattr(instance, consumer_field.name, consumer)
        context.set(CURRENT_CONSUMER, consumer)

        for interaction in contract.interactions:
            try:
                _verify_interaction(
                    registry, instance, context, consumer, interaction,
                    proceed, target_provider, emitter,
                )
            except ProviderRuntimeError as exc:
                emitter.emit_interaction_failed(consumer, interaction, str(exc))
                raise
            emitter.emit_interaction_verified(consumer, interaction)
            verified.append(
                VerifiedInteraction(
                    consumer=consumer.name,
                    description=interaction.description,
                    provider_states=[state.name for state in interaction.provider_states],
                )
            )

    emitter.emit_verification_completed(definition_name, len(verified))
    return VerificationSummary(
        definition=definition_name,
        contracts=len(contracts),
        interactions=len(verified),
        verified=verified,
    )
