"""Public API for pact-provider-runtime."""

from pact_provider_runtime.adapters.targets import DefinitionAwareTarget, InteractionAwareTarget, Target
from pact_provider_runtime.binding import HandlerParameter, bind_argument, bind_arguments, split_collection
from pact_provider_runtime.config import (
    VerificationConfig,
    build_contract_source,
    build_emitter,
    load_verification_config,
)
from pact_provider_runtime.declarations import CurrentConsumer, CurrentInteraction, Resource, request_filter, state
from pact_provider_runtime.engine import (
    ExecutionContext,
    VerificationSummary,
    VerifiedInteraction,
    verify_contracts,
    verify_with_target,
)
from pact_provider_runtime.events import JsonlEventEmitter, JsonlEventLog, NullEmitter, VerificationEventEmitter
from pact_provider_runtime.expressions import parse_expression, parse_list_expression
from pact_provider_runtime.patterns import PatternMatch, first_match, matches
from pact_provider_runtime.registry import (
    ContextField,
    DefinitionRegistry,
    RequestFilterDescriptor,
    StateHandlerDescriptor,
    UnresolvedField,
    build_registry,
)
from pact_provider_runtime.resolver import StateInvocation, apply_provider_states, resolve_state
from pact_provider_runtime.schema import (
    ArgumentCountMismatch,
    BindingError,
    ConfigurationError,
    Consumer,
    Contract,
    ContractSourceError,
    DefinitionValidationError,
    Interaction,
    InvocationFailure,
    Provider,
    ProviderRuntimeError,
    ProviderState,
    TypeConversionError,
    UnsupportedParameterType,
    load_contract_file,
    parse_contract,
)
from pact_provider_runtime.sources import (
    BrokerContractSource,
    BrokerSettings,
    CompositeContractSource,
    ContractSource,
    FolderContractSource,
    StaticContractSource,
)
from pact_provider_runtime.validation import ValidationReport, ValidationViolation, validate_definition

__all__ = [
    # Pact data model
    "Consumer",
    "Contract",
    "Interaction",
    "Provider",
    "ProviderState",
    "load_contract_file",
    "parse_contract",
    # Errors
    "ArgumentCountMismatch",
    "BindingError",
    "ConfigurationError",
    "ContractSourceError",
    "DefinitionValidationError",
    "InvocationFailure",
    "ProviderRuntimeError",
    "TypeConversionError",
    "UnsupportedParameterType",
    # Declarations
    "CurrentConsumer",
    "CurrentInteraction",
    "Resource",
    "request_filter",
    "state",
    # Targets
    "DefinitionAwareTarget",
    "InteractionAwareTarget",
    "Target",
    # Matching and binding
    "HandlerParameter",
    "PatternMatch",
    "bind_argument",
    "bind_arguments",
    "first_match",
    "matches",
    "split_collection",
    # Registry and resolution
    "ContextField",
    "DefinitionRegistry",
    "RequestFilterDescriptor",
    "StateHandlerDescriptor",
    "UnresolvedField",
    "StateInvocation",
    "apply_provider_states",
    "build_registry",
    "resolve_state",
    # Validation
    "ValidationReport",
    "ValidationViolation",
    "validate_definition",
    # Engine
    "ExecutionContext",
    "VerificationSummary",
    "VerifiedInteraction",
    "verify_contracts",
    "verify_with_target",
    # Contract sources
    "BrokerContractSource",
    "BrokerSettings",
    "CompositeContractSource",
    "ContractSource",
    "FolderContractSource",
    "StaticContractSource",
    # Configuration
    "VerificationConfig",
    "build_contract_source",
    "build_emitter",
    "load_verification_config",
    "parse_expression",
    "parse_list_expression",
    # Events
    "JsonlEventEmitter",
    "JsonlEventLog",
    "NullEmitter",
    "VerificationEventEmitter",
]
