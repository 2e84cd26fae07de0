"""YAML verification configuration and contract source construction."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from pact_provider_runtime.events import JsonlEventEmitter, JsonlEventLog, NullEmitter, VerificationEventEmitter
from pact_provider_runtime.expressions import parse_expression
from pact_provider_runtime.schema import ConfigurationError
from pact_provider_runtime.sources import (
    BrokerContractSource,
    CompositeContractSource,
    ContractSource,
    FolderContractSource,
)

ENV_CONTRACT_PATHS = "PACT_PROVIDER_CONTRACT_PATHS"
DEFAULT_CONFIG_FILE = "pact-provider.yaml"


class SourceConfig(BaseModel):
    """One contract source entry; keys other than ``type`` are its options."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str = Field(..., min_length=1)

    @property
    def options(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class VerificationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: str = Field(..., min_length=1)
    sources: list[SourceConfig] = Field(default_factory=list)
    event_log: str | None = None


def _split_env_paths(value: str) -> list[Path]:
    if not value.strip():
        return []
    return [Path(chunk) for chunk in value.split(os.pathsep) if chunk.strip()]


def load_verification_config(path: Path | None = None) -> VerificationConfig:
    """Load verification settings from a YAML file (default: ./pact-provider.yaml)."""
    path = path or Path.cwd() / DEFAULT_CONFIG_FILE
    if not path.exists():
        raise ConfigurationError(f"Verification config not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Verification config is not valid YAML: {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Verification config must be a mapping: {path}")

    try:
        return VerificationConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid verification config {path}: {exc}") from exc


def _resolve(value: Any, environ: Mapping[str, str] | None) -> Any:
    if isinstance(value, str):
        return parse_expression(value, environ)
    if isinstance(value, list):
        return [_resolve(item, environ) for item in value]
    return value


def _build_source(entry: SourceConfig, provider: str, base_dir: Path, environ: Mapping[str, str] | None) -> ContractSource:
    options = {key: _resolve(value, environ) for key, value in entry.options.items()}

    if entry.type == "folder":
        if not isinstance(options.get("path"), str):
            raise ConfigurationError("Folder contract source requires a 'path' string")
        return FolderContractSource(base_dir / options["path"], provider=provider)

    if entry.type == "pactbroker":
        source = BrokerContractSource(provider=provider)
        source.configure(options)
        return source

    raise ConfigurationError(f"Unknown contract source type: {entry.type}")


def build_contract_source(
    config: VerificationConfig,
    base_dir: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ContractSource:
    """Build the contract source described by a configuration.

    Folders listed in ``PACT_PROVIDER_CONTRACT_PATHS`` come first, followed by
    the configured sources in file order.
    """
    env = os.environ if environ is None else environ
    base_dir = base_dir or Path.cwd()

    sources: list[ContractSource] = [
        FolderContractSource(path, provider=config.provider)
        for path in _split_env_paths(env.get(ENV_CONTRACT_PATHS, ""))
    ]
    sources.extend(_build_source(entry, config.provider, base_dir, env) for entry in config.sources)

    if not sources:
        raise ConfigurationError(
            f"No contract sources configured for provider {config.provider}; "
            f"add 'sources' or set {ENV_CONTRACT_PATHS}"
        )
    if len(sources) == 1:
        return sources[0]
    return CompositeContractSource(sources)


def build_emitter(config: VerificationConfig, base_dir: Path | None = None) -> VerificationEventEmitter:
    """JSONL emitter when ``event_log`` is configured, otherwise a no-op emitter."""
    if not config.event_log:
        return NullEmitter()
    return JsonlEventEmitter(JsonlEventLog((base_dir or Path.cwd()) / config.event_log))
