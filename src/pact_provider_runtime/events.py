"""Verification event emission interface and persistence."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

from pact_provider_runtime.schema import Consumer, Interaction

# ---------------------------------------------------------------------------
# Event types
# ---------------------------------------------------------------------------

VERIFICATION_STARTED = "VerificationStarted"
CONTRACT_STARTED = "ContractStarted"
PROVIDER_STATE_APPLIED = "ProviderStateApplied"
INTERACTION_VERIFIED = "InteractionVerified"
INTERACTION_FAILED = "InteractionFailed"
VERIFICATION_COMPLETED = "VerificationCompleted"


# ---------------------------------------------------------------------------
# VerificationEventEmitter protocol
# ---------------------------------------------------------------------------

class VerificationEventEmitter(Protocol):
    """Interface for verification progress events."""

    def emit_verification_started(self, definition: str, contract_count: int) -> None: ...

    def emit_contract_started(self, consumer: Consumer, provider: str) -> None: ...

    def emit_provider_state_applied(self, consumer: Consumer, state_name: str, handler: str) -> None: ...

    def emit_interaction_verified(self, consumer: Consumer, interaction: Interaction) -> None: ...

    def emit_interaction_failed(self, consumer: Consumer, interaction: Interaction, error: str) -> None: ...

    def emit_verification_completed(self, definition: str, interaction_count: int) -> None: ...


# ---------------------------------------------------------------------------
# NullEmitter
# ---------------------------------------------------------------------------

class NullEmitter:
    """No-op emitter, the default."""

    def emit_verification_started(self, definition: str, contract_count: int) -> None:
        pass

    def emit_contract_started(self, consumer: Consumer, provider: str) -> None:
        pass

    def emit_provider_state_applied(self, consumer: Consumer, state_name: str, handler: str) -> None:
        pass

    def emit_interaction_verified(self, consumer: Consumer, interaction: Interaction) -> None:
        pass

    def emit_interaction_failed(self, consumer: Consumer, interaction: Interaction, error: str) -> None:
        pass

    def emit_verification_completed(self, definition: str, interaction_count: int) -> None:
        pass


# ---------------------------------------------------------------------------
# JsonlEventLog (append-only JSONL persistence)
# ---------------------------------------------------------------------------

class JsonlEventLog:
    """Append-only JSONL log. Writes dicts with sort_keys for determinism."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def append(self, record: dict[str, Any]) -> None:
        """Append a single record as a JSON line."""
        line = json.dumps(record, sort_keys=True, separators=(",", ":"), default=str)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "a", encoding="utf-8") as handle:
            handle.write(line + "\n")

    def read_all(self) -> list[dict[str, Any]]:
        """Read all records from the log file."""
        if not self._path.exists():
            return []
        records: list[dict[str, Any]] = []
        with open(self._path, "r", encoding="utf-8") as handle:
            for line in handle:
                stripped = line.strip()
                if stripped:
                    records.append(json.loads(stripped))
        return records


class JsonlEventEmitter:
    """Emitter that records every event into a ``JsonlEventLog``."""

    def __init__(self, log: JsonlEventLog) -> None:
        self.log = log

    def _append(self, event_type: str, payload: dict[str, Any]) -> None:
        self.log.append(
            {
                "event_type": event_type,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "payload": payload,
            }
        )

    def emit_verification_started(self, definition: str, contract_count: int) -> None:
        self._append(VERIFICATION_STARTED, {"definition": definition, "contract_count": contract_count})

    def emit_contract_started(self, consumer: Consumer, provider: str) -> None:
        self._append(CONTRACT_STARTED, {"consumer": consumer.name, "provider": provider})

    def emit_provider_state_applied(self, consumer: Consumer, state_name: str, handler: str) -> None:
        self._append(
            PROVIDER_STATE_APPLIED,
            {"consumer": consumer.name, "state": state_name, "handler": handler},
        )

    def emit_interaction_verified(self, consumer: Consumer, interaction: Interaction) -> None:
        self._append(
            INTERACTION_VERIFIED,
            {"consumer": consumer.name, "description": interaction.description},
        )

    def emit_interaction_failed(self, consumer: Consumer, interaction: Interaction, error: str) -> None:
        self._append(
            INTERACTION_FAILED,
            {"consumer": consumer.name, "description": interaction.description, "error": error},
        )

    def emit_verification_completed(self, definition: str, interaction_count: int) -> None:
        self._append(
            VERIFICATION_COMPLETED,
            {"definition": definition, "interaction_count": interaction_count},
        )
