"""Tests for event emission infrastructure."""

from pathlib import Path

from pact_provider_runtime.events import JsonlEventEmitter, JsonlEventLog, NullEmitter
from pact_provider_runtime.schema import Consumer, Interaction


def test_null_emitter_is_noop() -> None:
    """NullEmitter methods are callable and do nothing."""
    emitter = NullEmitter()
    consumer = Consumer(name="web")
    interaction = Interaction(description="get orders")

    emitter.emit_verification_started("OrderProviderTest", 1)
    emitter.emit_contract_started(consumer, "order-service")
    emitter.emit_provider_state_applied(consumer, "order 1 exists", "order_exists")
    emitter.emit_interaction_verified(consumer, interaction)
    emitter.emit_interaction_failed(consumer, interaction, "boom")
    emitter.emit_verification_completed("OrderProviderTest", 1)


def test_jsonl_emitter_payloads(tmp_path: Path) -> None:
    log = JsonlEventLog(tmp_path / "events.jsonl")
    emitter = JsonlEventEmitter(log)
    consumer = Consumer(name="web")

    emitter.emit_contract_started(consumer, "order-service")
    emitter.emit_interaction_failed(consumer, Interaction(description="get orders"), "status 500")

    records = log.read_all()
    assert [r["event_type"] for r in records] == ["ContractStarted", "InteractionFailed"]
    assert records[0]["payload"] == {"consumer": "web", "provider": "order-service"}
    assert records[1]["payload"] == {
        "consumer": "web",
        "description": "get orders",
        "error": "status 500",
    }
    assert all("timestamp" in r for r in records)


def test_jsonl_log_append_and_read_roundtrip(tmp_path: Path) -> None:
    """Records appended to JSONL can be read back identically."""
    log = JsonlEventLog(tmp_path / "events.jsonl")

    log.append({"event_type": "A", "data": 1})
    log.append({"event_type": "B", "data": 2})

    records = log.read_all()
    assert len(records) == 2
    assert records[0]["event_type"] == "A"
    assert records[0]["data"] == 1
    assert records[1]["event_type"] == "B"
    assert records[1]["data"] == 2


def test_jsonl_log_sort_keys_determinism(tmp_path: Path) -> None:
    """JSONL output uses sort_keys for deterministic ordering."""
    log = JsonlEventLog(tmp_path / "events.jsonl")

    log.append({"zebra": 1, "alpha": 2, "middle": 3})

    raw_line = (tmp_path / "events.jsonl").read_text().strip()
    # With sort_keys, alpha comes before middle comes before zebra.
    assert raw_line.index('"alpha"') < raw_line.index('"middle"')
    assert raw_line.index('"middle"') < raw_line.index('"zebra"')


def test_jsonl_log_read_empty(tmp_path: Path) -> None:
    """Reading a non-existent log returns empty list."""
    log = JsonlEventLog(tmp_path / "nonexistent.jsonl")
    assert log.read_all() == []
