"""Tests for the append-only event log — sealing, JSONL persistence, integrity."""

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from phasevote.models.voting import Notification, NotificationKind
from phasevote.persistence.event_log import EventLog, EventRecord


TS = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def _event(event_id: str = "EVT-000001", voter: str = "alice") -> EventRecord:
    note = Notification(
        kind=NotificationKind.VOTER_REGISTERED, actor_id="admin",
        payload={"voter_id": voter},
    )
    return EventRecord.from_notification(event_id, note, timestamp_utc=TS)


class TestEventRecord:
    def test_hash_is_deterministic(self) -> None:
        assert _event().event_hash == _event().event_hash
        assert _event().event_hash.startswith("sha256:")

    def test_hash_covers_payload(self) -> None:
        assert _event(voter="alice").event_hash != _event(voter="bob").event_hash

    def test_hash_covers_event_id(self) -> None:
        assert _event("EVT-1").event_hash != _event("EVT-2").event_hash

    def test_from_notification(self) -> None:
        note = Notification(
            kind=NotificationKind.VOTED, actor_id="alice",
            payload={"voter_id": "alice", "proposal_id": 2},
        )
        record = EventRecord.from_notification("EVT-000009", note, timestamp_utc=TS)
        assert record.event_kind is NotificationKind.VOTED
        assert record.payload == {"voter_id": "alice", "proposal_id": 2}
        assert record.timestamp_utc == "2026-03-01T12:00:00Z"

    def test_dict_form_reloads(self) -> None:
        record = _event()
        data = record.to_dict()
        assert data["event_kind"] == "voter_registered"
        assert EventRecord.from_dict(data) == record

    def test_edited_dict_rejected(self) -> None:
        data = _event().to_dict()
        data["actor_id"] = "mallory"
        with pytest.raises(ValueError, match="Integrity check failed"):
            EventRecord.from_dict(data)


class TestEventLog:
    def test_append_in_order(self) -> None:
        log = EventLog()
        log.append(_event("EVT-1"))
        log.append(_event("EVT-2", voter="bob"))
        assert log.count == 2
        assert [e.event_id for e in log.events()] == ["EVT-1", "EVT-2"]

    def test_events_returns_copy(self) -> None:
        log = EventLog()
        log.append(_event("EVT-1"))
        log.events().clear()
        assert log.count == 1

    def test_duplicate_id_rejected(self) -> None:
        log = EventLog()
        log.append(_event("EVT-1"))
        with pytest.raises(ValueError, match="Duplicate event ID"):
            log.append(_event("EVT-1", voter="bob"))
        assert log.count == 1

    def test_duplicate_not_written(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        log = EventLog(storage_path=path)
        log.append(_event("EVT-1"))
        with pytest.raises(ValueError):
            log.append(_event("EVT-1", voter="bob"))
        assert len(path.read_text(encoding="utf-8").splitlines()) == 1

    def test_file_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        log = EventLog(storage_path=path)
        log.append(_event("EVT-1"))
        log.append(_event("EVT-2", voter="bob"))

        reloaded = EventLog(storage_path=path)
        assert reloaded.count == 2
        assert reloaded.events() == log.events()

    def test_blank_lines_skipped(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        EventLog(storage_path=path).append(_event("EVT-1"))
        with path.open("a", encoding="utf-8") as f:
            f.write("\n")
        assert EventLog(storage_path=path).count == 1

    def test_tampered_record_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        EventLog(storage_path=path).append(_event("EVT-1"))
        record = json.loads(path.read_text(encoding="utf-8"))
        record["payload"]["voter_id"] = "mallory"
        path.write_text(json.dumps(record) + "\n", encoding="utf-8")
        with pytest.raises(ValueError, match="line 1: Integrity check failed"):
            EventLog(storage_path=path)

    def test_replayed_record_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "events.jsonl"
        EventLog(storage_path=path).append(_event("EVT-1"))
        line = path.read_text(encoding="utf-8")
        path.write_text(line + line, encoding="utf-8")
        with pytest.raises(ValueError, match="line 2: Duplicate event ID"):
            EventLog(storage_path=path)
