"""Append-only event log — the audit trail of every committed state change.

Each session notification becomes an immutable EventRecord sealed with a
SHA-256 hash over its other fields. With a storage path the log mirrors
itself to a JSONL file, one record per line. Opening an existing file
re-seals every line and refuses the whole file if any record was edited
or repeated.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Optional

from phasevote.models.voting import Notification, NotificationKind

_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def _seal(fields: dict[str, Any]) -> str:
    body = {k: v for k, v in fields.items() if k != "event_hash"}
    encoded = json.dumps(body, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return "sha256:" + hashlib.sha256(encoded).hexdigest()


@dataclass(frozen=True)
class EventRecord:
    """One sealed audit entry."""
    event_id: str
    event_kind: NotificationKind
    timestamp_utc: str
    actor_id: str
    payload: dict[str, Any]
    event_hash: str

    @classmethod
    def from_notification(
        cls,
        event_id: str,
        notification: Notification,
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        fields = {
            "event_id": event_id,
            "event_kind": notification.kind.value,
            "timestamp_utc": (timestamp_utc or datetime.now(timezone.utc)).strftime(
                _TIMESTAMP_FORMAT
            ),
            "actor_id": notification.actor_id,
            "payload": dict(notification.payload),
        }
        return cls.from_dict(dict(fields, event_hash=_seal(fields)))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventRecord:
        """Rebuild a stored record. Raises ValueError if its seal is broken."""
        if data["event_hash"] != _seal(data):
            raise ValueError(f"Integrity check failed for event {data['event_id']}")
        return cls(
            event_id=data["event_id"],
            event_kind=NotificationKind(data["event_kind"]),
            timestamp_utc=data["timestamp_utc"],
            actor_id=data["actor_id"],
            payload=data["payload"],
            event_hash=data["event_hash"],
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["event_kind"] = self.event_kind.value
        return data


class EventLog:
    """Append-only log of EventRecords, optionally mirrored to JSONL.

    A session reset is itself an event; nothing before it is dropped.
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._storage_path = storage_path
        self._records: list[EventRecord] = []
        self._ids: set[str] = set()
        if storage_path is not None and storage_path.exists():
            for line_num, data in _read_jsonl(storage_path):
                try:
                    self._admit(EventRecord.from_dict(data))
                except ValueError as e:
                    raise ValueError(f"{storage_path} line {line_num}: {e}") from e

    @property
    def count(self) -> int:
        return len(self._records)

    def events(self) -> list[EventRecord]:
        return list(self._records)

    def append(self, record: EventRecord) -> None:
        """Raises ValueError on a repeated event_id and OSError if the file write fails."""
        if record.event_id in self._ids:
            raise ValueError(f"Duplicate event ID: {record.event_id}")
        if self._storage_path is not None:
            self._storage_path.parent.mkdir(parents=True, exist_ok=True)
            with self._storage_path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(record.to_dict(), sort_keys=True, ensure_ascii=False))
                f.write("\n")
        self._admit(record)

    def _admit(self, record: EventRecord) -> None:
        if record.event_id in self._ids:
            raise ValueError(f"Duplicate event ID: {record.event_id}")
        self._records.append(record)
        self._ids.add(record.event_id)


def _read_jsonl(path: Path) -> Iterator[tuple[int, dict[str, Any]]]:
    with path.open("r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            if line.strip():
                yield line_num, json.loads(line)
