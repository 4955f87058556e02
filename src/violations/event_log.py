"""
Append-only, newest-first log of violation records for the current session.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterator, List, Optional, Tuple

from models.violation import ViolationRecord


RecordListener = Callable[[ViolationRecord], None]


class EventLog:
    """
    In-memory event sink.

    append() is the only mutation; records are kept newest-first and are
    never modified once appended.
    """

    def __init__(self):
        self._records: List[ViolationRecord] = []
        self._listeners: List[RecordListener] = []

    def add_listener(self, listener: RecordListener) -> None:
        self._listeners.append(listener)

    def append(self, record: ViolationRecord) -> None:
        self._records.insert(0, record)
        logging.info(
            f"Violation recorded: id={record.id}, label={record.object_label}, "
            f"stopped={record.stop_duration_at_crossing}s, video={record.evidence_video or 'none'}"
        )
        for listener in self._listeners:
            try:
                listener(record)
            except Exception as e:
                logging.warning(f"Event log listener error: {e}")

    def records(self) -> Tuple[ViolationRecord, ...]:
        """All records, newest first."""
        return tuple(self._records)

    def get(self, record_id: str) -> Optional[ViolationRecord]:
        for record in self._records:
            if record.id == record_id:
                return record
        return None

    def latest(self) -> Optional[ViolationRecord]:
        return self._records[0] if self._records else None

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ViolationRecord]:
        return iter(tuple(self._records))
