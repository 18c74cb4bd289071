from __future__ import annotations

import time
import uuid
from collections.abc import Iterator
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from loguru import logger

from pulmoprobe.client import PredictionResult


def make_record_id(now_ms: int | None = None) -> str:
    """Return a short patient id: "P" followed by the last six digits of the millisecond clock."""
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"P{str(now_ms)[-6:]}"


@dataclass(frozen=True)
class HistoryRecord:
    """A past submission paired with its prediction."""

    id: str
    inputs: Mapping[str, Any]
    output: PredictionResult

    def __post_init__(self) -> None:
        # Later form edits must not change a stored record.
        object.__setattr__(self, "inputs", MappingProxyType(dict(self.inputs)))


@dataclass(frozen=True)
class SubmissionCompleted:
    """Event emitted by a session when a submission succeeds."""

    record: HistoryRecord
    event_id: str = field(default_factory=lambda: uuid.uuid4().hex)


class PredictionHistory:
    """Session-local, append-only list of history records (most recent last)."""

    def __init__(self) -> None:
        self._records: list[HistoryRecord] = []
        self._seen_events: set[str] = set()

    def consume(self, event: SubmissionCompleted) -> bool:
        """Append the event's record unless this event was already consumed.

        Returns:
            True when the record was appended.
        """
        if event.event_id in self._seen_events:
            logger.warning(f"Ignoring duplicate submission event {event.event_id}")
            return False
        self._seen_events.add(event.event_id)
        self._records.append(event.record)
        logger.debug(f"History now holds {len(self._records)} records")
        return True

    @property
    def records(self) -> list[HistoryRecord]:
        return list(self._records)

    def newest_first(self) -> list[HistoryRecord]:
        return self._records[::-1]

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[HistoryRecord]:
        return iter(list(self._records))
