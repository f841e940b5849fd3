"""
Purpose: Matching feedback log (extension point for future weight calibration).
What it does:
Appends one immutable record per human confirmation/rejection of a
candidate: {event_id, confirmed_user_id, match_score, was_correct, factors,
recorded_at}. Nothing in the scoring path reads these back.

Sinks:
- JsonlFeedbackLog: append-only local file, one JSON object per line
- the backend client (MatchingBackendClient.insert_feedback)
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Protocol

from drivers.models import DriverCandidate
from events.models import CapturedEvent
from events.timestamps import to_iso, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeedbackRecord:
    event_id: str
    confirmed_user_id: str
    match_score: float
    was_correct: bool
    factors: Dict[str, Any]
    recorded_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "confirmed_user_id": self.confirmed_user_id,
            "match_score": self.match_score,
            "was_correct": self.was_correct,
            "factors": dict(self.factors),
            "recorded_at": self.recorded_at,
        }


class FeedbackSink(Protocol):
    def insert_feedback(self, record: Dict[str, Any]) -> None:
        ...


class JsonlFeedbackLog:
    """
    Durable append-only log. Each append is flushed and fsynced.
    """
    def __init__(self, path: Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def insert_feedback(self, record: Dict[str, Any]) -> None:
        line = json.dumps(record, sort_keys=True)
        with self._lock:
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
                f.flush()
                os.fsync(f.fileno())

    def read_all(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]


class FeedbackRecorder:
    def __init__(self, sink: FeedbackSink, clock: Callable[[], Any] = utcnow):
        self.sink = sink
        self._clock = clock

    def record_confirmation(
        self,
        event: CapturedEvent,
        confirmed_candidate: DriverCandidate,
        was_correct: bool,
    ) -> FeedbackRecord:
        record = FeedbackRecord(
            event_id=event.id,
            confirmed_user_id=confirmed_candidate.user_id,
            match_score=confirmed_candidate.match_score,
            was_correct=bool(was_correct),
            factors=confirmed_candidate.match_factors.to_dict(),
            recorded_at=to_iso(self._clock()),
        )
        self.sink.insert_feedback(record.to_dict())
        logger.info(
            "Recorded matching feedback for event %s (user %s, correct=%s)",
            event.id, record.confirmed_user_id, record.was_correct,
        )
        return record
