"""
Purpose: Manages the pending-event lifecycle (PENDING → MATCHED → CONFIRMED | DISCARDED).
What it does:
- Guards status transitions.
- Lists a user's pending events, newest first.
- Review: returns the candidates pre-computed at capture time, or runs
  matching live when the background job has not stored any yet.
- Confirm: records matching feedback, then deletes the event and its candidates.
- Discard: deletes the event and its candidates.

Rule: Lifecycle owns state transitions, matching owns scoring logic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Set

from drivers.models import DriverCandidate

from .capture import CandidateFinder, CaptureSession
from .models import CapturedEvent, EventStatus
from .store import EventStore, KeyValueStore
from .timestamps import parse_iso

logger = logging.getLogger(__name__)


class EventStateException(Exception):
    """Raised when an invalid event transition is attempted."""
    pass


ALLOWED_TRANSITIONS: Dict[EventStatus, Set[EventStatus]] = {
    EventStatus.PENDING: {EventStatus.MATCHED, EventStatus.CONFIRMED, EventStatus.DISCARDED},
    EventStatus.MATCHED: {EventStatus.CONFIRMED, EventStatus.DISCARDED},
    EventStatus.CONFIRMED: set(),
    EventStatus.DISCARDED: set(),
}


def transition_event(event: CapturedEvent, status: EventStatus) -> CapturedEvent:
    if status == event.status:
        return event
    if status not in ALLOWED_TRANSITIONS[event.status]:
        raise EventStateException(
            f"Cannot transition event {event.id} from {event.status.value} to {status.value}"
        )
    return event.with_status(status)


class ConfirmationRecorder(Protocol):
    def record_confirmation(self, event: CapturedEvent, confirmed_candidate: DriverCandidate, was_correct: bool) -> Any:
        ...


@dataclass(frozen=True)
class ReviewResult:
    event: CapturedEvent
    candidates: List[DriverCandidate]
    pre_calculated: bool

    @property
    def needs_manual_entry(self) -> bool:
        return not self.candidates


class PendingEvents:
    def __init__(
        self,
        store: KeyValueStore,
        matcher: CandidateFinder,
        feedback: Optional[ConfirmationRecorder] = None,
    ):
        self.store = store
        self.matcher = matcher
        self.feedback = feedback

    def _events(self, session: CaptureSession) -> EventStore:
        return EventStore(self.store, session.user_id)

    def _require(self, session: CaptureSession, event_id: str) -> CapturedEvent:
        event = self._events(session).load_event(event_id)
        if event is None:
            raise KeyError(f"No pending event {event_id} for user {session.user_id}")
        return event

    # --- Public API ---

    def list_pending(self, session: CaptureSession) -> List[CapturedEvent]:
        events = self._events(session).list_events()
        events.sort(key=lambda e: parse_iso(e.timestamp), reverse=True)
        return events

    def review(self, session: CaptureSession, event_id: str) -> ReviewResult:
        store = self._events(session)
        event = self._require(session, event_id)

        saved = store.load_candidates(event_id)
        if saved is not None:
            logger.info("Using %d pre-calculated candidates for event %s", len(saved), event_id)
            return ReviewResult(
                event=event,
                candidates=[DriverCandidate.from_dict(c) for c in saved],
                pre_calculated=True,
            )

        logger.info("No stored candidates for event %s; matching live", event_id)
        candidates = self.matcher.find_candidates(event)
        return ReviewResult(event=event, candidates=list(candidates), pre_calculated=False)

    def confirm(
        self,
        session: CaptureSession,
        event_id: str,
        candidate: DriverCandidate,
        was_correct: bool = True,
    ) -> CapturedEvent:
        store = self._events(session)
        # held against a background matching job writing results back
        with store.lock_for(event_id):
            event = transition_event(self._require(session, event_id), EventStatus.CONFIRMED)
            if self.feedback is not None:
                self.feedback.record_confirmation(event, candidate, was_correct)
            store.remove_event(event_id)
        return event

    def discard(self, session: CaptureSession, event_id: str) -> CapturedEvent:
        store = self._events(session)
        with store.lock_for(event_id):
            event = transition_event(self._require(session, event_id), EventStatus.DISCARDED)
            store.remove_event(event_id)
        return event
