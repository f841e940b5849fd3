import datetime

import pytest

from drivers.policy import default_matching_policy
from events.capture import CaptureSession
from events.lifecycle import EventStateException, PendingEvents, transition_event
from events.models import EventStatus
from events.store import EventStore, InMemoryKeyValueStore
from matching.feedback import FeedbackRecorder, JsonlFeedbackLog
from matching.scoring import score_driver

SESSION = CaptureSession(user_id="evaluator-1")


class CountingMatcher:
    def __init__(self, candidates):
        self.candidates = candidates
        self.calls = 0

    def find_candidates(self, event):
        self.calls += 1
        return list(self.candidates)


@pytest.fixture
def store():
    return InMemoryKeyValueStore()


@pytest.fixture
def candidate(make_event, make_driver):
    return score_driver(make_event(), make_driver("driver-7"), default_matching_policy())


def save(store, event):
    EventStore(store, event.evaluator_user_id).save_event(event)
    return event


def test_list_pending_newest_first(store, make_event):
    save(store, make_event("old", timestamp="2026-03-02T09:00:00.000Z"))
    save(store, make_event("new", timestamp="2026-03-02T11:00:00.000Z"))
    save(store, make_event("mid", timestamp="2026-03-02T10:00:00.000Z"))
    save(store, make_event("other-user", user_id="someone-else"))

    pending = PendingEvents(store, CountingMatcher([])).list_pending(SESSION)

    assert [e.id for e in pending] == ["new", "mid", "old"]


def test_review_prefers_stored_candidates(store, make_event, candidate):
    event = save(store, make_event())
    EventStore(store, SESSION.user_id).save_candidates(event.id, [candidate.to_dict()])
    matcher = CountingMatcher([])

    review = PendingEvents(store, matcher).review(SESSION, event.id)

    assert review.pre_calculated is True
    assert review.candidates == [candidate]
    assert matcher.calls == 0


def test_review_falls_back_to_live_matching(store, make_event, candidate):
    event = save(store, make_event())
    matcher = CountingMatcher([candidate])

    review = PendingEvents(store, matcher).review(SESSION, event.id)

    assert review.pre_calculated is False
    assert review.candidates == [candidate]
    assert matcher.calls == 1


def test_review_without_candidates_needs_manual_entry(store, make_event):
    event = save(store, make_event())
    EventStore(store, SESSION.user_id).save_candidates(event.id, [])

    review = PendingEvents(store, CountingMatcher([])).review(SESSION, event.id)

    assert review.needs_manual_entry


def test_confirm_records_feedback_and_removes(store, make_event, candidate, tmp_path):
    event = save(store, make_event())
    EventStore(store, SESSION.user_id).save_candidates(event.id, [candidate.to_dict()])
    log = JsonlFeedbackLog(tmp_path / "feedback.jsonl")
    recorder = FeedbackRecorder(
        log,
        clock=lambda: datetime.datetime(2026, 3, 2, 10, 5, tzinfo=datetime.timezone.utc),
    )

    confirmed = PendingEvents(store, CountingMatcher([]), feedback=recorder).confirm(
        SESSION, event.id, candidate, was_correct=False,
    )

    assert confirmed.status == EventStatus.CONFIRMED
    assert store.keys() == []

    records = log.read_all()
    assert len(records) == 1
    assert records[0]["event_id"] == event.id
    assert records[0]["confirmed_user_id"] == "driver-7"
    assert records[0]["was_correct"] is False
    assert records[0]["recorded_at"] == "2026-03-02T10:05:00.000Z"


def test_discard_removes_event(store, make_event):
    event = save(store, make_event())

    discarded = PendingEvents(store, CountingMatcher([])).discard(SESSION, event.id)

    assert discarded.status == EventStatus.DISCARDED
    assert EventStore(store, SESSION.user_id).load_event(event.id) is None


def test_missing_event_raises(store, candidate):
    pending = PendingEvents(store, CountingMatcher([]))
    with pytest.raises(KeyError):
        pending.review(SESSION, "nope")
    with pytest.raises(KeyError):
        pending.confirm(SESSION, "nope", candidate)


def test_transitions(make_event):
    event = make_event()

    matched = transition_event(event, EventStatus.MATCHED)
    assert matched.status == EventStatus.MATCHED
    assert transition_event(matched, EventStatus.MATCHED) is matched

    confirmed = transition_event(matched, EventStatus.CONFIRMED)
    with pytest.raises(EventStateException):
        transition_event(confirmed, EventStatus.DISCARDED)
    with pytest.raises(EventStateException):
        transition_event(matched, EventStatus.PENDING)
