import pytest

from drivers.models import ConfidenceLevel
from events.sensors import hash_beacon_address
from matching.candidate_filter import InMemoryCandidateSource, query_window
from matching.matcher import DriverMatcher
from drivers.policy import default_matching_policy
from proximity.geo import offset_by_meters


class RecordingSource:
    def __init__(self, drivers):
        self.drivers = drivers
        self.calls = []

    def get_active_drivers(self, latitude, longitude, radius_meters, time_start, time_end):
        self.calls.append((latitude, longitude, radius_meters, time_start, time_end))
        return list(self.drivers)


class BrokenSource:
    def get_active_drivers(self, *args):
        raise ConnectionError("backend unreachable")


def test_empty_area_returns_empty_list(make_event):
    matcher = DriverMatcher(InMemoryCandidateSource([]))
    assert matcher.find_candidates(make_event()) == []


def test_source_failure_degrades_to_no_candidates(make_event):
    matcher = DriverMatcher(BrokenSource())
    assert matcher.find_candidates(make_event()) == []


def test_query_uses_radius_and_time_window(make_event, center):
    source = RecordingSource([])
    DriverMatcher(source).find_candidates(make_event())

    assert source.calls == [
        (center[0], center[1], 100.0, "2026-03-02T09:59:30.000Z", "2026-03-02T10:00:30.000Z"),
    ]


def test_query_window_helper(make_event):
    assert query_window(make_event(), default_matching_policy()) == (
        "2026-03-02T09:59:30.000Z",
        "2026-03-02T10:00:30.000Z",
    )


def test_ranked_pipeline(make_event, make_driver, center):
    """
    End to end: duplicates collapse, weak rows drop out, best first.
    """
    beacon = hash_beacon_address("AA:BB:CC:DD:EE:01")
    event = make_event(heading=90.0, velocity=10.0, beacon_hashes=[beacon])

    drivers = [
        # near, same direction and speed, beacon seen -> high
        make_driver("alice", location=offset_by_meters(center, 5, 0), beacon_hash=beacon),
        # stale duplicate registration of alice, far away
        make_driver("alice", location=offset_by_meters(center, 90, 0), heading=200.0, speed=70.0),
        # near, same speed, opposite direction -> medium/low
        make_driver("bob", location=offset_by_meters(center, 0, 20), heading=270.0),
        # far, wrong direction, wrong speed -> below threshold
        make_driver("carol", location=offset_by_meters(center, -80, 0), heading=180.0, speed=60.0),
    ]

    ranked = DriverMatcher(RecordingSource(drivers)).find_candidates(event)

    assert [c.user_id for c in ranked] == ["alice", "bob"]
    assert ranked[0].match_factors.bluetooth_detected is True
    assert ranked[0].confidence == ConfidenceLevel.HIGH
    assert ranked[1].match_score == pytest.approx(42.0)
    assert ranked[1].explanation == "proximity 32 pts • similar speed 10 pts"


def test_in_memory_source_applies_radius_and_window(make_event, make_driver, center):
    drivers = [
        make_driver("inside", location=offset_by_meters(center, 50, 0)),
        make_driver("too-far", location=offset_by_meters(center, 150, 0)),
        make_driver("too-old", captured_at="2026-03-02T09:58:00.000Z"),
    ]

    ranked = DriverMatcher(InMemoryCandidateSource(drivers)).find_candidates(make_event())

    assert [c.user_id for c in ranked] == ["inside"]


def test_matching_is_deterministic(make_event, make_driver, center):
    drivers = [
        make_driver(f"u{i}", location=offset_by_meters(center, i * 7, -i * 3), heading=80.0 + i, speed=8.0 + i)
        for i in range(8)
    ]
    matcher = DriverMatcher(RecordingSource(drivers))
    event = make_event()

    assert matcher.find_candidates(event) == matcher.find_candidates(event)
