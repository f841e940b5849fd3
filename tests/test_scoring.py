import pytest

from drivers.models import ConfidenceLevel
from drivers.policy import default_matching_policy
from drivers.selection import confidence_for
from events.sensors import hash_beacon_address
from matching.scoring import (
    direction_match_score,
    gps_proximity_score,
    round_score,
    score_driver,
    speed_match_score,
    temporal_proximity,
)
from proximity.geo import offset_by_meters


@pytest.fixture
def policy():
    return default_matching_policy()


def test_gps_proximity_is_monotonic_and_bounded(policy):
    """
    Full weight at 0 m, zero at the search radius, never increasing in between.
    """
    scores = [gps_proximity_score(float(d), policy) for d in range(0, 101)]

    assert scores[0] == policy.gps_weight
    assert scores[-1] == 0.0
    for closer, further in zip(scores, scores[1:]):
        assert closer >= further

    # Outside the radius nothing is awarded
    assert gps_proximity_score(100.5, policy) == 0.0
    assert gps_proximity_score(5000.0, policy) == 0.0


def test_direction_match_cutoff(policy):
    assert direction_match_score(0.0, policy) == policy.direction_weight
    for diff in (45.0, 60.0, 90.0, 180.0):
        assert direction_match_score(diff, policy) == 0.0
    assert 0 < direction_match_score(44.9, policy) < policy.direction_weight


def test_speed_match_cutoff(policy):
    assert speed_match_score(0.0, policy) == policy.speed_weight
    assert speed_match_score(20.0, policy) == 0.0
    assert speed_match_score(10.0, policy) == pytest.approx(8.0)


def test_bluetooth_contributes_all_or_nothing(make_event, make_driver, policy):
    beacon = hash_beacon_address("AA:BB:CC:DD:EE:FF")
    driver = make_driver("u1", heading=270.0, speed=80.0, beacon_hash=beacon)

    with_beacon = score_driver(make_event(beacon_hashes=[beacon]), driver, policy)
    without_beacon = score_driver(make_event(beacon_hashes=[]), driver, policy)

    assert with_beacon.match_factors.bluetooth_detected is True
    assert without_beacon.match_factors.bluetooth_detected is False
    assert with_beacon.match_score - without_beacon.match_score == pytest.approx(policy.bluetooth_weight)


def test_missing_driver_beacon_never_matches(make_event, make_driver, policy):
    event = make_event(beacon_hashes=[hash_beacon_address("AA:BB:CC:DD:EE:FF")])
    candidate = score_driver(event, make_driver("u1", beacon_hash=None), policy)
    assert candidate.match_factors.bluetooth_detected is False


def test_match_score_stays_within_bounds(make_event, make_driver, center, policy):
    beacon = hash_beacon_address("11:22:33:44:55:66")
    event = make_event(heading=350.0, velocity=30.0, beacon_hashes=[beacon])

    for distance in (0, 10, 50, 99, 100, 150):
        for heading in (0.0, 10.0, 170.0, 350.0):
            for speed in (0.0, 30.0, 49.0, 120.0):
                for beacon_hash in (beacon, None):
                    location = offset_by_meters(center, north_m=distance, east_m=0)
                    driver = make_driver("u1", location=location, heading=heading, speed=speed, beacon_hash=beacon_hash)
                    candidate = score_driver(event, driver, policy)
                    assert 0.0 <= candidate.match_score <= 100.0


def test_perfect_match_scores_one_hundred(make_event, make_driver, policy):
    beacon = hash_beacon_address("11:22:33:44:55:66")
    candidate = score_driver(make_event(beacon_hashes=[beacon]), make_driver("u1", beacon_hash=beacon), policy)
    assert candidate.match_score == 100.0


def test_nearby_exact_match_scenario(make_event, make_driver, center, policy):
    """
    Candidate 10 m away, heading 95 vs 90, same speed, beacon not seen.
    """
    event = make_event(heading=90.0, velocity=10.0)
    driver = make_driver(
        "u1",
        location=offset_by_meters(center, north_m=10, east_m=0),
        heading=95.0,
        speed=10.0,
        beacon_hash=hash_beacon_address("99:88:77:66:55:44"),
    )

    candidate = score_driver(event, driver, policy)

    assert candidate.match_factors.gps_proximity == 36.0
    assert candidate.match_factors.direction_match == pytest.approx(19.4)
    assert candidate.match_factors.bluetooth_detected is False
    assert candidate.match_factors.speed_match == 10.0
    assert candidate.match_score == pytest.approx(65.4)
    assert confidence_for(candidate.match_score) == ConfidenceLevel.MEDIUM


def test_boundary_candidate_scores_zero(make_event, make_driver, center, policy):
    """
    Exactly at the search radius with nothing else in common.
    """
    event = make_event(heading=90.0, velocity=10.0)
    driver = make_driver(
        "u1",
        location=offset_by_meters(center, north_m=100, east_m=0),
        heading=270.0,
        speed=60.0,
    )

    candidate = score_driver(event, driver, policy)

    assert candidate.match_factors.gps_proximity == 0.0
    assert candidate.match_score == 0.0


def test_temporal_proximity_is_informational(make_event, make_driver, policy):
    event = make_event()
    on_time = score_driver(event, make_driver("u1", captured_at="2026-03-02T10:00:00.000Z"), policy)
    late = score_driver(event, make_driver("u1", captured_at="2026-03-02T10:00:20.000Z"), policy)

    assert on_time.match_factors.temporal_proximity == 100.0
    assert late.match_factors.temporal_proximity == 40.0
    # does not move the total
    assert on_time.match_score == late.match_score


def test_temporal_proximity_keeps_full_precision(policy):
    # 0.35 s offset -> 100 - 1.05
    value = temporal_proximity("2026-03-02T10:00:00.000Z", "2026-03-02T10:00:00.350Z", policy)
    assert value == pytest.approx(98.95)


def test_temporal_proximity_floors_at_zero(policy):
    assert temporal_proximity("2026-03-02T10:00:00Z", "2026-03-02T10:01:00Z", policy) == 0.0
    assert temporal_proximity("2026-03-02T10:00:00Z", "", policy) == 0.0
    assert temporal_proximity("2026-03-02T10:00:00Z", "not-a-date", policy) == 0.0


def test_round_score_rounds_half_up():
    assert round_score(36.25) == 36.3
    assert round_score(19.444) == 19.4
    assert round_score(0.04) == 0.0


def test_scoring_is_deterministic(make_event, make_driver, center, policy):
    event = make_event(beacon_hashes=[hash_beacon_address("AA:AA:AA:AA:AA:AA")])
    driver = make_driver("u1", location=offset_by_meters(center, 37, -12), heading=80.0, speed=14.0)
    assert score_driver(event, driver, policy) == score_driver(event, driver, policy)
