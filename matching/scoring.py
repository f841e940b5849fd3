"""
Purpose: Match scoring engine (the "how plausible is this driver" layer).
What it does:

Computes, for one (event, active driver) pair, four independent sub-scores:

gps_proximity     = w_gps * (1 - distance / max_radius)     if distance <= max_radius
bluetooth         = w_bt                                     if any event beacon hash == driver hash
direction_match   = w_dir * (1 - heading_diff / 180)         if heading_diff < 45
speed_match       = w_speed * (1 - speed_diff / 50)          if speed_diff < 20 (km/h)

match_score = round(gps + bluetooth + direction + speed, 1), within [0, 100]

temporal_proximity = max(0, 100 - 3 * |dt seconds|) is stored on the factor
breakdown for explanation/audit only. It never feeds match_score.

Rule: Pure functions of (event, driver, policy). No I/O, no clock reads.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional

from drivers.models import ActiveDriver, DriverCandidate, MatchFactors
from drivers.policy import MatchingPolicy
from events.models import CapturedEvent
from events.timestamps import seconds_between
from proximity.geo import haversine_meters, heading_difference


def round_score(value: float) -> float:
    """
    Round half up to one decimal (36.25 -> 36.3), the way scores are displayed.
    """
    return math.floor(value * 10 + 0.5) / 10


def _clamp(value: float, ceiling: float) -> float:
    return min(max(value, 0.0), ceiling)


# -------------------------
# Factor scores
# -------------------------

def gps_proximity_score(distance_m: float, policy: MatchingPolicy) -> float:
    max_radius = policy.max_search_radius_meters
    if distance_m > max_radius:
        return 0.0
    score = policy.gps_weight * (1 - distance_m / max_radius)
    return _clamp(score, policy.gps_weight)


def bluetooth_match(event_hashes: Iterable[str], driver_hash: Optional[str]) -> bool:
    if not driver_hash:
        return False
    return any(beacon_hash == driver_hash for beacon_hash in event_hashes)


def bluetooth_score(detected: bool, policy: MatchingPolicy) -> float:
    # all or nothing: a beacon sighting is never partial evidence
    return policy.bluetooth_weight if detected else 0.0


def direction_match_score(diff_deg: float, policy: MatchingPolicy) -> float:
    if diff_deg >= policy.max_heading_difference_deg:
        return 0.0
    score = policy.direction_weight * (1 - diff_deg / 180)
    return _clamp(score, policy.direction_weight)


def speed_match_score(diff_kmh: float, policy: MatchingPolicy) -> float:
    if diff_kmh >= policy.max_speed_difference_kmh:
        return 0.0
    score = policy.speed_weight * (1 - diff_kmh / policy.speed_falloff_kmh)
    return _clamp(score, policy.speed_weight)


def temporal_proximity(event_timestamp: str, captured_at: str, policy: MatchingPolicy) -> float:
    if not captured_at:
        return 0.0
    try:
        offset_s = seconds_between(event_timestamp, captured_at)
    except ValueError:
        return 0.0
    # kept unrounded: informational, never part of match_score
    return max(0.0, 100 - policy.temporal_penalty_per_second * offset_s)


# -------------------------
# Candidate scoring
# -------------------------

def compute_factors(event: CapturedEvent, driver: ActiveDriver, policy: MatchingPolicy) -> MatchFactors:
    distance = haversine_meters(
        event.location.latitude,
        event.location.longitude,
        driver.location.latitude,
        driver.location.longitude,
    )
    heading_diff = heading_difference(event.motion.heading, driver.motion.heading)
    speed_diff = abs(event.motion.estimated_velocity - driver.motion.speed)

    return MatchFactors(
        gps_proximity=round_score(gps_proximity_score(distance, policy)),
        bluetooth_detected=bluetooth_match(event.beacon_hashes(), driver.beacon_hash),
        direction_match=round_score(direction_match_score(heading_diff, policy)),
        speed_match=round_score(speed_match_score(speed_diff, policy)),
        temporal_proximity=temporal_proximity(event.timestamp, driver.location.captured_at, policy),
    )


def total_score(factors: MatchFactors, policy: MatchingPolicy) -> float:
    total = (
        factors.gps_proximity
        + bluetooth_score(factors.bluetooth_detected, policy)
        + factors.direction_match
        + factors.speed_match
    )
    return _clamp(round_score(total), 100.0)


def score_driver(event: CapturedEvent, driver: ActiveDriver, policy: MatchingPolicy) -> DriverCandidate:
    """
    Score one active driver against the event. Ranking metadata
    (confidence, explanation, badge) is added later by drivers.selection.
    """
    factors = compute_factors(event, driver, policy)
    return DriverCandidate(
        user_id=driver.user_id,
        plate=driver.plate,
        match_score=total_score(factors, policy),
        match_factors=factors,
        location=driver.coordinates,
        timestamp=driver.location.captured_at,
    )
