"""
Purpose: Central configuration for driver matching.
What it does:

Stores all tunable thresholds/weights for finding and scoring candidates:

MAX_SEARCH_RADIUS_METERS = 100
TIME_WINDOW_SECONDS = 30
MIN_VIABLE_SCORE = 40
WEIGHTS = GPS 40 / BLUETOOTH 30 / DIRECTION 20 / SPEED 10

Rule: No logic here, just parameters so you can tune without rewriting code.
"""

from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class MatchingPolicy:
    """
    Central configuration for the match scoring engine and ranker.
    """

    # --- Candidate search ---
    # Drivers further than this from the event are not queried and score 0 on GPS.
    max_search_radius_meters: float = 100.0

    # Informational only: GPS fixes are not trusted below this resolution.
    min_search_radius_meters: float = 20.0

    # Candidate locations must be captured within +/- this many seconds of the event.
    time_window_seconds: int = 30

    # --- Factor weights (must add up to 100) ---
    gps_weight: float = 40.0
    bluetooth_weight: float = 30.0
    direction_weight: float = 20.0
    speed_weight: float = 10.0

    # --- Factor cut-offs ---
    # Headings further apart than this (degrees) are "different direction".
    max_heading_difference_deg: float = 45.0

    # Speeds (km/h) further apart than this do not score; divisor shapes the falloff.
    max_speed_difference_kmh: float = 20.0
    speed_falloff_kmh: float = 50.0

    # Temporal proximity loses this many points per second of offset.
    temporal_penalty_per_second: float = 3.0

    # --- Ranking ---
    min_viable_score: float = 40.0
    high_confidence_score: float = 80.0
    medium_confidence_score: float = 60.0

    def total_weight(self) -> float:
        return self.gps_weight + self.bluetooth_weight + self.direction_weight + self.speed_weight

    def validate(self) -> None:
        """
        Basic sanity checks.
        """
        if self.max_search_radius_meters <= 0:
            raise ValueError("max_search_radius_meters must be > 0")

        if self.min_search_radius_meters < 0 or self.min_search_radius_meters > self.max_search_radius_meters:
            raise ValueError("min_search_radius_meters must be within [0, max_search_radius_meters]")

        if self.time_window_seconds < 0:
            raise ValueError("time_window_seconds must be >= 0")

        for name in ("gps_weight", "bluetooth_weight", "direction_weight", "speed_weight"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")

        if self.total_weight() > 100:
            raise ValueError("factor weights must not add up to more than 100")

        if not 0 < self.max_heading_difference_deg <= 180:
            raise ValueError("max_heading_difference_deg must be within (0, 180]")

        if self.speed_falloff_kmh <= 0:
            raise ValueError("speed_falloff_kmh must be > 0")

        if not self.min_viable_score <= self.medium_confidence_score <= self.high_confidence_score:
            raise ValueError("score thresholds must satisfy min_viable <= medium <= high")


def default_matching_policy() -> MatchingPolicy:
    """
    Convenience factory for the default policy.
    """
    p = MatchingPolicy()
    p.validate()
    return p
