"""
Purpose: Core data models for the drivers domain.
What it does:
Defines the candidate-source row for an online driver (ActiveDriver), the
per-factor score breakdown (MatchFactors) and the ranked result handed to the
consumer (DriverCandidate), without relying on any storage schema.

Units: DriverMotion.speed is km/h, the same unit as MotionData.estimated_velocity.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple

LatLon = Tuple[float, float]


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class VerificationLevel(str, Enum):
    AUTOMATIC = "automatic"
    PARTIAL = "partial"
    MANUAL = "manual"


@dataclass(frozen=True)
class DriverLocation:
    latitude: float
    longitude: float
    captured_at: str  # ISO-8601


@dataclass(frozen=True)
class DriverMotion:
    speed: float  # km/h
    heading: float  # degrees


@dataclass(frozen=True)
class ActiveDriver:
    """
    A driver that was online near the event, as returned by the candidate source.
    One user can appear in several rows (stale duplicate registrations).
    """
    user_id: str
    plate: str
    location: DriverLocation
    motion: DriverMotion
    beacon_hash: Optional[str] = None

    @property
    def coordinates(self) -> LatLon:
        return (self.location.latitude, self.location.longitude)

    @classmethod
    def new(
        cls,
        user_id: str,
        plate: str,
        lat: float,
        lon: float,
        captured_at: str,
        speed: float = 0.0,
        heading: float = 0.0,
        beacon_hash: Optional[str] = None,
    ) -> ActiveDriver:
        return cls(
            user_id=user_id,
            plate=plate,
            location=DriverLocation(latitude=lat, longitude=lon, captured_at=captured_at),
            motion=DriverMotion(speed=speed, heading=heading),
            beacon_hash=beacon_hash,
        )


@dataclass(frozen=True)
class MatchFactors:
    """
    Independent sub-scores. Only the first four feed the total;
    temporal_proximity is kept for explanation and audit.
    """
    gps_proximity: float = 0.0
    bluetooth_detected: bool = False
    direction_match: float = 0.0
    speed_match: float = 0.0
    temporal_proximity: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "gps_proximity": self.gps_proximity,
            "bluetooth_detected": self.bluetooth_detected,
            "direction_match": self.direction_match,
            "speed_match": self.speed_match,
            "temporal_proximity": self.temporal_proximity,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MatchFactors:
        return cls(
            gps_proximity=float(data.get("gps_proximity", 0.0)),
            bluetooth_detected=bool(data.get("bluetooth_detected", False)),
            direction_match=float(data.get("direction_match", 0.0)),
            speed_match=float(data.get("speed_match", 0.0)),
            temporal_proximity=float(data.get("temporal_proximity", 0.0)),
        )


@dataclass(frozen=True)
class DriverCandidate:
    user_id: str
    plate: str
    match_score: float
    match_factors: MatchFactors
    location: LatLon
    timestamp: str

    # Derived by drivers.selection once the candidate survives ranking
    confidence: Optional[ConfidenceLevel] = None
    explanation: Optional[str] = None
    verification_level: Optional[VerificationLevel] = None
    verification_text: Optional[str] = None

    def annotated(self, **changes: Any) -> DriverCandidate:
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "plate": self.plate,
            "match_score": self.match_score,
            "match_factors": self.match_factors.to_dict(),
            "location": {"latitude": self.location[0], "longitude": self.location[1]},
            "timestamp": self.timestamp,
            "confidence": self.confidence.value if self.confidence else None,
            "explanation": self.explanation,
            "verification_level": self.verification_level.value if self.verification_level else None,
            "verification_text": self.verification_text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DriverCandidate:
        location = data.get("location") or {}
        confidence = data.get("confidence")
        level = data.get("verification_level")
        return cls(
            user_id=data["user_id"],
            plate=data.get("plate", ""),
            match_score=float(data["match_score"]),
            match_factors=MatchFactors.from_dict(data.get("match_factors") or {}),
            location=(float(location.get("latitude", 0.0)), float(location.get("longitude", 0.0))),
            timestamp=data.get("timestamp", ""),
            confidence=ConfidenceLevel(confidence) if confidence else None,
            explanation=data.get("explanation"),
            verification_level=VerificationLevel(level) if level else None,
            verification_text=data.get("verification_text"),
        )
