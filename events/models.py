"""
Purpose: Domain models for the Events capability.
What it does:
- Defines the immutable signal primitives produced by device sensors:
- LocationData (lat/lon, accuracy, optional altitude/speed/heading)
- Acceleration (x, y, z accelerometer sample)
- BluetoothBeacon (hashed adapter id, rssi, distance estimate)
- MotionData (acceleration, estimated velocity, heading)
- EventContext (device type, light condition)

Defines the CapturedEvent record that bundles them, and the enums:
- EventStatus = PENDING | MATCHED | CONFIRMED | DISCARDED
- DeviceType = BICYCLE | CAR | MOTORCYCLE | PEDESTRIAN
- LightCondition = DAY | NIGHT | DUSK

Units: LocationData.speed is m/s (as the positioning sensor reports it),
MotionData.estimated_velocity is km/h (the unit the scoring engine compares).

Rule: No sensor calls, no persistence. Models only.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional


class EventStatus(str, Enum):
    PENDING = "pending"
    MATCHED = "matched"
    CONFIRMED = "confirmed"
    DISCARDED = "discarded"


class DeviceType(str, Enum):
    BICYCLE = "bicycle"
    CAR = "car"
    MOTORCYCLE = "motorcycle"
    PEDESTRIAN = "pedestrian"


class LightCondition(str, Enum):
    DAY = "day"
    NIGHT = "night"
    DUSK = "dusk"


@dataclass(frozen=True)
class LocationData:
    latitude: float
    longitude: float
    accuracy: float = 0.0
    altitude: Optional[float] = None
    speed: Optional[float] = None  # m/s
    heading: Optional[float] = None  # degrees

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "accuracy": self.accuracy,
            "altitude": self.altitude,
            "speed": self.speed,
            "heading": self.heading,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> LocationData:
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            accuracy=float(data.get("accuracy") or 0.0),
            altitude=data.get("altitude"),
            speed=data.get("speed"),
            heading=data.get("heading"),
        )


@dataclass(frozen=True)
class Acceleration:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


@dataclass(frozen=True)
class BluetoothBeacon:
    """
    A nearby short-range radio device.
    Only the one-way hash of the adapter address is ever kept.
    """
    mac_hash: str
    rssi: int
    distance_estimate: Optional[float] = None  # metres
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mac_hash": self.mac_hash,
            "rssi": self.rssi,
            "distance_estimate": self.distance_estimate,
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> BluetoothBeacon:
        return cls(
            mac_hash=data["mac_hash"],
            rssi=int(data.get("rssi", -100)),
            distance_estimate=data.get("distance_estimate"),
            name=data.get("name"),
        )


@dataclass(frozen=True)
class MotionData:
    acceleration: Acceleration
    estimated_velocity: float  # km/h
    heading: float  # degrees, [0, 360)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "acceleration": self.acceleration.to_dict(),
            "estimated_velocity": self.estimated_velocity,
            "heading": self.heading,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> MotionData:
        acc = data.get("acceleration") or {}
        return cls(
            acceleration=Acceleration(
                x=float(acc.get("x", 0.0)),
                y=float(acc.get("y", 0.0)),
                z=float(acc.get("z", 0.0)),
            ),
            estimated_velocity=float(data.get("estimated_velocity", 0.0)),
            heading=float(data.get("heading", 0.0)),
        )


@dataclass(frozen=True)
class EventContext:
    device_type: DeviceType
    light_condition: LightCondition
    weather_condition: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_type": self.device_type.value,
            "light_condition": self.light_condition.value,
            "weather_condition": self.weather_condition,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> EventContext:
        return cls(
            device_type=DeviceType(data["device_type"]),
            light_condition=LightCondition(data["light_condition"]),
            weather_condition=data.get("weather_condition"),
        )


@dataclass(frozen=True)
class CapturedEvent:
    """
    A single incident capture, owned by the evaluating user.

    Created once by EventCapture. The only later mutation is attaching
    the matching metadata once background matching has run (see `with_matching`).
    """
    id: str
    evaluator_user_id: str
    timestamp: str  # ISO-8601
    location: LocationData
    motion: MotionData
    context: EventContext
    nearby_beacons: List[BluetoothBeacon] = field(default_factory=list)
    status: EventStatus = EventStatus.PENDING
    plate: Optional[str] = None
    photo_ref: Optional[str] = None

    # Matching metadata, filled after background matching completes
    has_candidates: Optional[bool] = None
    candidates_count: Optional[int] = None
    matching_executed_at: Optional[str] = None

    def beacon_hashes(self) -> List[str]:
        return [beacon.mac_hash for beacon in self.nearby_beacons]

    def with_matching(self, candidates_count: int, executed_at: str) -> CapturedEvent:
        status = self.status
        if candidates_count > 0 and status == EventStatus.PENDING:
            status = EventStatus.MATCHED
        return replace(
            self,
            status=status,
            has_candidates=candidates_count > 0,
            candidates_count=candidates_count,
            matching_executed_at=executed_at,
        )

    def with_status(self, status: EventStatus) -> CapturedEvent:
        return replace(self, status=status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "evaluator_user_id": self.evaluator_user_id,
            "timestamp": self.timestamp,
            "location": self.location.to_dict(),
            "nearby_beacons": [beacon.to_dict() for beacon in self.nearby_beacons],
            "motion": self.motion.to_dict(),
            "context": self.context.to_dict(),
            "status": self.status.value,
            "plate": self.plate,
            "photo_ref": self.photo_ref,
            "has_candidates": self.has_candidates,
            "candidates_count": self.candidates_count,
            "matching_executed_at": self.matching_executed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CapturedEvent:
        return cls(
            id=data["id"],
            evaluator_user_id=data["evaluator_user_id"],
            timestamp=data["timestamp"],
            location=LocationData.from_dict(data["location"]),
            motion=MotionData.from_dict(data["motion"]),
            context=EventContext.from_dict(data["context"]),
            nearby_beacons=[BluetoothBeacon.from_dict(b) for b in data.get("nearby_beacons", [])],
            status=EventStatus(data.get("status", EventStatus.PENDING.value)),
            plate=data.get("plate"),
            photo_ref=data.get("photo_ref"),
            has_candidates=data.get("has_candidates"),
            candidates_count=data.get("candidates_count"),
            matching_executed_at=data.get("matching_executed_at"),
        )
