"""
Purpose: Sensor seams and signal derivations for event capture.
What it does:
- Declares the sensor interfaces EventCapture talks to (location, beacon scan,
  accelerometer). Platform implementations live outside this repo.
- Turns raw beacon sightings into privacy-safe BluetoothBeacon records
  (one-way hash of the adapter address, rssi floor, distance estimate).
- Derives heading from an accelerometer sample and the light condition
  from the local hour.

The hash function here is the only one allowed for beacon identifiers.
Driver devices use it too (drivers.registration) so equal radios give equal hashes.
"""

from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol

from .models import Acceleration, BluetoothBeacon, LightCondition, LocationData

# Beacons weaker than this are too far away to say anything about proximity
MIN_BEACON_RSSI = -90

# Log-distance path loss model: tx power at 1 m, propagation factor
RSSI_TX_POWER_DBM = -59
RSSI_PATH_LOSS_EXPONENT = 2.5


@dataclass(frozen=True)
class BeaconSighting:
    """
    A raw scan result. Lives only in memory during capture; never persisted.
    """
    address: str
    rssi: int
    name: Optional[str] = None


class LocationProvider(Protocol):
    def current_location(self) -> LocationData:
        """Best-accuracy fix. Raises when no fix is available."""
        ...


class BeaconScanner(Protocol):
    def scan(self, duration_s: float) -> List[BeaconSighting]:
        ...


class MotionSensor(Protocol):
    def last_sample(self) -> Acceleration:
        ...


class StillMotionSensor:
    """
    Motion sensor for platforms without an accelerometer feed.
    """
    def last_sample(self) -> Acceleration:
        return Acceleration()


class NoBeaconScanner:
    """
    Scanner for builds without radio access: always sees nothing.
    """
    def scan(self, duration_s: float) -> List[BeaconSighting]:
        return []


def hash_beacon_address(address: str) -> str:
    """
    One-way SHA-256 digest of a radio adapter address.
    Normalised so "aa:bb:.." and "AA:BB:.." hash the same.
    """
    normalised = address.strip().upper()
    return hashlib.sha256(normalised.encode("utf-8")).hexdigest()


def estimate_distance_from_rssi(rssi: int) -> float:
    """
    d = 10 ^ ((TxPower - RSSI) / (10 * N)), in metres, one decimal.
    """
    distance = 10 ** ((RSSI_TX_POWER_DBM - rssi) / (10 * RSSI_PATH_LOSS_EXPONENT))
    return round(distance, 1)


def beacons_from_sightings(
    sightings: Iterable[BeaconSighting],
    *,
    min_rssi: int = MIN_BEACON_RSSI,
) -> List[BluetoothBeacon]:
    beacons: List[BluetoothBeacon] = []
    for sighting in sightings:
        if sighting.rssi is None or sighting.rssi <= min_rssi:
            continue
        beacons.append(
            BluetoothBeacon(
                mac_hash=hash_beacon_address(sighting.address),
                rssi=int(sighting.rssi),
                distance_estimate=estimate_distance_from_rssi(sighting.rssi),
                name=sighting.name or None,
            )
        )
    return beacons


def heading_from_acceleration(sample: Acceleration) -> float:
    """
    Approximate heading from the horizontal acceleration vector, [0, 360).
    """
    angle = math.degrees(math.atan2(sample.y, sample.x))
    if angle < 0:
        angle += 360
    return float(round(angle) % 360)


def light_condition_for(hour: int) -> LightCondition:
    if 7 <= hour < 19:
        return LightCondition.DAY
    if 19 <= hour < 21:
        return LightCondition.DUSK
    return LightCondition.NIGHT


def ms_to_kmh(speed_ms: float) -> float:
    return speed_ms * 3.6
