"""
Purpose: Driver-side location reports (the rows the candidate source serves).
What it does:
Builds the backend row a driver's device uploads while online. The beacon
address is hashed with the exact function the evaluator side uses
(events.sensors.hash_beacon_address), so the same radio produces the same
hash on both sides and the raw address never leaves the device.

Speed stays in m/s here, as the positioning sensor reports it; the backend
client converts to km/h when it reads the rows back.
"""

from typing import Any, Dict, Optional

from events.models import LocationData
from events.sensors import hash_beacon_address


def build_location_report(
    user_id: str,
    plate: str,
    location: LocationData,
    beacon_address: Optional[str],
    captured_at: str,
) -> Dict[str, Any]:
    return {
        "user_id": user_id,
        "plate": plate,
        "latitude": location.latitude,
        "longitude": location.longitude,
        # PostGIS point is lon first
        "location": f"POINT({location.longitude} {location.latitude})",
        "accuracy": location.accuracy,
        "speed": location.speed if location.speed is not None and location.speed >= 0 else 0.0,
        "heading": location.heading if location.heading is not None and location.heading >= 0 else 0.0,
        "bluetooth_mac_hash": hash_beacon_address(beacon_address) if beacon_address else None,
        "captured_at": captured_at,
    }
