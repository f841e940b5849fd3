import pytest

from drivers.models import ActiveDriver
from events.models import (
    Acceleration,
    BluetoothBeacon,
    CapturedEvent,
    DeviceType,
    EventContext,
    LightCondition,
    LocationData,
    MotionData,
)

# Puerta del Sol, Madrid
CENTER = (40.416775, -3.703790)
EVENT_TIMESTAMP = "2026-03-02T10:00:00.000Z"


@pytest.fixture
def center():
    return CENTER


@pytest.fixture
def make_event():
    def _make_event(
        event_id="evt-1",
        user_id="evaluator-1",
        location=CENTER,
        heading=90.0,
        velocity=10.0,
        beacon_hashes=(),
        timestamp=EVENT_TIMESTAMP,
    ):
        return CapturedEvent(
            id=event_id,
            evaluator_user_id=user_id,
            timestamp=timestamp,
            location=LocationData(latitude=location[0], longitude=location[1], accuracy=5.0),
            motion=MotionData(acceleration=Acceleration(), estimated_velocity=velocity, heading=heading),
            context=EventContext(device_type=DeviceType.CAR, light_condition=LightCondition.DAY),
            nearby_beacons=[BluetoothBeacon(mac_hash=h, rssi=-60) for h in beacon_hashes],
        )
    return _make_event


@pytest.fixture
def make_driver():
    def _make_driver(
        user_id,
        location=CENTER,
        heading=90.0,
        speed=10.0,
        beacon_hash=None,
        captured_at=EVENT_TIMESTAMP,
        plate="1234BCD",
    ):
        return ActiveDriver.new(
            user_id=user_id,
            plate=plate,
            lat=location[0],
            lon=location[1],
            captured_at=captured_at,
            speed=speed,
            heading=heading,
            beacon_hash=beacon_hash,
        )
    return _make_driver
