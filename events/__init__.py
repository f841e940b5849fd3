"""
Purpose: Package entry + stable exports.
What it does:

Marks events as a Python package and re-exports the public API so other
modules can do:

from events import CapturedEvent, EventCapture, CaptureSession

Events domain package.

Public API:
- Domain models: CapturedEvent, LocationData, MotionData, BluetoothBeacon, EventContext
- Enums: EventStatus, DeviceType, LightCondition
- Capture entry: EventCapture, CaptureSession, LocationUnavailableError
- Lifecycle: PendingEvents, EventStateException
- Storage: EventStore, InMemoryKeyValueStore, JsonFileKeyValueStore, UserScopedStore
"""
from .models import (
    Acceleration,
    BluetoothBeacon,
    CapturedEvent,
    DeviceType,
    EventContext,
    EventStatus,
    LightCondition,
    LocationData,
    MotionData,
)
from .capture import CaptureSession, EventCapture, LocationUnavailableError
from .lifecycle import EventStateException, PendingEvents, ReviewResult
from .store import EventStore, InMemoryKeyValueStore, JsonFileKeyValueStore, UserScopedStore

__all__ = ["Acceleration",
           "BluetoothBeacon",
             "CapturedEvent",
             "DeviceType",
             "EventContext",
             "EventStatus",
             "LightCondition",
             "LocationData",
             "MotionData",
             "CaptureSession",
             "EventCapture",
             "LocationUnavailableError",
             "EventStateException",
             "PendingEvents",
             "ReviewResult",
             "EventStore",
             "InMemoryKeyValueStore",
             "JsonFileKeyValueStore",
             "UserScopedStore",
             ]
