"""
Purpose: Event capture orchestration (the "one call" entry point on the evaluator side).
What it does:
- Reads location and scans for nearby beacons concurrently, then joins both.
- Location failure is fatal to the capture; the caller must offer a manual fallback.
- Beacon scanning races a wall-clock budget and degrades to an empty list on
  timeout or scanner error. It never fails the capture.
- Derives motion and context, builds the CapturedEvent and persists it under
  a key scoped by (evaluator_user_id, event_id) before returning.
- Right after persisting, hands matching to the MatchingSupervisor as a
  detached job; the caller never waits on it. On success the job stores the
  ranked candidates and rewrites the event with the matching metadata.

Rule: No per-user state on the capture object. The user travels in an explicit
CaptureSession passed to every call.
"""

from __future__ import annotations

import concurrent.futures
import datetime
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Protocol

from .models import (
    BluetoothBeacon,
    CapturedEvent,
    DeviceType,
    EventContext,
    EventStatus,
    LocationData,
    MotionData,
)
from .sensors import (
    BeaconScanner,
    LocationProvider,
    MotionSensor,
    beacons_from_sightings,
    heading_from_acceleration,
    light_condition_for,
    ms_to_kmh,
)
from .store import EventStore, KeyValueStore
from .timestamps import to_iso, utcnow

logger = logging.getLogger(__name__)

DEFAULT_BEACON_SCAN_BUDGET_S = 2.5


class LocationUnavailableError(Exception):
    """Raised when no location fix could be obtained for a capture."""
    pass


class CandidateFinder(Protocol):
    def find_candidates(self, event: CapturedEvent) -> List[Any]:
        ...


class JobSubmitter(Protocol):
    def submit(self, event_id: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        ...


@dataclass(frozen=True)
class CaptureSession:
    """
    Who is capturing. Passed explicitly into each call.
    """
    user_id: str


class EventCapture:
    def __init__(
        self,
        location_provider: LocationProvider,
        beacon_scanner: BeaconScanner,
        motion_sensor: MotionSensor,
        store: KeyValueStore,
        matcher: CandidateFinder,
        supervisor: JobSubmitter,
        *,
        beacon_scan_budget_s: float = DEFAULT_BEACON_SCAN_BUDGET_S,
        location_timeout_s: Optional[float] = None,
        clock: Callable[[], datetime.datetime] = utcnow,
        local_clock: Callable[[], datetime.datetime] = datetime.datetime.now,
        id_factory: Callable[[], Any] = uuid.uuid4,
    ):
        self.location_provider = location_provider
        self.beacon_scanner = beacon_scanner
        self.motion_sensor = motion_sensor
        self.store = store
        self.matcher = matcher
        self.supervisor = supervisor
        self.beacon_scan_budget_s = beacon_scan_budget_s
        self.location_timeout_s = location_timeout_s
        self._clock = clock
        self._local_clock = local_clock
        self._id_factory = id_factory
        self._location_pool = concurrent.futures.ThreadPoolExecutor(
            max_workers=4,
            thread_name_prefix="capture-location",
        )

    # --- Public API ---

    def capture_event(
        self,
        session: CaptureSession,
        device_type: Any,
        plate: Optional[str] = None,
        photo_ref: Optional[str] = None,
    ) -> CapturedEvent:
        """
        Capture, persist and return one incident event.
        Raises LocationUnavailableError when no fix can be obtained.
        """
        device_type = DeviceType(device_type)
        event_id = str(self._id_factory())
        timestamp = to_iso(self._clock())
        logger.info("Capturing event %s for user %s", event_id, session.user_id)

        # Both sensors start together; the beacon budget counts from here.
        started = time.monotonic()
        location_future = self._location_pool.submit(self.location_provider.current_location)
        beacon_future = self._start_beacon_scan()

        location = self._await_location(location_future)
        remaining = max(0.0, self.beacon_scan_budget_s - (time.monotonic() - started))
        beacons = self._await_beacons(beacon_future, remaining)

        event = CapturedEvent(
            id=event_id,
            evaluator_user_id=session.user_id,
            timestamp=timestamp,
            location=location,
            nearby_beacons=beacons,
            motion=self._capture_motion(location),
            context=self._capture_context(device_type),
            status=EventStatus.PENDING,
            plate=plate or None,
            photo_ref=photo_ref or None,
        )

        EventStore(self.store, session.user_id).save_event(event)
        logger.info(
            "Event %s saved (%d beacons, heading %.0f)",
            event.id, len(event.nearby_beacons), event.motion.heading,
        )

        self.supervisor.submit(event.id, self.run_matching, session, event)
        return event

    def run_matching(self, session: CaptureSession, event: CapturedEvent) -> List[Any]:
        """
        Background part of a capture: match, then write results next to the event.
        Exceptions propagate into the job's error channel.
        """
        candidates = self.matcher.find_candidates(event)
        store = EventStore(self.store, session.user_id)

        with store.lock_for(event.id):
            current = store.load_event(event.id)
            if current is None:
                # confirmed or discarded while matching ran
                logger.info("Event %s no longer pending; dropping %d candidates", event.id, len(candidates))
                return candidates

            store.save_candidates(event.id, [candidate.to_dict() for candidate in candidates])
            store.save_event(current.with_matching(len(candidates), to_iso(self._clock())))
        logger.info("Event %s matched: %d candidates", event.id, len(candidates))
        return candidates

    def close(self) -> None:
        self._location_pool.shutdown(wait=False)

    # --- Sensor helpers ---

    def _start_beacon_scan(self) -> concurrent.futures.Future:
        """
        Run the scan on its own daemon thread. A scanner that never returns
        only strands that thread; location reads never queue behind it.
        """
        future: concurrent.futures.Future = concurrent.futures.Future()

        def _scan() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self.beacon_scanner.scan(self.beacon_scan_budget_s))
            except Exception as exc:
                future.set_exception(exc)

        threading.Thread(target=_scan, name="capture-beacon-scan", daemon=True).start()
        return future

    def _await_location(self, future: concurrent.futures.Future) -> LocationData:
        try:
            location = future.result(timeout=self.location_timeout_s)
        except concurrent.futures.TimeoutError as exc:
            raise LocationUnavailableError("Timed out waiting for a location fix") from exc
        except Exception as exc:
            raise LocationUnavailableError(f"Location unavailable: {exc}") from exc

        if location is None:
            raise LocationUnavailableError("Location provider returned no fix")
        return location

    def _await_beacons(self, future: concurrent.futures.Future, timeout: float) -> List[BluetoothBeacon]:
        try:
            sightings = future.result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            logger.warning("Beacon scan exceeded %.1fs budget; continuing without beacons", self.beacon_scan_budget_s)
            return []
        except Exception as exc:
            logger.warning("Beacon scan failed (%s); continuing without beacons", exc)
            return []
        return beacons_from_sightings(sightings or [])

    def _capture_motion(self, location: LocationData) -> MotionData:
        sample = self.motion_sensor.last_sample()

        # positioning sensors report negative values for "unknown"
        speed_ms = location.speed if location.speed is not None and location.speed >= 0 else 0.0
        if location.heading is not None and location.heading >= 0:
            heading = location.heading % 360
        else:
            heading = heading_from_acceleration(sample)

        return MotionData(
            acceleration=sample,
            estimated_velocity=round(ms_to_kmh(speed_ms), 1),
            heading=heading,
        )

    def _capture_context(self, device_type: DeviceType) -> EventContext:
        hour = self._local_clock().hour
        return EventContext(device_type=device_type, light_condition=light_condition_for(hour))
