import pandas as pd
import os
from typing import List

from drivers.models import ActiveDriver
from drivers.selection import manual_verification_badge
from events.capture import CaptureSession, EventCapture
from events.lifecycle import PendingEvents
from events.models import LocationData
from events.sensors import BeaconSighting, NoBeaconScanner, StillMotionSensor
from events.store import JsonFileKeyValueStore
from logging_config import setup_logging
from matching.candidate_filter import InMemoryCandidateSource
from matching.feedback import FeedbackRecorder, JsonlFeedbackLog
from matching.jobs import MatchingSupervisor
from matching.matcher import DriverMatcher
from proximity.backend_client import row_to_active_driver
from scripts.generate_mock_drivers import generate_mock_drivers
from settings import load_settings

CENTER = (40.416775, -3.703790)


class FixedLocation:
    def current_location(self) -> LocationData:
        # 8 m/s heading east
        return LocationData(latitude=CENTER[0], longitude=CENTER[1], accuracy=5.0, speed=8.0, heading=90.0)


class FixedBeacons:
    def __init__(self, addresses):
        self.addresses = addresses

    def scan(self, duration_s):
        return [BeaconSighting(address=address, rssi=-70) for address in self.addresses]


def load_drivers(filepath) -> List[ActiveDriver]:
    df = pd.read_csv(
        filepath,
        keep_default_na=False,
        dtype={"user_id": str, "plate": str, "bluetooth_mac_hash": str},
    )
    return [row_to_active_driver(row) for row in df.to_dict("records")]


def run_simulation(settings=None, drivers_path=None, with_beacons=True, seed=None):
    settings = settings or load_settings()
    setup_logging(settings=settings)
    print("=== STARTING DRIVER MATCHING SIMULATION ===")

    if drivers_path is None:
        base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        drivers_path = os.path.join(base_dir, "mock_active_drivers.csv")
    generate_mock_drivers(drivers_path, center=CENTER, seed=seed)

    drivers = load_drivers(drivers_path)
    print(f"Loaded {len(drivers)} online drivers.\n")

    store = JsonFileKeyValueStore(settings.event_store_dir)
    matcher = DriverMatcher(InMemoryCandidateSource(drivers))
    if with_beacons:
        scanner = FixedBeacons([f"AA:BB:CC:00:00:{i:02X}" for i in range(0, 40, 3)])
    else:
        scanner = NoBeaconScanner()

    supervisor = MatchingSupervisor()
    capture = EventCapture(
        location_provider=FixedLocation(),
        beacon_scanner=scanner,
        motion_sensor=StillMotionSensor(),
        store=store,
        matcher=matcher,
        supervisor=supervisor,
        beacon_scan_budget_s=settings.beacon_scan_budget_s,
    )

    session = CaptureSession(user_id="evaluator-1")
    event = capture.capture_event(session, "car")
    print(f"Captured event {event.id} with {len(event.nearby_beacons)} beacons.")

    supervisor.job_for(event.id).wait()
    capture.close()
    supervisor.shutdown()

    # 1. Review what the background job stored
    pending = PendingEvents(store, matcher, feedback=FeedbackRecorder(JsonlFeedbackLog(settings.feedback_log_path)))
    review = pending.review(session, event.id)

    print("\n--- Ranked Candidates ---")
    if review.needs_manual_entry:
        _, text = manual_verification_badge()
        print(f"No one nearby: fall back to manual driver identification ({text}).")
        pending.discard(session, event.id)
    for candidate in review.candidates:
        print(
            f"{candidate.user_id} ({candidate.plate}): {candidate.match_score:.1f} "
            f"[{candidate.confidence.value}] {candidate.explanation} - {candidate.verification_text}"
        )

    # 2. Confirm the top candidate, as the evaluator would
    if review.candidates:
        top = review.candidates[0]
        pending.confirm(session, event.id, top, was_correct=True)
        print(f"\nConfirmed {top.user_id}; feedback written to '{settings.feedback_log_path}'.")

    print("\n=== SIMULATION COMPLETE ===")
    return review.candidates

if __name__ == "__main__":
    run_simulation()
