#Purpose: The matching backend "adapter/client".
#Sole responsibility: talk to the backend via HTTP and return normalized outputs.
#Encapsulates backend-specific details:
#RPC/table URL construction
#column naming of the active-drivers rows (location_lat, motion_speed, ...)
#unit conversion at the boundary (rows carry m/s, the matcher compares km/h)
#timeouts + a bounded retry with backoff
#It should not contain scoring or ranking rules.

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import requests

from drivers.models import ActiveDriver, DriverLocation, DriverMotion
from events.sensors import ms_to_kmh
from settings import Settings, load_settings

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Raised when the backend cannot answer after all attempts."""
    pass


class MatchingBackendClient:
    """
    Matching backend Adapter / Client

    Implements the CandidateSource contract (get_active_drivers) and the
    feedback / driver-location write paths used around it.

    Every call is bounded by `timeout` and retried `retries` times
    (default: once) with a linear backoff, so a background matching job
    can never hang on an unresponsive backend.
    """
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        retries: Optional[int] = None,
        backoff_s: Optional[float] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
        settings: Optional[Settings] = None,
    ):
        settings = settings or load_settings()
        self.base_url = (base_url or settings.backend_url or "").rstrip("/")
        self.api_key = api_key if api_key is not None else settings.backend_api_key
        self.timeout = timeout if timeout is not None else settings.backend_timeout_s
        self.retries = max(0, retries if retries is not None else settings.backend_retries)
        self.backoff_s = backoff_s if backoff_s is not None else settings.backend_backoff_s
        self.session = session or requests.Session()
        self._sleep = sleep

        if not self.base_url:
            raise ValueError("Matching backend URL not set. Please set MATCHING_BACKEND_URL in the .env file.")

    #----------------
    # Internal helpers
    #----------------
    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _post(self, path: str, payload: Any) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        attempts = self.retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                response = self.session.post(
                    url,
                    json=payload,
                    headers=self._headers(),
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                last_error = exc
            else:
                if response.status_code >= 500:
                    last_error = BackendError(f"Backend error {response.status_code} on {path}")
                elif response.status_code >= 400:
                    # client errors will not get better by retrying
                    raise BackendError(f"Backend rejected {path}: {response.status_code} {response.text}")
                else:
                    return response.json() if response.content else None

            if attempt < attempts:
                delay = self.backoff_s * attempt
                logger.warning(
                    "Backend call %s failed (attempt %d/%d): %s; retrying in %.2fs",
                    path, attempt, attempts, last_error, delay,
                )
                self._sleep(delay)

        raise BackendError(f"Backend call {path} failed after {attempts} attempts: {last_error}") from last_error

    #----------------
    # CandidateSource contract
    #----------------
    def get_active_drivers(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float,
        time_start: str,
        time_end: str,
    ) -> List[ActiveDriver]:
        """
        calls the backend spatial RPC and returns normalized ActiveDriver rows.
        """
        rows = self._post(
            "rpc/get_active_drivers_in_area",
            {
                "center_lat": latitude,
                "center_lon": longitude,
                "radius_meters": radius_meters,
                "time_start": time_start,
                "time_end": time_end,
            },
        )
        return [row_to_active_driver(row) for row in rows or []]

    #----------------
    # write paths
    #----------------
    def insert_feedback(self, record: Dict[str, Any]) -> None:
        self._post("matching_feedback", record)

    def report_driver_locations(self, rows: List[Dict[str, Any]]) -> None:
        if not rows:
            return
        self._post("driver_locations", rows)


def row_to_active_driver(row: Dict[str, Any]) -> ActiveDriver:
    """
    Map one backend row to an ActiveDriver, converting speed m/s -> km/h.
    """
    speed_ms = row.get("motion_speed") or 0.0
    heading = row.get("motion_heading") or 0.0
    return ActiveDriver(
        user_id=str(row["user_id"]),
        plate=row.get("plate") or "",
        location=DriverLocation(
            latitude=float(row["location_lat"]),
            longitude=float(row["location_lon"]),
            captured_at=row.get("location_captured_at") or "",
        ),
        motion=DriverMotion(speed=ms_to_kmh(float(speed_ms)), heading=float(heading)),
        beacon_hash=row.get("bluetooth_mac_hash") or None,
    )
