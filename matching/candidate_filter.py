#Purpose: Candidate retrieval (who could have been there at all).
#Builds the base candidate set before scoring.
#Typical responsibilities:
#search radius around the event location
#time window around the event timestamp
#talking to whatever CandidateSource is plugged in
#degrading a failed query to "no one nearby"

#Output: raw ActiveDriver rows (may contain duplicates per user, not ranked).

from __future__ import annotations

import datetime
import logging
from typing import List, Protocol, Sequence, Tuple

from drivers.models import ActiveDriver
from drivers.policy import MatchingPolicy
from events.models import CapturedEvent
from events.timestamps import parse_iso, to_iso
from proximity.geo import distance_between

logger = logging.getLogger(__name__)


class CandidateSource(Protocol):
    def get_active_drivers(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float,
        time_start: str,
        time_end: str,
    ) -> List[ActiveDriver]:
        ...


def query_window(event: CapturedEvent, policy: MatchingPolicy) -> Tuple[str, str]:
    """
    [timestamp - window, timestamp + window] as ISO strings.
    """
    center = parse_iso(event.timestamp)
    window = datetime.timedelta(seconds=policy.time_window_seconds)
    return to_iso(center - window), to_iso(center + window)


def fetch_active_drivers(
    source: CandidateSource,
    event: CapturedEvent,
    policy: MatchingPolicy,
) -> List[ActiveDriver]:
    """
    Query the source for drivers online around the event.
    A failing source is treated like an empty area so the consumer can
    fall back to manual identification.
    """
    time_start, time_end = query_window(event, policy)
    try:
        drivers = source.get_active_drivers(
            event.location.latitude,
            event.location.longitude,
            policy.max_search_radius_meters,
            time_start,
            time_end,
        )
    except Exception:
        logger.exception("Candidate source query failed for event %s", event.id)
        return []

    logger.info("Found %d active drivers around event %s", len(drivers), event.id)
    return list(drivers)


class InMemoryCandidateSource:
    """
    CandidateSource over a fixed list of rows.
    Applies the same radius/time filter a spatial backend would.
    """
    def __init__(self, drivers: Sequence[ActiveDriver]):
        self.drivers = list(drivers)

    def get_active_drivers(
        self,
        latitude: float,
        longitude: float,
        radius_meters: float,
        time_start: str,
        time_end: str,
    ) -> List[ActiveDriver]:
        start = parse_iso(time_start)
        end = parse_iso(time_end)

        nearby = []
        for driver in self.drivers:
            captured_at = parse_iso(driver.location.captured_at)
            if not start <= captured_at <= end:
                continue
            distance = distance_between((latitude, longitude), driver.coordinates)
            if distance > radius_meters:
                continue
            nearby.append(driver)
        return nearby
