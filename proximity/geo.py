#Purpose: Plain geometry used by candidate search and scoring.
#Great-circle distance between two (lat, lon) points and the
#smallest angle between two compass headings.
#No I/O, no scoring rules.

import math
from typing import Tuple

#internal coordinate type :(lat,lon)
LatLon = Tuple[float, float]

EARTH_RADIUS_M = 6371e3


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance in metres (haversine formula).
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def distance_between(a: LatLon, b: LatLon) -> float:
    return haversine_meters(a[0], a[1], b[0], b[1])


def heading_difference(heading1: float, heading2: float) -> float:
    """
    Smallest angle between two headings, wrapped to [0, 180].
    """
    diff = abs(heading1 - heading2) % 360
    if diff > 180:
        diff = 360 - diff
    return diff


def offset_by_meters(origin: LatLon, north_m: float, east_m: float) -> LatLon:
    """
    Point displaced from `origin` by small north/east offsets (metres).
    Good enough for the ~100 m scales the matcher works at.
    """
    lat, lon = origin
    d_lat = math.degrees(north_m / EARTH_RADIUS_M)
    d_lon = math.degrees(east_m / (EARTH_RADIUS_M * math.cos(math.radians(lat))))
    return (lat + d_lat, lon + d_lon)
