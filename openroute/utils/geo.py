# path: open-route-api/openroute/utils/geo.py

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple
import math


EARTH_RADIUS_M = 6371000.0


def haversine_m(a_lat: float, a_lng: float, b_lat: float, b_lng: float) -> float:
    phi1 = math.radians(a_lat)
    phi2 = math.radians(b_lat)
    dphi = math.radians(b_lat - a_lat)
    dlmb = math.radians(b_lng - a_lng)

    s = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(s), math.sqrt(1 - s))


def polyline_length_m(path: Sequence[Tuple[float, float]]) -> float:
    """Length of a [lat, lng] polyline in metres."""
    total = 0.0
    for i in range(1, len(path)):
        a_lat, a_lng = path[i - 1]
        b_lat, b_lng = path[i]
        total += haversine_m(a_lat, a_lng, b_lat, b_lng)
    return total


def straight_line_path(points: Iterable) -> List[Tuple[float, float]]:
    # Accepts Waypoint models or anything with .lat/.lng
    return [(float(p.lat), float(p.lng)) for p in points]


def path_passes_near(path: Iterable[Sequence[float]], lat: float, lng: float, threshold_m: float) -> bool:
    # Linear scan; vertices only, segments between them are not interpolated.
    for coord in path:
        if haversine_m(lat, lng, coord[0], coord[1]) < threshold_m:
            return True
    return False
