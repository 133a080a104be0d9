from __future__ import annotations

import math

from heading_geotagger.core.photo_record import Coordinate

def initial_bearing(prev: Coordinate, curr: Coordinate) -> float:
    """Great-circle initial bearing from ``prev`` to ``curr`` in degrees, (-180, 180]."""
    phi1 = math.radians(prev.lat)
    phi2 = math.radians(curr.lat)
    dlon = math.radians(curr.lon - prev.lon)

    y = math.sin(dlon) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlon)
    # atan2(0, 0) is 0.0, so identical positions give due north.
    return math.degrees(math.atan2(y, x))

def normalize_degrees(value: float) -> float:
    out = ((value % 360.0) + 360.0) % 360.0
    # A tiny negative input makes the modulo land on 360.0 exactly.
    if out >= 360.0:
        out = 0.0
    return out

def bearing(prev: Coordinate, curr: Coordinate, adjustment: float = 0.0) -> float:
    """Compass bearing in [0, 360) from ``prev`` to ``curr`` plus ``adjustment`` degrees.

    The adjustment compensates for a camera mounted at a fixed angle to the
    direction of travel; it may be negative.
    """
    return normalize_degrees(initial_bearing(prev, curr) + adjustment)
