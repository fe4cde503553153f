"""Great-circle distance on the WGS84 sphere approximation."""

import math
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from ..models.geo import Coordinate

EARTH_RADIUS_M = 6_371_000.0


def distance(a: "Coordinate", b: "Coordinate") -> float:
    """Haversine distance between two coordinates.

    Args:
        a: First coordinate
        b: Second coordinate

    Returns:
        Distance in meters
    """
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.lon - a.lon)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    )
    # Rounding can push h just past 1 for near-antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def path_length(points: Sequence["Coordinate"]) -> float:
    """Total length of a polyline in meters.

    Plain left-to-right sum of ``distance`` over consecutive pairs, so the
    result is exactly the sum a caller would compute by hand. Returns 0.0
    for fewer than two points.
    """
    return sum(
        (distance(points[i], points[i + 1]) for i in range(len(points) - 1)),
        0.0,
    )


def straight_line(source: "Coordinate", target: "Coordinate") -> list["Coordinate"]:
    """Two-point direct path between link endpoints."""
    return [source, target]


def endpoints_match(
    points: Sequence["Coordinate"],
    source: "Coordinate",
    target: "Coordinate",
    tolerance_m: float = 50.0,
) -> bool:
    """Check that a path starts at ``source`` and ends at ``target``.

    Routing providers snap endpoints to the nearest road, so an exact
    match is not expected.
    """
    if len(points) < 2:
        return False
    return (
        distance(points[0], source) <= tolerance_m
        and distance(points[-1], target) <= tolerance_m
    )
