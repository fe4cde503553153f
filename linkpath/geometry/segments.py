"""Point-to-segment operations used to place operator-added path points.

These treat (lat, lon) as a flat (x, y) plane. The approximation only holds
for short segments at map zoom scale, which is all the insertion heuristic
needs. Reported distances never come from here; see ``geodesy``.
"""

from typing import Sequence

from shapely.geometry import LineString, Point

from ..models.geo import Coordinate


def _to_point(c: Coordinate) -> Point:
    return Point(c.lat, c.lon)


def project_onto_segment(
    point: Coordinate,
    seg_start: Coordinate,
    seg_end: Coordinate,
) -> tuple[float, Coordinate]:
    """Project a point onto a segment.

    Args:
        point: Point to project
        seg_start: Segment start
        seg_end: Segment end

    Returns:
        Tuple of (t, projection) with t clamped to [0, 1]
    """
    if seg_start == seg_end:
        return 0.0, seg_start

    line = LineString([seg_start.as_tuple(), seg_end.as_tuple()])
    t = line.project(_to_point(point), normalized=True)
    t = max(0.0, min(1.0, t))
    proj = line.interpolate(t, normalized=True)
    return t, Coordinate(lat=proj.x, lon=proj.y)


def distance_to_segment(
    point: Coordinate,
    seg_start: Coordinate,
    seg_end: Coordinate,
) -> float:
    """Planar distance from a point to a segment, in degree units.

    Zero-length segments degrade to point-to-point distance.
    """
    p = _to_point(point)
    if seg_start == seg_end:
        return p.distance(_to_point(seg_start))
    return LineString([seg_start.as_tuple(), seg_end.as_tuple()]).distance(p)


def best_insertion_index(points: Sequence[Coordinate], new_point: Coordinate) -> int:
    """Index at which ``new_point`` should be spliced into ``points``.

    Picks the segment closest to the new point and returns the index just
    after its start, so the point lands between the segment's endpoints.
    Ties go to the lowest segment index. Paths with fewer than two points
    have no segment; the point is appended.
    """
    if len(points) < 2:
        return len(points)

    best_index = 1
    best_distance = float("inf")
    for i in range(len(points) - 1):
        d = distance_to_segment(new_point, points[i], points[i + 1])
        if d < best_distance:
            best_distance = d
            best_index = i + 1
    return best_index
