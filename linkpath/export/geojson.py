"""GeoJSON export of link paths."""

from typing import Any, Iterable

from shapely.geometry import LineString, mapping

from ..models.link_path import LinkPath, PathState


def path_to_linestring(path: LinkPath) -> LineString:
    """Convert a path to a Shapely LineString in (lon, lat) order."""
    return LineString([p.as_lonlat() for p in path.points])


def path_to_feature(path: LinkPath) -> dict[str, Any]:
    """Convert a single link path to a GeoJSON Feature."""
    geometry = mapping(path_to_linestring(path))
    return {
        "type": "Feature",
        "geometry": {
            "type": geometry["type"],
            "coordinates": [list(c) for c in geometry["coordinates"]],
        },
        "properties": {
            "id": path.link_id,
            "kind": "link_path",
            "state": path.state.value,
            "distance_meters": path.distance_meters,
            "num_points": len(path.points),
            "provider": path.provider,
            "last_updated": path.last_updated.isoformat(),
        },
    }


def paths_to_feature_collection(
    paths: Iterable[LinkPath],
    states: Iterable[PathState] | None = None,
) -> dict[str, Any]:
    """Convert link paths to a GeoJSON FeatureCollection.

    Args:
        paths: Paths to export
        states: Only export paths in these states (default: all)

    Returns:
        GeoJSON FeatureCollection dict with per-state counts in properties
    """
    allowed = set(states) if states is not None else None
    features = []
    counts: dict[str, int] = {}
    total_length = 0.0

    for path in paths:
        if allowed is not None and path.state not in allowed:
            continue
        features.append(path_to_feature(path))
        counts[path.state.value] = counts.get(path.state.value, 0) + 1
        total_length += path.distance_meters

    return {
        "type": "FeatureCollection",
        "features": features,
        "properties": {
            "num_links": len(features),
            "by_state": counts,
            "total_distance_meters": total_length,
        },
    }
