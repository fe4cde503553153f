"""Geometry helpers for link paths: great-circle distance and segment math."""

from .geodesy import (
    EARTH_RADIUS_M,
    distance,
    endpoints_match,
    path_length,
    straight_line,
)
from .segments import (
    best_insertion_index,
    distance_to_segment,
    project_onto_segment,
)

__all__ = [
    # Great-circle
    "EARTH_RADIUS_M",
    "distance",
    "path_length",
    "straight_line",
    "endpoints_match",
    # Planar segment ops
    "distance_to_segment",
    "project_onto_segment",
    "best_insertion_index",
]
