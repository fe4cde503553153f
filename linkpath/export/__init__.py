"""Export utilities for link paths."""

from .geojson import (
    path_to_feature,
    path_to_linestring,
    paths_to_feature_collection,
)

__all__ = [
    "path_to_feature",
    "path_to_linestring",
    "paths_to_feature_collection",
]
