"""Pydantic models for the link path engine."""

from .geo import Coordinate, LinkEndpoint
from .link_path import LinkPath, PathState
from .batch import BatchResult, LinkRouteRequest
from .settings import EditorSettings, EngineSettings, RoutingSettings

__all__ = [
    # Geography
    "Coordinate",
    "LinkEndpoint",
    # Paths
    "LinkPath",
    "PathState",
    # Batches
    "LinkRouteRequest",
    "BatchResult",
    # Settings
    "EngineSettings",
    "RoutingSettings",
    "EditorSettings",
]
