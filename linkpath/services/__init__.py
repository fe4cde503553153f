"""Route computation and manual editing services."""

from .computation import RouteComputationService, anchor_endpoints
from .editor import PathEditor

__all__ = [
    "RouteComputationService",
    "PathEditor",
    "anchor_endpoints",
]
