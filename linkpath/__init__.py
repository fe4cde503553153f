"""Link Path Engine - Road-following geographic paths for network links.

This package provides:
- Batch route computation through OSRM / Mapbox / OpenRouteService
- Straight-line fallback per link when routing fails
- Manual path editing that survives later recomputation
- GeoJSON export of link paths

Core functionality can be imported without MCP server dependencies:
    from linkpath.engine import PathEngine
    from linkpath.store import PathStore

To get the MCP server instance:
    from linkpath import get_mcp
    mcp = get_mcp()
"""

__version__ = "0.1.0"


def get_mcp():
    """Get the MCP server instance (lazy import to avoid coupling).

    Returns:
        FastMCP: The configured MCP server instance.
    """
    from .server import mcp
    return mcp


def get_engine_class():
    """Get the PathEngine class for direct use."""
    from .engine import PathEngine
    return PathEngine


__all__ = ["get_mcp", "get_engine_class", "__version__"]
