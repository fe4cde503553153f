"""FastMCP server for link path computation and editing.

Exposes MCP tools for routing link paths by road, editing them, and
exporting the result. ``--serve`` additionally mirrors the tools as a
REST API via FastAPI.
"""

import logging
import sys
from typing import Any

import structlog
from mcp.server.fastmcp import FastMCP

from .engine import PathEngine
from .errors import InvalidPointIndex, LinkNotFound, LinkPathError
from .models.batch import LinkRouteRequest
from .models.geo import Coordinate
from .models.link_path import PathState
from .topology import LinkTopology

# Configure logging to stderr (required for MCP stdio transport)
# stdio servers must NOT log to stdout as it interferes with JSON-RPC
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,  # Critical: use stderr, not stdout
)

# structlog defaults to printing on stdout; hand its events to the stderr logging setup
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.processors.KeyValueRenderer(key_order=["event"]),
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
)
logger = logging.getLogger(__name__)

mcp = FastMCP(
    name="linkpath_mcp",
    instructions="Compute and edit the geographic route drawn for each network link. "
    "Use linkpath_compute_batch to route links by road, linkpath_insert_point / "
    "linkpath_reset_to_straight to edit, and linkpath_export_geojson for map layers.",
)

_engine: PathEngine | None = None


def get_engine() -> PathEngine:
    """Get the process-wide engine, creating it from the default config."""
    global _engine
    if _engine is None:
        _engine = PathEngine.from_config("default")
    return _engine


def set_engine(engine: PathEngine | None) -> None:
    """Replace the process-wide engine (tests, alternate configs)."""
    global _engine
    _engine = engine


def _error(e: Exception, suggestion: str) -> dict[str, Any]:
    return {
        "isError": True,
        "error": str(e),
        "error_type": type(e).__name__,
        "suggestion": suggestion,
    }


def _link_error(e: LinkPathError) -> dict[str, Any]:
    if isinstance(e, LinkNotFound):
        return _error(e, "Use linkpath_list_paths to get valid link IDs")
    if isinstance(e, InvalidPointIndex):
        return _error(e, "Only interior points (not the endpoints) can be edited")
    return _error(e, "Check the link's points; a path needs at least 2 points")


def _path_response(engine: PathEngine, link_id: str, include_geojson: bool = False) -> dict[str, Any]:
    from .export.geojson import path_to_feature

    path = engine.get_path(link_id)
    result = path.model_dump(mode="json")
    if include_geojson:
        result["feature"] = path_to_feature(path)
    return result


@mcp.tool(
    annotations={
        "readOnlyHint": False,  # Writes computed paths
        "destructiveHint": False,  # Manual edits are kept unless force=True
        "idempotentHint": False,
        "openWorldHint": True,  # Calls external routing services
    }
)
async def linkpath_compute_batch(
    links: list[dict[str, Any]],
    force: bool = False,
) -> dict[str, Any]:
    """Compute road-following paths for a batch of links.

    Each link is routed independently. Links the provider cannot route get
    a straight line and are listed in ``failed``; manually edited links are
    skipped unless ``force`` is set.

    Args:
        links: List of {link_id, source: [lat, lon], target: [lat, lon]}
        force: Recompute manually edited links too (default False)

    Returns:
        Dict with succeeded, failed, skipped link IDs, failures and warning
    """
    try:
        requests = [LinkRouteRequest(**link) for link in links]
    except ValueError as e:
        return _error(e, "Each link needs link_id, source [lat, lon] and target [lat, lon]")

    try:
        result = await get_engine().compute_batch(requests, force=force)
    except Exception as e:
        logger.exception("Batch computation failed")
        return _error(e, "Check routing configuration with config_list")

    response = result.model_dump()
    response["warning"] = result.warning_message()
    return response


@mcp.tool(
    annotations={
        "readOnlyHint": False,
        "destructiveHint": True,  # Drops paths of links missing from the topology
        "idempotentHint": False,
        "openWorldHint": True,
    }
)
async def linkpath_compute_topology(
    links: list[dict[str, Any]],
    nodes: dict[str, list[float]],
    force: bool = False,
    sync: bool = True,
) -> dict[str, Any]:
    """Route every link of a topology snapshot.

    Args:
        links: List of {link_id, source_node_id, target_node_id}
        nodes: Node ID -> [lat, lon]
        force: Recompute manually edited links too (default False)
        sync: Create records for new links and drop records of deleted links

    Returns:
        Batch result plus unresolved links (nodes without coordinates)
    """
    try:
        topology = LinkTopology.from_records(links, nodes)
    except (TypeError, ValueError) as e:
        return _error(e, "links need link_id, source_node_id, target_node_id; nodes map id -> [lat, lon]")

    engine = get_engine()
    sync_result = engine.sync_topology(topology) if sync else {"created": [], "removed": []}

    try:
        result = await engine.compute_topology(topology, force=force)
    except Exception as e:
        logger.exception("Topology computation failed")
        return _error(e, "Check routing configuration with config_list")

    response = result.model_dump()
    response["warning"] = result.warning_message()
    response["unresolved"] = topology.unresolved_links()
    response["sync"] = sync_result
    return response


@mcp.tool(
    annotations={
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def linkpath_get_path(
    link_id: str,
    include_geojson: bool = False,
) -> dict[str, Any]:
    """Get the stored path of one link.

    Args:
        link_id: Link identifier
        include_geojson: Include a GeoJSON Feature for the path

    Returns:
        Path record with points, state, distance_meters, last_updated
    """
    try:
        return _path_response(get_engine(), link_id, include_geojson)
    except LinkNotFound as e:
        return _link_error(e)


@mcp.tool(
    annotations={
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def linkpath_list_paths(
    state: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> dict[str, Any]:
    """List stored link paths with pagination.

    Args:
        state: Filter by state: uncomputed, computed_by_provider,
            manually_edited, fallback_straight
        limit: Maximum paths to return (default 50)
        offset: Offset for pagination (default 0)

    Returns:
        Dict with total, offset, limit, paths (summaries), has_more, next_offset
    """
    try:
        state_filter = PathState(state) if state else None
    except ValueError as e:
        return _error(e, f"Valid states: {', '.join(s.value for s in PathState)}")

    paths = get_engine().list_paths(state_filter)
    page = paths[offset : offset + limit]
    total = len(paths)
    has_more = offset + limit < total

    return {
        "total": total,
        "offset": offset,
        "limit": limit,
        "count": len(page),
        "paths": [p.to_summary() for p in page],
        "has_more": has_more,
        "next_offset": offset + limit if has_more else None,
    }


@mcp.tool(
    annotations={
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": False,  # Each call adds a point
        "openWorldHint": False,
    }
)
async def linkpath_insert_point(
    link_id: str,
    point: list[float],
    index: int | None = None,
) -> dict[str, Any]:
    """Add a point to a link's path.

    Without ``index`` the point goes into the nearest segment.

    Args:
        link_id: Link identifier
        point: [lat, lon] of the new point
        index: Explicit insert position between the endpoints (optional)

    Returns:
        Updated path record (state becomes manually_edited)
    """
    engine = get_engine()
    try:
        coord = Coordinate.model_validate(point)
        if index is None:
            engine.insert_point(link_id, coord)
        else:
            engine.insert_point_at(link_id, index, coord)
        return _path_response(engine, link_id)
    except LinkPathError as e:
        return _link_error(e)
    except ValueError as e:
        return _error(e, "point must be [lat, lon] in degrees")


@mcp.tool(
    annotations={
        "readOnlyHint": False,
        "destructiveHint": True,
        "idempotentHint": False,
        "openWorldHint": False,
    }
)
async def linkpath_remove_point(link_id: str, index: int) -> dict[str, Any]:
    """Remove an interior point from a link's path.

    Args:
        link_id: Link identifier
        index: Index of the point to remove (endpoints cannot be removed)

    Returns:
        Updated path record
    """
    engine = get_engine()
    try:
        engine.remove_point(link_id, index)
        return _path_response(engine, link_id)
    except LinkPathError as e:
        return _link_error(e)


@mcp.tool(
    annotations={
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def linkpath_move_point(link_id: str, index: int, point: list[float]) -> dict[str, Any]:
    """Move an interior point of a link's path.

    Args:
        link_id: Link identifier
        index: Index of the point to move (endpoints cannot be moved)
        point: New [lat, lon]

    Returns:
        Updated path record
    """
    engine = get_engine()
    try:
        engine.move_point(link_id, index, Coordinate.model_validate(point))
        return _path_response(engine, link_id)
    except LinkPathError as e:
        return _link_error(e)
    except ValueError as e:
        return _error(e, "point must be [lat, lon] in degrees")


@mcp.tool(
    annotations={
        "readOnlyHint": False,
        "destructiveHint": True,  # Discards edits and computed routes
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def linkpath_reset_to_straight(
    link_id: str,
    source: list[float] | None = None,
    target: list[float] | None = None,
) -> dict[str, Any]:
    """Replace a link's path with a straight line between its endpoints.

    Args:
        link_id: Link identifier
        source: Current source node [lat, lon] (default: path's first point)
        target: Current target node [lat, lon] (default: path's last point)

    Returns:
        Updated path record (state becomes fallback_straight)
    """
    engine = get_engine()
    try:
        src = Coordinate.model_validate(source) if source is not None else None
        tgt = Coordinate.model_validate(target) if target is not None else None
        engine.reset_to_straight(link_id, src, tgt)
        return _path_response(engine, link_id)
    except LinkPathError as e:
        return _link_error(e)
    except ValueError as e:
        return _error(e, "source and target must be [lat, lon] in degrees")


@mcp.tool(
    annotations={
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def linkpath_export_geojson(states: list[str] | None = None) -> dict[str, Any]:
    """Export stored link paths as a GeoJSON FeatureCollection.

    Args:
        states: Only include paths in these states (default: all)

    Returns:
        GeoJSON FeatureCollection with LineString features in [lon, lat] order
    """
    try:
        state_filter = [PathState(s) for s in states] if states else None
    except ValueError as e:
        return _error(e, f"Valid states: {', '.join(s.value for s in PathState)}")
    return get_engine().export_geojson(state_filter)


@mcp.tool(
    annotations={
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def linkpath_provider_stats() -> dict[str, Any]:
    """Routing provider success/failure counters and route cache usage."""
    engine = get_engine()
    return {
        "providers": engine.settings.routing.providers,
        "profile": engine.settings.routing.profile,
        "stats": engine.provider_stats(),
    }


@mcp.tool(
    annotations={
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def config_list() -> dict[str, Any]:
    """List available engine configurations.

    Returns:
        Dict with configs array containing {name, description} objects
    """
    from .config.loader import list_configs

    try:
        configs = list_configs()
        return {
            "configs": configs,
            "count": len(configs),
        }
    except Exception as e:
        logger.exception("Failed to list configs")
        return {
            "isError": True,
            "error": str(e),
            "configs": [],
        }


def run_server():
    """Run the MCP server (stdio transport)."""
    mcp.run()


def run_with_rest_server(host: str = "0.0.0.0", port: int = 8766):
    """Run MCP server with a REST mirror via FastAPI.

    This mode serves:
    - MCP endpoints at /mcp (SSE transport)
    - REST API at /api/*

    Args:
        host: Host to bind to
        port: Port to listen on
    """
    import uvicorn
    from fastapi import Body, FastAPI, HTTPException
    from fastapi.middleware.cors import CORSMiddleware

    app = FastAPI(
        title="Link Path Engine",
        description="Road-following paths for network links",
        version="0.1.0",
    )

    # Add CORS middleware for development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount MCP SSE endpoint
    app.mount("/mcp", mcp.sse_app())

    def _unwrap(result: dict[str, Any]) -> dict[str, Any]:
        if result.get("isError"):
            status = 404 if result.get("error_type") == "LinkNotFound" else 400
            raise HTTPException(status_code=status, detail=result["error"])
        return result

    @app.get("/api/paths")
    async def api_list_paths(state: str | None = None, limit: int = 50, offset: int = 0):
        return _unwrap(await linkpath_list_paths(state, limit, offset))

    @app.get("/api/paths/{link_id}")
    async def api_get_path(link_id: str, include_geojson: bool = False):
        return _unwrap(await linkpath_get_path(link_id, include_geojson))

    @app.post("/api/batch")
    async def api_compute_batch(links: list[dict] = Body(...), force: bool = False):
        return _unwrap(await linkpath_compute_batch(links, force))

    @app.post("/api/paths/{link_id}/points")
    async def api_insert_point(link_id: str, point: list[float] = Body(...), index: int | None = None):
        return _unwrap(await linkpath_insert_point(link_id, point, index))

    @app.delete("/api/paths/{link_id}/points/{index}")
    async def api_remove_point(link_id: str, index: int):
        return _unwrap(await linkpath_remove_point(link_id, index))

    @app.post("/api/paths/{link_id}/reset")
    async def api_reset(link_id: str, body: dict | None = Body(default=None)):
        body = body or {}
        return _unwrap(
            await linkpath_reset_to_straight(link_id, body.get("source"), body.get("target"))
        )

    @app.get("/api/geojson")
    async def api_geojson():
        return _unwrap(await linkpath_export_geojson())

    @app.get("/api/stats")
    async def api_stats():
        return await linkpath_provider_stats()

    logger.info(f"Starting Link Path server on http://{host}:{port}")
    logger.info(f"  - REST API:   http://{host}:{port}/api/")
    logger.info(f"  - MCP (SSE):  http://{host}:{port}/mcp")

    uvicorn.run(app, host=host, port=port)


def main():
    """Main entry point.

    Supports different modes:
    - Default: MCP stdio transport (for MCP clients)
    - --serve: HTTP server with REST API and MCP SSE
    """
    if len(sys.argv) > 1 and sys.argv[1] == "--serve":
        # Parse optional host:port
        host = "0.0.0.0"
        port = 8766

        if len(sys.argv) > 2:
            addr = sys.argv[2]
            if ":" in addr:
                host, port_str = addr.split(":", 1)
                port = int(port_str)
            else:
                port = int(addr)

        run_with_rest_server(host, port)
    else:
        run_server()


if __name__ == "__main__":
    main()
