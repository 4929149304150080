"""FastMCP server for placement checks.

Exposes MCP tools so a map editor or agent can create a session, push
entity edits and read back the triggered rules.
"""

import logging
import sys
import uuid
from typing import Any

import structlog
from mcp.server.fastmcp import FastMCP

from .loaders.geojson_loader import load_reference_layers
from .report import DetailLevel
from .rules.loader import list_rulesets, load_ruleset
from .session import PlacementSession

# Configure logging to stderr (required for MCP stdio transport)
# stdio servers must NOT log to stdout as it interferes with JSON-RPC
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)
structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=False),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)
logger = logging.getLogger(__name__)

mcp = FastMCP(
    name="placement_check_mcp",
    instructions="Check user-drawn placement areas against fire safety, size and zone rules. "
    "Use placement_create_session once per map, placement_upsert_entity on every edit, "
    "and placement_check_entity to read the current issues.",
)

# In-memory sessions for the lifetime of the process
_sessions: dict[str, PlacementSession] = {}


def _error(e: Exception, suggestion: str) -> dict[str, Any]:
    return {"isError": True, "error": str(e), "suggestion": suggestion}


def _get_session(session_id: str) -> PlacementSession:
    session = _sessions.get(session_id)
    if session is None:
        raise KeyError(f"Unknown session '{session_id}'")
    return session


@mcp.tool(
    annotations={
        "readOnlyHint": False,  # Creates a session
        "destructiveHint": False,
        "idempotentHint": False,  # New session id per call
        "openWorldHint": False,
    }
)
async def placement_create_session(
    ruleset: str = "default",
    rules_override: dict[str, Any] | None = None,
    layers_geojson: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Create a checking session for one map.

    Args:
        ruleset: Name of a packaged ruleset (see placement_list_rulesets)
        rules_override: Optional overrides merged into the ruleset, e.g. {"max_cluster_size": 700}
        layers_geojson: Optional FeatureCollection of reference zones grouped by the "type" property

    Returns:
        Dict with session_id, the rule ids in catalog order and loaded layer names
    """
    try:
        rules = load_ruleset(ruleset, rules_override)
        warnings: list[str] = []
        layers = None
        if layers_geojson:
            loaded = load_reference_layers(layers_geojson)
            layers = loaded.layers
            warnings = loaded.warnings

        session = PlacementSession(rules=rules, layers=layers)
        session_id = str(uuid.uuid4())[:8]
        _sessions[session_id] = session

        return {
            "session_id": session_id,
            "ruleset": ruleset,
            "rules": [r.rule_id for r in session.engine.rules],
            "layers": session.layers.names,
            "warnings": warnings,
        }

    except Exception as e:
        logger.exception("Session creation failed")
        return _error(e, "Check the ruleset name and that layers_geojson is a FeatureCollection")


@mcp.tool(
    annotations={
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def placement_load_layers(
    session_id: str,
    layers_geojson: dict[str, Any],
    group_property: str = "type",
) -> dict[str, Any]:
    """Add reference layers to a session and re-check every entity.

    Args:
        session_id: Session from placement_create_session
        layers_geojson: FeatureCollection of reference polygons
        group_property: Feature property naming each feature's layer

    Returns:
        Dict with layer names, feature counts and any loader warnings
    """
    try:
        session = _get_session(session_id)
        loaded = load_reference_layers(layers_geojson, group_property=group_property)
        for layer in loaded.layers:
            session.layers.add(layer)
        session.check_all_entities()

        return {
            "session_id": session_id,
            "layers": session.layers.names,
            "feature_counts": loaded.feature_counts,
            "warnings": loaded.warnings,
        }

    except Exception as e:
        logger.exception("Layer loading failed")
        return _error(e, "layers_geojson must be a GeoJSON FeatureCollection of polygons")


@mcp.tool(
    annotations={
        "readOnlyHint": False,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def placement_upsert_entity(
    session_id: str,
    entity: dict[str, Any],
    detail_level: DetailLevel = "compact",
) -> dict[str, Any]:
    """Create an entity or apply changes to an existing one, then check it.

    Args:
        session_id: Session from placement_create_session
        entity: Entity fields; must include "id". For existing entities only
                the given fields change.
        detail_level: "compact" for display fields, "full" for every verdict

    Returns:
        Entity summary with area, calculated need, worst severity and issues
    """
    try:
        session = _get_session(session_id)
        entity_id = entity.get("id")
        if not entity_id:
            raise ValueError("Entity must have an 'id'")

        if entity_id in session.repository:
            changes = {k: v for k, v in entity.items() if k != "id"}
            session.update_entity(entity_id, **changes)
        else:
            session.add_entity(entity)

        return session.summary(entity_id, detail_level)

    except Exception as e:
        logger.exception("Entity update failed")
        return _error(e, "Check the entity fields, coordinates are [[x, y], ...] in meters")


@mcp.tool(
    annotations={
        "readOnlyHint": False,
        "destructiveHint": True,  # Deletes an entity
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def placement_remove_entity(session_id: str, entity_id: str) -> dict[str, Any]:
    """Remove an entity from a session.

    Args:
        session_id: Session from placement_create_session
        entity_id: Entity to delete

    Returns:
        Dict with removed flag
    """
    try:
        session = _get_session(session_id)
        return {"entity_id": entity_id, "removed": session.remove_entity(entity_id)}

    except Exception as e:
        logger.exception("Entity removal failed")
        return _error(e, "Use a session_id returned by placement_create_session")


@mcp.tool(
    annotations={
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def placement_check_entity(
    session_id: str,
    entity_id: str,
    detail_level: DetailLevel = "compact",
) -> dict[str, Any]:
    """Re-run every rule for an entity and return its summary.

    Args:
        session_id: Session from placement_create_session
        entity_id: Entity to check
        detail_level: "compact" for display fields, "full" for every verdict

    Returns:
        Entity summary with cluster members added
    """
    try:
        session = _get_session(session_id)
        session.check(entity_id)
        summary = session.summary(entity_id, detail_level)
        cluster = session.cluster(entity_id)
        summary["cluster"] = {
            "total_area": round(cluster.total_area),
            "members": cluster.member_ids,
        }
        return summary

    except Exception as e:
        logger.exception("Entity check failed")
        return _error(e, "Use ids returned by placement_create_session and placement_upsert_entity")


@mcp.tool(
    annotations={
        "readOnlyHint": True,
        "destructiveHint": False,
        "idempotentHint": True,
        "openWorldHint": False,
    }
)
async def placement_list_rulesets() -> dict[str, Any]:
    """List the packaged rulesets.

    Returns:
        Dict with a list of {name, description}
    """
    return {"rulesets": list_rulesets()}


def run_server():
    """Run the MCP server (stdio transport)."""
    mcp.run()


def main():
    """Main entry point."""
    run_server()


if __name__ == "__main__":
    main()
