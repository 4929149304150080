"""Placement Check - Rule checks for user-drawn placement areas on a shared map.

This package provides:
- Per-entity rules (size, calculated need, power, missing fields, overlaps)
- Zone rules against reference layers (fire roads, borders, hazard zones)
- Cluster aggregation of buffered overlaps with a spatial cache
- MCP tools for editing sessions

Core functionality can be imported without MCP server dependencies:
    from placement_check.session import PlacementSession
    from placement_check.rules import RuleEngine

To get the MCP server instance:
    from placement_check import get_mcp
    mcp = get_mcp()
"""

__version__ = "0.1.0"


def get_mcp():
    """Get the MCP server instance (lazy import to avoid coupling).

    Returns:
        FastMCP: The configured MCP server instance.

    Example:
        from placement_check import get_mcp
        mcp = get_mcp()
    """
    from .server import mcp
    return mcp


# Expose core modules for direct import without MCP dependency
def get_session():
    """Get the session module for direct use."""
    from . import session
    return session


def get_engine():
    """Get the rule engine module for direct use."""
    from .rules import engine
    return engine


__all__ = ["get_mcp", "get_session", "get_engine", "__version__"]
