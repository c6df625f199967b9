from tmdb_mcp.app.tools.base import BaseTool
from tmdb_mcp.app.tools.defaults import build_default_tool_registry
from tmdb_mcp.app.tools.registry import ToolRegistry

__all__ = [
    "BaseTool",
    "ToolRegistry",
    "build_default_tool_registry",
]
