from __future__ import annotations

from tmdb_mcp.bootstrap.container import RuntimeComponents, build_runtime_components
from tmdb_mcp.bootstrap.lifespan import create_lifespan

__all__ = [
    "RuntimeComponents",
    "build_runtime_components",
    "create_lifespan",
]
