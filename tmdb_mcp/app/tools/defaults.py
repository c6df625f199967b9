"""기본 TMDB 도구를 등록한 ToolRegistry를 생성하는 팩토리예요."""

from __future__ import annotations

from tmdb_mcp.app.tmdb_client import TmdbClient
from tmdb_mcp.app.tools.recommendations import GetRecommendationsTool
from tmdb_mcp.app.tools.registry import ToolRegistry
from tmdb_mcp.app.tools.search_movies import SearchMoviesTool
from tmdb_mcp.app.tools.trending import GetTrendingTool


def build_default_tool_registry(client: TmdbClient) -> ToolRegistry:
    """기본 도구 3개가 등록된 `ToolRegistry`를 생성해요.

    등록 순서가 tools/list 응답 순서가 돼요.
    """
    registry = ToolRegistry()
    registry.register(SearchMoviesTool(client))
    registry.register(GetRecommendationsTool(client))
    registry.register(GetTrendingTool(client))
    return registry
