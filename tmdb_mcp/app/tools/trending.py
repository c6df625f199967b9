"""일간 또는 주간 인기 영화를 가져오는 도구예요."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from tmdb_mcp.app.tools.base import BaseTool
from tmdb_mcp.app.utils import format_movie_list

MAX_TRENDING = 10


class GetTrendingArguments(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    time_window: Literal["day", "week"] = Field(alias="timeWindow")


class GetTrendingTool(BaseTool):
    arguments_model = GetTrendingArguments

    @property
    def name(self) -> str:
        return "get_trending"

    @property
    def description(self) -> str:
        return "Get trending movies for a time window"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "timeWindow": {
                    "type": "string",
                    "enum": ["day", "week"],
                    "description": "Time window for trending movies",
                },
            },
            "required": ["timeWindow"],
        }

    async def execute(self, arguments: GetTrendingArguments) -> str:
        page = await self._client.fetch_movie_page(f"/trending/movie/{arguments.time_window}")
        trending = format_movie_list(page.results[:MAX_TRENDING], include_id=False)
        return f"Trending movies for the {arguments.time_window}:\n\n{trending}"
