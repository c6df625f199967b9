"""제목이나 키워드로 영화를 검색하는 도구예요."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tmdb_mcp.app.tools.base import BaseTool
from tmdb_mcp.app.utils import format_movie_list


class SearchMoviesArguments(BaseModel):
    model_config = ConfigDict(extra="ignore")

    query: str = Field(min_length=1)


class SearchMoviesTool(BaseTool):
    arguments_model = SearchMoviesArguments

    @property
    def name(self) -> str:
        return "search_movies"

    @property
    def description(self) -> str:
        return "Search for movies by title or keywords"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Search query for movie titles",
                },
            },
            "required": ["query"],
        }

    async def execute(self, arguments: SearchMoviesArguments) -> str:
        page = await self._client.fetch_movie_page("/search/movie", {"query": arguments.query})
        results = format_movie_list(page.results, include_id=True)
        return f"Found {len(page.results)} movies:\n\n{results}"
