"""영화 ID를 기준으로 추천 영화를 가져오는 도구예요."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tmdb_mcp.app.tools.base import BaseTool
from tmdb_mcp.app.utils import format_movie_list

MAX_RECOMMENDATIONS = 5


class GetRecommendationsArguments(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    # 경로에 그대로 들어가므로 숫자만 허용해요.
    movie_id: str = Field(alias="movieId", pattern=r"^[0-9]+$")

    @field_validator("movie_id", mode="before")
    @classmethod
    def _accept_integer_id(cls, value: object) -> object:
        """클라이언트가 숫자로 보낸 ID도 문자열로 받아줘요."""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return value


class GetRecommendationsTool(BaseTool):
    arguments_model = GetRecommendationsArguments

    @property
    def name(self) -> str:
        return "get_recommendations"

    @property
    def description(self) -> str:
        return "Get movie recommendations based on a movie ID"

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "movieId": {
                    "type": "string",
                    "description": "TMDB movie ID to get recommendations for",
                },
            },
            "required": ["movieId"],
        }

    async def execute(self, arguments: GetRecommendationsArguments) -> str:
        page = await self._client.fetch_movie_page(f"/movie/{arguments.movie_id}/recommendations")
        recommendations = format_movie_list(page.results[:MAX_RECOMMENDATIONS], include_id=False)
        return f"Top 5 recommendations:\n\n{recommendations}"
