from __future__ import annotations

import json
import re
from typing import Any

from libs.common.errors import DomainError, InvalidCursorError, InvalidUriError
from libs.common.logging import get_logger
from tmdb_mcp.app.mcp_protocol import (
    RESOURCE_MIME_TYPE,
    RESOURCE_URI_PREFIX,
    CallToolRequest,
    CallToolResult,
    ListResourcesRequest,
    ListResourcesResult,
    ListToolsRequest,
    ListToolsResult,
    ReadResourceRequest,
    ReadResourceResult,
    ResourceContents,
    ResourceDescriptor,
)
from tmdb_mcp.app.tmdb_client import TmdbClient
from tmdb_mcp.app.tmdb_models import Movie, MovieDetail, Review
from tmdb_mcp.app.tools.registry import ToolRegistry
from tmdb_mcp.app.utils import format_number, release_year

logger = get_logger("tmdb_mcp.handlers")

IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
NO_POSTER = "No poster available"
TOP_CAST_COUNT = 5
TOP_REVIEW_COUNT = 3

_DIGITS = re.compile(r"[0-9]+")


def movie_uri(movie_id: int) -> str:
    return f"{RESOURCE_URI_PREFIX}{movie_id}"


def parse_movie_uri(uri: str) -> str:
    """``tmdb:///movie/<id>`` 에서 숫자 ID만 꺼내요. 형식이 다르면 `InvalidUriError`예요."""
    if not uri.startswith(RESOURCE_URI_PREFIX):
        raise InvalidUriError(uri)
    movie_id = uri[len(RESOURCE_URI_PREFIX) :]
    if not _DIGITS.fullmatch(movie_id):
        raise InvalidUriError(uri)
    return movie_id


def parse_cursor(cursor: str | None) -> str:
    if cursor is None or cursor == "":
        return "1"
    if not _DIGITS.fullmatch(cursor) or int(cursor) < 1:
        raise InvalidCursorError(cursor)
    return str(int(cursor))


class HandlerSet:
    """네 가지 MCP 요청을 처리하는 핸들러 묶음이에요.

    상태를 갖지 않아서 모든 세션의 ProtocolServer가 같은 인스턴스를 공유해요.
    """

    def __init__(
        self,
        *,
        client: TmdbClient,
        tool_registry: ToolRegistry,
        image_base_url: str = IMAGE_BASE_URL,
    ) -> None:
        self._client = client
        self._tool_registry = tool_registry
        self._image_base_url = image_base_url.rstrip("/")

    async def list_resources(self, request: ListResourcesRequest) -> ListResourcesResult:
        page_number = parse_cursor(request.cursor)
        page = await self._client.fetch_movie_page("/movie/popular", {"page": page_number})

        next_cursor = str(page.page + 1) if page.page < page.total_pages else None
        return ListResourcesResult(
            resources=[_to_resource_descriptor(movie) for movie in page.results],
            next_cursor=next_cursor,
        )

    async def read_resource(self, request: ReadResourceRequest) -> ReadResourceResult:
        movie_id = parse_movie_uri(request.uri)
        movie = await self._client.fetch_movie_detail(movie_id)
        document = self._build_movie_document(movie)
        return ReadResourceResult(
            contents=[
                ResourceContents(
                    uri=request.uri,
                    mime_type=RESOURCE_MIME_TYPE,
                    text=json.dumps(document, indent=2, ensure_ascii=False),
                )
            ]
        )

    async def list_tools(self, request: ListToolsRequest) -> ListToolsResult:
        del request
        return ListToolsResult(tools=list(self._tool_registry.descriptors()))

    async def call_tool(self, request: CallToolRequest) -> CallToolResult:
        """도구를 실행해요. 어떤 오류든 isError 결과로 바꿔서 세션이 끊기지 않게 해요."""
        try:
            text = await self._tool_registry.call(request.name, request.arguments)
        except DomainError as exc:
            logger.warning(
                "tool_call_failed",
                tool=request.name,
                error_code=exc.error_code,
                retryable=exc.retryable,
                error=exc.message,
            )
            return CallToolResult.text(f"Error: {exc.message}", is_error=True)
        except Exception as exc:
            logger.exception("tool_call_unexpected_error", tool=request.name, error=str(exc))
            message = str(exc) or "Unknown error occurred"
            return CallToolResult.text(f"Error: {message}", is_error=True)
        return CallToolResult.text(text)

    def _build_movie_document(self, movie: MovieDetail) -> dict[str, Any]:
        credits = movie.credits
        reviews = movie.reviews
        document: dict[str, Any] = {
            "title": movie.title,
            "releaseDate": movie.release_date,
            "rating": format_number(movie.vote_average),
            "overview": movie.overview,
            "genres": ", ".join(genre.name for genre in movie.genres) if movie.genres is not None else None,
            "posterUrl": f"{self._image_base_url}{movie.poster_path}" if movie.poster_path else NO_POSTER,
            "cast": (
                [f"{actor.name} as {actor.character or ''}" for actor in credits.cast[:TOP_CAST_COUNT]]
                if credits is not None
                else None
            ),
            "director": (
                next((person.name for person in credits.crew if person.job == "Director"), None)
                if credits is not None
                else None
            ),
            "reviews": (
                [_review_summary(review) for review in reviews.results[:TOP_REVIEW_COUNT]]
                if reviews is not None
                else None
            ),
        }
        # 값이 없는 키는 문서에서 빼요.
        return {key: value for key, value in document.items() if value is not None}


def _to_resource_descriptor(movie: Movie) -> ResourceDescriptor:
    return ResourceDescriptor(
        uri=movie_uri(movie.id),
        mime_type=RESOURCE_MIME_TYPE,
        name=f"{movie.title} ({release_year(movie.release_date)})",
    )


def _review_summary(review: Review) -> dict[str, Any]:
    rating = review.rating
    if rating is None and review.author_details is not None:
        rating = review.author_details.rating
    summary: dict[str, Any] = {"author": review.author, "content": review.content}
    if rating is not None:
        summary["rating"] = format_number(rating)
    return summary
