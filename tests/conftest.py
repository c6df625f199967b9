from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from tmdb_mcp.app.handlers import HandlerSet
from tmdb_mcp.app.mcp_protocol import ServerInfo
from tmdb_mcp.app.server import HandlerRegistry
from tmdb_mcp.app.settings import Settings
from tmdb_mcp.app.tmdb_client import TmdbClient
from tmdb_mcp.app.tools.defaults import build_default_tool_registry

TEST_API_KEY = "test-key"
TEST_BASE_URL = "https://tmdb.test/3"

Route = Callable[[httpx.Request], httpx.Response]


class FakeTmdbApi:
    """경로별로 준비한 응답을 돌려주는 httpx.MockTransport 핸들러예요."""

    def __init__(self) -> None:
        self.routes: dict[str, Route] = {}
        self.requests: list[httpx.Request] = []

    def add_json(self, path: str, payload: Any, status_code: int = 200) -> None:
        self.routes[path] = lambda request: httpx.Response(status_code, json=payload)

    def add_route(self, path: str, route: Route) -> None:
        self.routes[path] = route

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/3")
        route = self.routes.get(path)
        if route is None:
            return httpx.Response(404, json={"status_message": "not found"})
        return route(request)

    def client(self) -> TmdbClient:
        return TmdbClient(
            api_key=TEST_API_KEY,
            base_url=TEST_BASE_URL,
            client=httpx.AsyncClient(transport=httpx.MockTransport(self)),
        )


def movie_payload(movie_id: int, title: str, release_date: str = "2020-01-01", **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": movie_id,
        "title": title,
        "release_date": release_date,
        "vote_average": 7.5,
        "overview": f"overview of {title}",
    }
    payload.update(extra)
    return payload


def page_payload(results: list[dict[str, Any]], page: int = 1, total_pages: int = 1) -> dict[str, Any]:
    return {"page": page, "results": results, "total_pages": total_pages, "total_results": len(results)}


def detail_payload(movie_id: int = 603, **extra: Any) -> dict[str, Any]:
    payload = movie_payload(
        movie_id,
        "The Matrix",
        "1999-03-30",
        vote_average=8.2,
        overview="A hacker learns the truth.",
        poster_path="/matrix.jpg",
        genres=[{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
        credits={
            "cast": [{"name": f"Actor {index}", "character": f"Role {index}"} for index in range(7)],
            "crew": [
                {"name": "Bill Pope", "job": "Director of Photography"},
                {"name": "Lana Wachowski", "job": "Director"},
                {"name": "Lilly Wachowski", "job": "Director"},
            ],
        },
        reviews={
            "results": [
                {"author": f"critic{index}", "content": f"review {index}", "author_details": {"rating": 8.0}}
                for index in range(4)
            ]
        },
    )
    payload.update(extra)
    return payload


@pytest.fixture
def fake_api() -> FakeTmdbApi:
    return FakeTmdbApi()


@pytest.fixture
def handler_set(fake_api: FakeTmdbApi) -> HandlerSet:
    client = fake_api.client()
    return HandlerSet(client=client, tool_registry=build_default_tool_registry(client))


@pytest.fixture
def handler_registry(handler_set: HandlerSet) -> HandlerRegistry:
    return HandlerRegistry.from_handler_set(handler_set)


@pytest.fixture
def server_info() -> ServerInfo:
    return ServerInfo(name="example-servers/tmdb", version="0.1.0")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        tmdb_api_key=TEST_API_KEY,
        tmdb_base_url=TEST_BASE_URL,
        keepalive_interval_seconds=30.0,
        stdio_enabled=False,
    )
