from __future__ import annotations

import json

import pytest

from libs.common.errors import InvalidCursorError, InvalidUriError, UpstreamError
from tests.conftest import FakeTmdbApi, detail_payload, movie_payload, page_payload
from tmdb_mcp.app.handlers import HandlerSet, parse_cursor, parse_movie_uri
from tmdb_mcp.app.mcp_protocol import ListResourcesRequest, ReadResourceRequest


@pytest.mark.asyncio
async def test_list_resources_defaults_to_first_page_and_sets_next_cursor(
    fake_api: FakeTmdbApi, handler_set: HandlerSet
) -> None:
    fake_api.add_json(
        "/movie/popular",
        page_payload([movie_payload(1, "A"), movie_payload(2, "B", "2021-06-30")], page=1, total_pages=3),
    )

    result = await handler_set.list_resources(ListResourcesRequest())

    assert fake_api.requests[0].url.params["page"] == "1"
    assert [resource.uri for resource in result.resources] == ["tmdb:///movie/1", "tmdb:///movie/2"]
    assert [resource.name for resource in result.resources] == ["A (2020)", "B (2021)"]
    assert all(resource.mime_type == "application/json" for resource in result.resources)
    assert result.next_cursor == "2"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("page", "total_pages", "expected"),
    [(1, 1, None), (4, 5, "5"), (5, 5, None), (7, 5, None)],
)
async def test_next_cursor_present_only_before_last_page(
    fake_api: FakeTmdbApi,
    handler_set: HandlerSet,
    page: int,
    total_pages: int,
    expected: str | None,
) -> None:
    fake_api.add_json("/movie/popular", page_payload([movie_payload(1, "A")], page=page, total_pages=total_pages))

    result = await handler_set.list_resources(ListResourcesRequest(cursor=str(page)))

    assert result.next_cursor == expected
    assert ("nextCursor" in result.to_wire()) is (expected is not None)


@pytest.mark.asyncio
async def test_list_resources_forwards_cursor_as_page(fake_api: FakeTmdbApi, handler_set: HandlerSet) -> None:
    fake_api.add_json("/movie/popular", page_payload([], page=2, total_pages=2))

    await handler_set.list_resources(ListResourcesRequest(cursor="2"))

    assert fake_api.requests[0].url.params["page"] == "2"


def test_parse_cursor_rejects_non_numeric_values() -> None:
    assert parse_cursor(None) == "1"
    assert parse_cursor("") == "1"
    assert parse_cursor("03") == "3"
    for cursor in ("abc", "0", "-1", "1.5"):
        with pytest.raises(InvalidCursorError):
            parse_cursor(cursor)


def test_parse_movie_uri_requires_prefix_and_numeric_id() -> None:
    assert parse_movie_uri("tmdb:///movie/603") == "603"
    for uri in ("tmdb:///tv/603", "movie/603", "tmdb:///movie/", "tmdb:///movie/603/credits", "tmdb:///movie/abc"):
        with pytest.raises(InvalidUriError):
            parse_movie_uri(uri)


@pytest.mark.asyncio
async def test_read_resource_builds_movie_document(fake_api: FakeTmdbApi, handler_set: HandlerSet) -> None:
    fake_api.add_json("/movie/603", detail_payload(603))

    result = await handler_set.read_resource(ReadResourceRequest(uri="tmdb:///movie/603"))

    assert len(result.contents) == 1
    contents = result.contents[0]
    assert contents.uri == "tmdb:///movie/603"
    assert contents.mime_type == "application/json"
    document = json.loads(contents.text)
    assert document == {
        "title": "The Matrix",
        "releaseDate": "1999-03-30",
        "rating": 8.2,
        "overview": "A hacker learns the truth.",
        "genres": "Action, Science Fiction",
        "posterUrl": "https://image.tmdb.org/t/p/w500/matrix.jpg",
        "cast": [f"Actor {index} as Role {index}" for index in range(5)],
        "director": "Lana Wachowski",
        "reviews": [{"author": f"critic{index}", "content": f"review {index}", "rating": 8} for index in range(3)],
    }
    # 들여쓰기 2칸의 JSON 문서예요.
    assert contents.text.startswith('{\n  "title"')


@pytest.mark.asyncio
async def test_read_resource_uses_sentinels_and_omits_missing_fields(
    fake_api: FakeTmdbApi, handler_set: HandlerSet
) -> None:
    fake_api.add_json(
        "/movie/42",
        movie_payload(42, "Plain", poster_path=None, credits={"cast": [], "crew": [{"name": "X", "job": "Writer"}]}),
    )

    result = await handler_set.read_resource(ReadResourceRequest(uri="tmdb:///movie/42"))

    document = json.loads(result.contents[0].text)
    assert document["posterUrl"] == "No poster available"
    assert document["cast"] == []
    assert "director" not in document
    assert "genres" not in document
    assert "reviews" not in document


@pytest.mark.asyncio
async def test_read_resource_rejects_malformed_uri_without_calling_upstream(
    fake_api: FakeTmdbApi, handler_set: HandlerSet
) -> None:
    with pytest.raises(InvalidUriError):
        await handler_set.read_resource(ReadResourceRequest(uri="https://example.com/movie/1"))
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_read_resource_propagates_upstream_errors(fake_api: FakeTmdbApi, handler_set: HandlerSet) -> None:
    with pytest.raises(UpstreamError):
        await handler_set.read_resource(ReadResourceRequest(uri="tmdb:///movie/999"))


@pytest.mark.asyncio
async def test_listed_uris_round_trip_through_read_resource(fake_api: FakeTmdbApi, handler_set: HandlerSet) -> None:
    listed = [movie_payload(11, "Star Wars", "1977-05-25"), movie_payload(12, "Finding Nemo", "2003-05-30")]
    fake_api.add_json("/movie/popular", page_payload(listed))
    for movie in listed:
        fake_api.add_json(f"/movie/{movie['id']}", detail_payload(movie["id"], **movie))

    listing = await handler_set.list_resources(ListResourcesRequest())

    for resource, upstream in zip(listing.resources, listed, strict=True):
        result = await handler_set.read_resource(ReadResourceRequest(uri=resource.uri))
        document = json.loads(result.contents[0].text)
        assert result.contents[0].uri == resource.uri
        assert document["title"] == upstream["title"]
        assert document["releaseDate"] == upstream["release_date"]
