from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from libs.common.errors import ConfigurationError, DecodeError, UpstreamError
from tmdb_mcp.app.tmdb_models import MovieDetail, MoviePage

TMDB_BASE_URL = "https://api.themoviedb.org/3"

_ModelT = TypeVar("_ModelT", bound=BaseModel)


class TmdbClient:
    """TMDB REST API에 GET 요청을 보내는 게이트웨이예요.

    호출마다 정확히 한 번의 네트워크 요청을 보내고, 재시도나 캐시는 하지 않아요.
    인증 키는 호출자가 넘기는 params와 별도로 매 요청에 주입해요.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = TMDB_BASE_URL,
        timeout_seconds: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout_seconds)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(self, path: str, params: Mapping[str, str] | None = None) -> Any:
        if not self._api_key:
            raise ConfigurationError("TMDB API key is not configured.")

        query: dict[str, str] = {"api_key": self._api_key}
        if params:
            query.update(params)

        try:
            response = await self._client.get(f"{self._base_url}{path}", params=query)
        except httpx.TimeoutException as exc:
            raise UpstreamError("TMDB API request timed out.", retryable=True) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"TMDB API request failed: {exc}", retryable=True) from exc

        if not response.is_success:
            raise UpstreamError(
                f"TMDB API error: {response.reason_phrase}",
                retryable=response.status_code >= 500,
            )

        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError("TMDB API returned a non-JSON body.") from exc

    async def fetch_movie_page(self, path: str, params: Mapping[str, str] | None = None) -> MoviePage:
        return _decode(MoviePage, await self.fetch(path, params))

    async def fetch_movie_detail(self, movie_id: str) -> MovieDetail:
        # credits와 reviews를 한 번의 왕복으로 같이 받아요.
        payload = await self.fetch(f"/movie/{movie_id}", {"append_to_response": "credits,reviews"})
        return _decode(MovieDetail, payload)


def _decode(model: type[_ModelT], payload: Any) -> _ModelT:
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise DecodeError(f"Unexpected TMDB payload for {model.__name__}: {exc.error_count()} invalid field(s).") from exc
