"""영화 목록을 텍스트로 바꿀 때 쓰는 공통 유틸리티 함수예요."""

from __future__ import annotations

from tmdb_mcp.app.tmdb_models import Movie

UNKNOWN_YEAR = "Unknown"


def release_year(release_date: str | None) -> str:
    """``YYYY-MM-DD`` 형식의 개봉일에서 연도만 잘라내요.

    개봉일이 비어 있으면 ``Unknown``을 반환해요.
    """
    if not release_date:
        return UNKNOWN_YEAR
    return release_date.split("-")[0]


def format_number(value: float | int) -> float | int:
    """정수로 떨어지는 실수는 정수로 바꿔요. ``8.0``은 ``8``로 표기돼요."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def format_movie_entry(movie: Movie, *, include_id: bool) -> str:
    header = f"{movie.title} ({release_year(movie.release_date)})"
    if include_id:
        header = f"{header} - ID: {movie.id}"
    return (
        f"{header}\n"
        f"Rating: {format_number(movie.vote_average)}/10\n"
        f"Overview: {movie.overview or ''}\n"
    )


def format_movie_list(movies: list[Movie], *, include_id: bool) -> str:
    return "\n---\n".join(format_movie_entry(movie, include_id=include_id) for movie in movies)
