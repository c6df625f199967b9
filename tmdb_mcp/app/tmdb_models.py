"""TMDB 응답 중 이 서버가 읽는 필드만 정의한 모델이에요."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _TmdbModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class Genre(_TmdbModel):
    id: int | None = None
    name: str


class Movie(_TmdbModel):
    id: int
    title: str = ""
    release_date: str | None = None
    vote_average: float = 0.0
    overview: str | None = None
    poster_path: str | None = None


class MoviePage(_TmdbModel):
    page: int
    results: list[Movie] = Field(default_factory=list)
    total_pages: int
    total_results: int | None = None


class CastMember(_TmdbModel):
    name: str
    character: str | None = None


class CrewMember(_TmdbModel):
    name: str
    job: str | None = None


class Credits(_TmdbModel):
    cast: list[CastMember] = Field(default_factory=list)
    crew: list[CrewMember] = Field(default_factory=list)


class AuthorDetails(_TmdbModel):
    rating: float | None = None


class Review(_TmdbModel):
    author: str = ""
    content: str = ""
    rating: float | None = None
    author_details: AuthorDetails | None = None


class ReviewPage(_TmdbModel):
    results: list[Review] = Field(default_factory=list)


class MovieDetail(Movie):
    genres: list[Genre] | None = None
    credits: Credits | None = None
    reviews: ReviewPage | None = None
