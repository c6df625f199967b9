from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TMDB_MCP_",
        extra="ignore",
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
    )

    service_name: str = "mcp-server-tmdb"
    # initialize 응답의 serverInfo.name이에요.
    mcp_server_name: str = "example-servers/tmdb"
    version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = Field(default=3000, validation_alias=AliasChoices("PORT", "TMDB_MCP_PORT"))
    tmdb_api_key: str = Field(default="", validation_alias=AliasChoices("TMDB_API_KEY", "TMDB_MCP_TMDB_API_KEY"))
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    image_base_url: str = "https://image.tmdb.org/t/p/w500"
    request_timeout_seconds: float = 10.0
    keepalive_interval_seconds: float = Field(default=30.0, gt=0)
    sse_queue_size: int = Field(default=1000, ge=1)
    stdio_enabled: bool = True

    @field_validator("tmdb_api_key", mode="before")
    @classmethod
    def _strip_api_key(cls, value: object) -> object:
        """공백만 있는 키는 비어 있는 것으로 취급해요."""
        if isinstance(value, str):
            return value.strip()
        return value
