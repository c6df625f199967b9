from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tmdb_mcp.app.settings import Settings
from tmdb_mcp.bootstrap.container import RuntimeComponents, build_runtime_components


def create_lifespan(settings: Settings, runtime: RuntimeComponents | None = None):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        components = runtime if runtime is not None else build_runtime_components(settings)

        app.state.settings = settings
        app.state.runtime = components
        app.state.session_manager = components.session_manager

        try:
            yield
        finally:
            await components.aclose()

    return lifespan
