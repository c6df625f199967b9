from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from libs.common.http_handlers import register_exception_handlers
from tmdb_mcp.app.routes import router
from tmdb_mcp.app.settings import Settings
from tmdb_mcp.bootstrap.container import RuntimeComponents
from tmdb_mcp.bootstrap.lifespan import create_lifespan


def create_app(settings: Settings, runtime: RuntimeComponents | None = None) -> FastAPI:
    app = FastAPI(title=settings.service_name, version=settings.version, lifespan=create_lifespan(settings, runtime))
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    register_exception_handlers(app, "tmdb_mcp.errors")
    return app
