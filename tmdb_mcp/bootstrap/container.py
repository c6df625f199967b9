from __future__ import annotations

from dataclasses import dataclass

from tmdb_mcp.app.handlers import HandlerSet
from tmdb_mcp.app.mcp_protocol import ServerInfo
from tmdb_mcp.app.server import HandlerRegistry, ProtocolServer
from tmdb_mcp.app.sessions import SessionManager
from tmdb_mcp.app.settings import Settings
from tmdb_mcp.app.tmdb_client import TmdbClient
from tmdb_mcp.app.tools.defaults import build_default_tool_registry
from tmdb_mcp.app.tools.registry import ToolRegistry


@dataclass(slots=True)
class RuntimeComponents:
    settings: Settings
    tmdb_client: TmdbClient
    tool_registry: ToolRegistry
    handler_set: HandlerSet
    handler_registry: HandlerRegistry
    local_server: ProtocolServer
    session_manager: SessionManager

    async def aclose(self) -> None:
        self.session_manager.close_all()
        self.local_server.disconnect()
        await self.tmdb_client.aclose()


def build_runtime_components(settings: Settings, *, tmdb_client: TmdbClient | None = None) -> RuntimeComponents:
    client = tmdb_client or TmdbClient(
        api_key=settings.tmdb_api_key,
        base_url=settings.tmdb_base_url,
        timeout_seconds=settings.request_timeout_seconds,
    )
    tool_registry = build_default_tool_registry(client)
    handler_set = HandlerSet(
        client=client,
        tool_registry=tool_registry,
        image_base_url=settings.image_base_url,
    )
    # 핸들러 테이블은 여기서 한 번만 만들고 로컬 서버와 모든 SSE 세션이 공유해요.
    handler_registry = HandlerRegistry.from_handler_set(handler_set)
    server_info = ServerInfo(name=settings.mcp_server_name, version=settings.version)

    return RuntimeComponents(
        settings=settings,
        tmdb_client=client,
        tool_registry=tool_registry,
        handler_set=handler_set,
        handler_registry=handler_registry,
        local_server=ProtocolServer(registry=handler_registry, server_info=server_info),
        session_manager=SessionManager(
            registry=handler_registry,
            server_info=server_info,
            keepalive_interval_seconds=settings.keepalive_interval_seconds,
            queue_size=settings.sse_queue_size,
        ),
    )
