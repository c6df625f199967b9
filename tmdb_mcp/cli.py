from __future__ import annotations

import asyncio
import sys

import uvicorn

from libs.common.errors import TransportError
from libs.common.logging import configure_logging, get_logger
from tmdb_mcp.app.main import create_app
from tmdb_mcp.app.settings import Settings
from tmdb_mcp.app.transports.stdio import StdioTransport
from tmdb_mcp.bootstrap.container import build_runtime_components

logger = get_logger("tmdb_mcp.cli")


async def _serve(settings: Settings) -> int:
    runtime = build_runtime_components(settings)
    app = create_app(settings, runtime=runtime)
    # access 로그는 stdout으로 나가서 stdio 채널을 오염시켜요.
    server = uvicorn.Server(
        uvicorn.Config(app, host=settings.host, port=settings.port, access_log=False, log_config=None)
    )
    http_task = asyncio.create_task(server.serve())
    logger.info("http_server_starting", host=settings.host, port=settings.port)

    if not settings.stdio_enabled:
        await http_task
        return 0

    transport = StdioTransport()
    try:
        await runtime.local_server.connect(transport)
    except TransportError as exc:
        logger.error("local_transport_connect_failed", error=exc.message)
        server.should_exit = True
        await http_task
        return 1

    local_task = asyncio.create_task(transport.wait_closed())
    await asyncio.wait({http_task, local_task}, return_when=asyncio.FIRST_COMPLETED)

    if local_task.done() and transport.error is not None:
        # 로컬 전송 오류는 복구하지 않고 프로세스를 끝내요.
        server.should_exit = True
        await http_task
        return 1

    if not http_task.done():
        logger.info("local_transport_ended_http_continues")
        await http_task
    local_task.cancel()
    await transport.close()
    return 0


def main() -> None:
    configure_logging()
    settings = Settings()
    if not settings.tmdb_api_key:
        print("TMDB_API_KEY environment variable is required", file=sys.stderr)
        sys.exit(1)
    sys.exit(asyncio.run(_serve(settings)))
