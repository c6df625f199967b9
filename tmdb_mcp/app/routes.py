from __future__ import annotations

import json
from collections.abc import AsyncIterator

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import PlainTextResponse, StreamingResponse
from starlette.types import Receive, Scope, Send

from libs.common.errors import NotFoundError, TransportError, ValidationError
from libs.common.logging import get_logger
from libs.contracts.models import MessageAccepted, StatusResponse
from tmdb_mcp.app.sessions import Session, SessionManager
from tmdb_mcp.app.settings import Settings

router = APIRouter()
logger = get_logger("tmdb_mcp.routes")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager  # type: ignore[no-any-return]


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings  # type: ignore[no-any-return]


@router.get("/", response_class=PlainTextResponse)
async def index() -> str:
    return "TMDB MCP Server is running. Use the /sse endpoint for MCP communication."


@router.get("/status", response_model=StatusResponse)
async def server_status(request: Request) -> StatusResponse:
    app_settings = _get_settings(request)
    return StatusResponse(
        server_name=app_settings.service_name,
        version=app_settings.version,
        endpoints=["/", "/status", "/sse"],
        features=["HTTP", "SSE", "MCP"],
    )


async def stream_session(manager: SessionManager, session: Session) -> AsyncIterator[str]:
    """세션 프레임을 흘려보내고, 스트림이 어떻게 끝나든 세션을 닫아요."""
    try:
        async for frame in session.transport.frames():
            yield frame
    finally:
        # 클라이언트가 끊으면 이 제너레이터는 취소 상태라서 await 없이 정리해요.
        manager.close_session(session.session_id)
        logger.info("sse_client_disconnected", session_id=session.session_id)


class SessionStreamingResponse(StreamingResponse):
    """응답이 끝나면 스트림 시작 여부와 상관없이 세션을 닫는 SSE 응답이에요.

    본문 제너레이터가 첫 프레임 전에 취소되면 그 finally는 실행되지 않아서
    정리는 응답 수명에 묶어둬요.
    """

    def __init__(self, manager: SessionManager, session: Session) -> None:
        super().__init__(
            stream_session(manager, session),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )
        self._manager = manager
        self._session_id = session.session_id

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            self._manager.close_session(self._session_id)


@router.get("/sse")
async def open_sse(request: Request) -> StreamingResponse:
    manager = _get_session_manager(request)
    session = await manager.open_session()
    return SessionStreamingResponse(manager, session)


@router.post("/messages", response_model=MessageAccepted, status_code=status.HTTP_202_ACCEPTED)
async def post_message(
    request: Request,
    session_id: int = Query(alias="sessionId", ge=0),
) -> MessageAccepted:
    session = _get_session_manager(request).get(session_id)
    if session is None:
        raise NotFoundError(f"Session not found or expired: {session_id}", error_code="SESSION_NOT_FOUND")

    try:
        message = json.loads(await request.body())
    except ValueError as exc:
        raise ValidationError("Request body must be a JSON-RPC message.") from exc

    try:
        await session.transport.deliver(message)
    except TransportError as exc:
        raise NotFoundError(f"Session not found or expired: {session_id}", error_code="SESSION_NOT_FOUND") from exc
    return MessageAccepted()
