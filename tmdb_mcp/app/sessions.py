from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from enum import Enum

from libs.common.errors import TransportError
from libs.common.logging import get_logger
from libs.contracts.models import PingEvent
from tmdb_mcp.app.mcp_protocol import ServerInfo
from tmdb_mcp.app.server import HandlerRegistry, ProtocolServer
from tmdb_mcp.app.transports.sse import DEFAULT_QUEUE_SIZE, SseTransport

logger = get_logger("tmdb_mcp.sessions")

DEFAULT_KEEPALIVE_INTERVAL_SECONDS = 30.0


class SessionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


@dataclass(slots=True)
class Session:
    session_id: int
    transport: SseTransport
    server: ProtocolServer
    state: SessionState = SessionState.CONNECTING
    keepalive_task: asyncio.Task[None] | None = None


class SessionManager:
    """SSE 연결마다 전송과 ProtocolServer 한 쌍을 만들고 수명을 관리해요.

    세션 맵은 이 클래스만 바꾸고, 이벤트 루프 스레드에서만 바뀌어서 락이 필요 없어요.
    """

    def __init__(
        self,
        *,
        registry: HandlerRegistry,
        server_info: ServerInfo,
        message_endpoint: str = "/messages",
        keepalive_interval_seconds: float = DEFAULT_KEEPALIVE_INTERVAL_SECONDS,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        self._registry = registry
        self._server_info = server_info
        self._message_endpoint = message_endpoint
        self._keepalive_interval_seconds = keepalive_interval_seconds
        self._queue_size = queue_size
        # 세션 ID는 0부터 단조 증가하고 프로세스 수명 동안 재사용하지 않아요.
        self._ids = itertools.count()
        self._sessions: dict[int, Session] = {}

    @property
    def live_count(self) -> int:
        return len(self._sessions)

    def session_ids(self) -> list[int]:
        """진단용 스냅샷이에요."""
        return sorted(self._sessions)

    def get(self, session_id: int) -> Session | None:
        session = self._sessions.get(session_id)
        if session is None or session.state is not SessionState.OPEN:
            return None
        return session

    async def open_session(self) -> Session:
        session_id = next(self._ids)
        transport = SseTransport(
            session_id,
            endpoint=f"{self._message_endpoint}?sessionId={session_id}",
            queue_size=self._queue_size,
        )
        server = ProtocolServer(registry=self._registry, server_info=self._server_info)
        session = Session(session_id=session_id, transport=transport, server=server)
        self._sessions[session_id] = session
        transport.on_close(lambda: self.close_session(session_id))

        try:
            await server.connect(transport)
        except TransportError as exc:
            logger.warning("sse_session_handshake_failed", session_id=session_id, error=exc.message)
            self.close_session(session_id)
            raise

        session.state = SessionState.OPEN
        session.keepalive_task = asyncio.create_task(self._keepalive(session))
        logger.info("sse_session_opened", session_id=session_id, live_sessions=self.live_count)
        return session

    def close_session(self, session_id: int) -> bool:
        """세션을 닫아요. 이미 닫혔으면 아무것도 하지 않고 False를 반환해요.

        await 없이 끝나서 연결이 끊겨 취소되는 스트리밍 응답 안에서도 호출할 수 있어요.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.state = SessionState.CLOSED
        task = session.keepalive_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
        session.server.disconnect()
        session.transport.close_nowait()
        logger.info("sse_session_closed", session_id=session_id, live_sessions=self.live_count)
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close_session(session_id)

    async def _keepalive(self, session: Session) -> None:
        ping = PingEvent().model_dump()
        while True:
            await asyncio.sleep(self._keepalive_interval_seconds)
            try:
                await session.transport.send_event(ping)
            except TransportError as exc:
                logger.warning("sse_keepalive_failed", session_id=session.session_id, error=exc.message)
                self.close_session(session.session_id)
                return
