"""SSE 스트림 하나에 묶인 연결별 전송이에요.

서버 → 클라이언트 메시지는 SSE 프레임으로 큐에 쌓였다가 `frames()`로 흘러나가고,
클라이언트 → 서버 메시지는 POST 엔드포인트가 `deliver()`로 넣어줘요.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
from collections.abc import AsyncIterator
from typing import Any

from libs.common.errors import TransportError
from libs.common.logging import get_logger
from libs.contracts.models import ConnectedEvent
from tmdb_mcp.app.transports.base import Transport

logger = get_logger("tmdb_mcp.transport.sse")

DEFAULT_QUEUE_SIZE = 1000


def encode_sse(data: str, *, event: str | None = None) -> str:
    lines: list[str] = []
    if event is not None:
        lines.append(f"event: {event}")
    # 줄은 LF로만 나눠요. U+2028 같은 문자는 JSON 문자열 안에 그대로 남아야 해요.
    for line in data.split("\n"):
        lines.append(f"data: {line}")
    return "\n".join(lines) + "\n\n"


class SseTransport(Transport):
    def __init__(
        self,
        client_id: int,
        *,
        endpoint: str,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ) -> None:
        super().__init__()
        self.client_id = client_id
        self.endpoint = endpoint
        # None은 스트림 종료 신호예요.
        self._outbound: asyncio.Queue[str | None] = asyncio.Queue(maxsize=queue_size + 1)
        self._inbound: asyncio.Queue[Any] = asyncio.Queue(maxsize=queue_size)
        self._queue_size = queue_size
        self._pump_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._closed:
            raise TransportError(f"SSE client {self.client_id} is already closed.")
        if self._pump_task is not None:
            raise TransportError(f"SSE client {self.client_id} is already started.")
        connected = ConnectedEvent(client=self.client_id).model_dump()
        self._enqueue(encode_sse(json.dumps(connected)))
        self._enqueue(encode_sse(self.endpoint, event="endpoint"))
        self._pump_task = asyncio.create_task(self._pump())

    async def send(self, message: dict[str, Any]) -> None:
        self._enqueue(encode_sse(json.dumps(message, ensure_ascii=False), event="message"))

    async def send_event(self, payload: dict[str, Any]) -> None:
        """JSON-RPC가 아닌 제어 이벤트(connected, ping)를 data 프레임으로 보내요."""
        self._enqueue(encode_sse(json.dumps(payload, ensure_ascii=False)))

    async def deliver(self, message: Any) -> None:
        if self._closed:
            raise TransportError(f"SSE client {self.client_id} is closed.")
        try:
            self._inbound.put_nowait(message)
        except asyncio.QueueFull as exc:
            raise TransportError(f"SSE client {self.client_id} has too many pending messages.") from exc

    async def close(self) -> None:
        self.close_nowait()

    def close_nowait(self) -> None:
        """await 없이 닫아요. 취소 중인 스트리밍 응답의 finally에서도 호출할 수 있어요."""
        if not self._mark_closed():
            return
        task = self._pump_task
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()
        with contextlib.suppress(asyncio.QueueFull):
            self._outbound.put_nowait(None)

    async def frames(self) -> AsyncIterator[str]:
        while True:
            if self._closed and self._outbound.empty():
                return
            frame = await self._outbound.get()
            if frame is None:
                return
            yield frame

    def _enqueue(self, frame: str) -> None:
        if self._closed:
            raise TransportError(f"SSE client {self.client_id} is closed.")
        # 마지막 한 칸은 종료 신호 몫으로 남겨둬요.
        if self._outbound.qsize() >= self._queue_size:
            logger.warning("sse_outbound_overflow", client=self.client_id, pending=self._outbound.qsize())
            self.close_nowait()
            raise TransportError(f"SSE client {self.client_id} is not reading its stream.")
        self._outbound.put_nowait(frame)

    async def _pump(self) -> None:
        while True:
            message = await self._inbound.get()
            try:
                await self._dispatch(message)
            except TransportError as exc:
                logger.warning("sse_transport_failed", client=self.client_id, error=exc.message)
                self.close_nowait()
                return
            except Exception as exc:
                logger.exception("sse_message_failed", client=self.client_id, error=str(exc))


def _current_task() -> asyncio.Task[Any] | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
