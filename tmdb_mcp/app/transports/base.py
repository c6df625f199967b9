"""ProtocolServer와 실제 I/O 채널 사이의 전송 계층 추상화예요."""

from __future__ import annotations

import abc
from collections.abc import Awaitable, Callable
from typing import Any

from libs.common.logging import get_logger

MessageHandler = Callable[[Any], Awaitable[None]]
CloseCallback = Callable[[], None]

logger = get_logger("tmdb_mcp.transport")


class Transport(abc.ABC):
    """양방향 메시지 채널이 구현해야 하는 계약이에요.

    - `on_message`로 등록한 핸들러에는 수신 메시지가 한 번에 하나씩 순서대로 전달돼요.
    - `on_close` 콜백은 닫힐 때 정확히 한 번 호출돼요.
    """

    def __init__(self) -> None:
        self._message_handler: MessageHandler | None = None
        self._close_callbacks: list[CloseCallback] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def on_message(self, handler: MessageHandler) -> None:
        self._message_handler = handler

    def on_close(self, callback: CloseCallback) -> None:
        self._close_callbacks.append(callback)

    @abc.abstractmethod
    async def start(self) -> None:
        """채널을 열고 수신 루프를 시작해요. 실패하면 `TransportError`예요."""

    @abc.abstractmethod
    async def send(self, message: dict[str, Any]) -> None:
        """JSON-RPC 메시지 하나를 상대에게 보내요."""

    @abc.abstractmethod
    async def close(self) -> None:
        """채널을 닫아요. 여러 번 호출해도 안전해요."""

    async def _dispatch(self, message: Any) -> None:
        if self._message_handler is None:
            logger.warning("transport_message_dropped", reason="no_handler")
            return
        await self._message_handler(message)

    def _mark_closed(self) -> bool:
        """처음 닫힐 때만 True를 반환하고 close 콜백을 실행해요."""
        if self._closed:
            return False
        self._closed = True
        callbacks = list(self._close_callbacks)
        self._close_callbacks.clear()
        for callback in callbacks:
            callback()
        return True
