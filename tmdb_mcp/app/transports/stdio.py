"""프로세스의 stdin/stdout에 묶인 로컬 전송이에요.

한 줄에 JSON-RPC 메시지 하나(newline-delimited JSON)를 주고받아요.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import sys
from typing import Any, BinaryIO

import anyio

from libs.common.errors import TransportError
from libs.common.logging import get_logger
from tmdb_mcp.app.mcp_protocol import PARSE_ERROR, error_response
from tmdb_mcp.app.transports.base import Transport

logger = get_logger("tmdb_mcp.transport.stdio")

# 한 메시지가 이 크기를 넘으면 전송 오류로 보고 연결을 끊어요.
STDIN_LINE_LIMIT = 4 * 1024 * 1024


async def _open_stdin_reader() -> asyncio.StreamReader:
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=STDIN_LINE_LIMIT)
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin)
    return reader


class StdioTransport(Transport):
    def __init__(
        self,
        *,
        reader: asyncio.StreamReader | None = None,
        writer: BinaryIO | None = None,
    ) -> None:
        super().__init__()
        self._reader = reader
        self._raw_writer = writer
        self._writer: anyio.AsyncFile[bytes] | None = None
        # 쓰기는 워커 스레드에서 돌아서 메시지 단위로 직렬화해요.
        self._write_lock = asyncio.Lock()
        self._read_task: asyncio.Task[None] | None = None
        self._closed_event = asyncio.Event()
        self.error: TransportError | None = None

    async def start(self) -> None:
        if self._read_task is not None:
            raise TransportError("stdio transport is already started.")
        if self._reader is None:
            try:
                self._reader = await _open_stdin_reader()
            except (OSError, ValueError) as exc:
                raise TransportError(f"Cannot attach to stdin: {exc}") from exc
        # 파이프가 가득 차도 이벤트 루프가 멈추지 않도록 블로킹 쓰기는 스레드로 보내요.
        self._writer = anyio.wrap_file(self._raw_writer if self._raw_writer is not None else sys.stdout.buffer)
        self._read_task = asyncio.create_task(self._read_loop(self._reader))
        logger.info("stdio_transport_started")

    async def send(self, message: dict[str, Any]) -> None:
        if self._closed or self._writer is None:
            raise TransportError("stdio transport is closed.")
        data = json.dumps(message, ensure_ascii=False).encode("utf-8") + b"\n"
        writer = self._writer
        try:
            async with self._write_lock:
                await writer.write(data)
                await writer.flush()
        except OSError as exc:
            raise TransportError(f"stdout write failed: {exc}") from exc

    async def close(self) -> None:
        task = self._read_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._finish()

    async def wait_closed(self) -> None:
        await self._closed_event.wait()

    async def _read_loop(self, reader: asyncio.StreamReader) -> None:
        try:
            while True:
                line = await reader.readline()
                if not line:
                    logger.info("stdio_transport_eof")
                    break
                if not line.strip():
                    continue
                try:
                    message = json.loads(line)
                except ValueError:
                    logger.warning("stdio_parse_error", size=len(line))
                    await self.send(error_response(None, PARSE_ERROR, "Parse error"))
                    continue
                await self._dispatch(message)
        except TransportError as exc:
            self.error = exc
        except (OSError, ValueError) as exc:
            # StreamReader.readline은 한도를 넘으면 ValueError를 던져요.
            self.error = TransportError(f"stdin read failed: {exc}")
        finally:
            self._finish()

    def _finish(self) -> None:
        if self._mark_closed():
            if self.error is not None:
                logger.error("stdio_transport_failed", error=self.error.message)
            else:
                logger.info("stdio_transport_closed")
        self._closed_event.set()
