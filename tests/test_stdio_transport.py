from __future__ import annotations

import asyncio
import io
import json
import time

import pytest

from libs.common.errors import TransportError
from tmdb_mcp.app.mcp_protocol import ServerInfo
from tmdb_mcp.app.server import HandlerRegistry, ProtocolServer
from tmdb_mcp.app.transports.stdio import StdioTransport


class BrokenWriter(io.BytesIO):
    def write(self, data: bytes) -> int:  # type: ignore[override]
        raise BrokenPipeError("stdout closed")


def _feed(reader: asyncio.StreamReader, *lines: bytes) -> None:
    for line in lines:
        reader.feed_data(line)
    reader.feed_eof()


def _written(writer: io.BytesIO) -> list[dict[str, object]]:
    return [json.loads(line) for line in writer.getvalue().splitlines()]


@pytest.mark.asyncio
async def test_stdio_serves_requests_until_eof(handler_registry: HandlerRegistry, server_info: ServerInfo) -> None:
    reader = asyncio.StreamReader()
    writer = io.BytesIO()
    transport = StdioTransport(reader=reader, writer=writer)
    server = ProtocolServer(registry=handler_registry, server_info=server_info)
    closed: list[bool] = []
    transport.on_close(lambda: closed.append(True))

    await server.connect(transport)
    _feed(
        reader,
        b'{"jsonrpc":"2.0","id":1,"method":"ping"}\n',
        b"\n",
        b'{"jsonrpc":"2.0","method":"notifications/initialized"}\n',
        b'{"jsonrpc":"2.0","id":2,"method":"initialize","params":{}}\n',
    )
    await asyncio.wait_for(transport.wait_closed(), timeout=1.0)

    responses = _written(writer)
    assert responses[0] == {"jsonrpc": "2.0", "id": 1, "result": {}}
    assert responses[1]["id"] == 2
    assert responses[1]["result"]["serverInfo"]["name"] == "example-servers/tmdb"
    assert len(responses) == 2
    assert transport.error is None
    assert transport.closed is True
    assert closed == [True]


@pytest.mark.asyncio
async def test_stdio_answers_unparseable_lines_with_parse_error(
    handler_registry: HandlerRegistry, server_info: ServerInfo
) -> None:
    reader = asyncio.StreamReader()
    writer = io.BytesIO()
    transport = StdioTransport(reader=reader, writer=writer)
    await ProtocolServer(registry=handler_registry, server_info=server_info).connect(transport)

    _feed(reader, b"{not json\n", b'{"jsonrpc":"2.0","id":3,"method":"ping"}\n')
    await asyncio.wait_for(transport.wait_closed(), timeout=1.0)

    responses = _written(writer)
    assert responses[0] == {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}
    assert responses[1] == {"jsonrpc": "2.0", "id": 3, "result": {}}
    assert transport.error is None


@pytest.mark.asyncio
async def test_stdio_write_failure_is_reported_as_error(
    handler_registry: HandlerRegistry, server_info: ServerInfo
) -> None:
    reader = asyncio.StreamReader()
    transport = StdioTransport(reader=reader, writer=BrokenWriter())
    await ProtocolServer(registry=handler_registry, server_info=server_info).connect(transport)

    _feed(reader, b'{"jsonrpc":"2.0","id":1,"method":"ping"}\n')
    await asyncio.wait_for(transport.wait_closed(), timeout=1.0)

    assert isinstance(transport.error, TransportError)
    assert transport.closed is True


@pytest.mark.asyncio
async def test_stdio_oversized_line_closes_with_error(
    handler_registry: HandlerRegistry, server_info: ServerInfo
) -> None:
    reader = asyncio.StreamReader(limit=16)
    transport = StdioTransport(reader=reader, writer=io.BytesIO())
    await ProtocolServer(registry=handler_registry, server_info=server_info).connect(transport)

    _feed(reader, b'{"jsonrpc":"2.0","id":1,"method":"ping"}\n')
    await asyncio.wait_for(transport.wait_closed(), timeout=1.0)

    assert transport.error is not None
    assert "stdin read failed" in transport.error.message


@pytest.mark.asyncio
async def test_stdio_close_is_idempotent_and_blocks_further_sends() -> None:
    transport = StdioTransport(reader=asyncio.StreamReader(), writer=io.BytesIO())
    await transport.start()

    await transport.close()
    await transport.close()

    assert transport.closed is True
    with pytest.raises(TransportError):
        await transport.send({"jsonrpc": "2.0", "id": 1, "result": {}})


@pytest.mark.asyncio
async def test_stdio_rejects_second_start() -> None:
    transport = StdioTransport(reader=asyncio.StreamReader(), writer=io.BytesIO())
    await transport.start()

    with pytest.raises(TransportError):
        await transport.start()
    await transport.close()


class SlowWriter(io.BytesIO):
    def write(self, data: bytes) -> int:  # type: ignore[override]
        # 상대가 읽지 않아 파이프가 가득 찬 상황을 흉내 내요.
        time.sleep(0.3)
        return super().write(data)


@pytest.mark.asyncio
async def test_stdio_slow_stdout_does_not_block_the_event_loop() -> None:
    writer = SlowWriter()
    transport = StdioTransport(reader=asyncio.StreamReader(), writer=writer)
    await transport.start()

    send_task = asyncio.create_task(transport.send({"jsonrpc": "2.0", "id": 1, "result": {}}))
    started = time.monotonic()
    await asyncio.sleep(0.01)
    elapsed = time.monotonic() - started
    await send_task

    assert elapsed < 0.2
    assert _written(writer) == [{"jsonrpc": "2.0", "id": 1, "result": {}}]
    await transport.close()
