import logging
import struct
from asyncio import StreamReader
from typing import Any

import pytest

from akafka.connection import ConnectionHandler, make_response
from akafka.core.models import RequestHeader, ResponseHeader
from akafka.core.typings import ConnectionState


class StubWriter:
    def __init__(self, *, fail_after: int | None = None) -> None:
        self.written = bytearray()
        self.closed = False
        self._fail_after = fail_after

    def get_extra_info(self, name: str, default: Any = None) -> Any:
        if name == "peername":
            return ("127.0.0.1", 50000)
        return default

    def write(self, data: bytes) -> None:
        self.written += data

    async def drain(self) -> None:
        if self._fail_after is not None and len(self.written) > self._fail_after:
            raise ConnectionResetError("reset by peer")

    def close(self) -> None:
        self.closed = True


def request_bytes(correlation_id: int, api_key: int = 18, api_version: int = 4) -> bytes:
    return struct.pack(">iHHi", 8, api_key, api_version, correlation_id)


def make_handler(data: bytes, writer: StubWriter) -> ConnectionHandler:
    reader = StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return ConnectionHandler(reader, writer)  # type: ignore[arg-type]


def test_make_response_echoes_correlation_id() -> None:
    request = RequestHeader(8, 18, 4, -42)
    assert make_response(request) == ResponseHeader(message_size=0, correlation_id=-42)


@pytest.mark.asyncio()
async def test_single_request() -> None:
    writer = StubWriter()
    handler = make_handler(bytes.fromhex("000000080012000400000007"), writer)

    await handler.run()

    assert bytes(writer.written) == bytes.fromhex("0000000000000007")
    assert handler.requests_handled == 1
    assert handler.state is ConnectionState.CLOSED


@pytest.mark.asyncio()
async def test_sequential_requests() -> None:
    writer = StubWriter()
    handler = make_handler(request_bytes(1) + request_bytes(2) + request_bytes(3), writer)

    await handler.run()

    assert bytes(writer.written) == b"".join(struct.pack(">ii", 0, i) for i in (1, 2, 3))
    assert handler.requests_handled == 3


@pytest.mark.asyncio()
async def test_short_read_writes_nothing(caplog: pytest.LogCaptureFixture) -> None:
    writer = StubWriter()
    handler = make_handler(request_bytes(7)[:6], writer)

    with caplog.at_level(logging.WARNING, logger="akafka.connection"):
        await handler.run()

    assert writer.written == b""
    assert handler.requests_handled == 0
    assert handler.state is ConnectionState.CLOSED
    assert "Could not parse request" in caplog.text


@pytest.mark.asyncio()
async def test_trailing_partial_request_is_abandoned() -> None:
    writer = StubWriter()
    handler = make_handler(request_bytes(1) + request_bytes(2)[:5], writer)

    await handler.run()

    assert bytes(writer.written) == struct.pack(">ii", 0, 1)
    assert handler.requests_handled == 1


@pytest.mark.asyncio()
async def test_write_failure_closes_connection(caplog: pytest.LogCaptureFixture) -> None:
    writer = StubWriter(fail_after=0)
    handler = make_handler(request_bytes(1) + request_bytes(2), writer)

    with caplog.at_level(logging.WARNING, logger="akafka.connection"):
        await handler.run()

    # the second request is never read
    assert bytes(writer.written) == struct.pack(">ii", 0, 1)
    assert handler.requests_handled == 0
    assert handler.state is ConnectionState.CLOSED
    assert "Could not send response" in caplog.text


@pytest.mark.asyncio()
async def test_handler_does_not_close_stream() -> None:
    writer = StubWriter()
    handler = make_handler(request_bytes(1), writer)

    await handler.run()

    assert not writer.closed


@pytest.mark.asyncio()
async def test_injected_log_sink() -> None:
    records: list[logging.LogRecord] = []

    class ListHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(record)

    sink = logging.getLogger("test.sink")
    sink.propagate = False
    sink.setLevel(logging.DEBUG)
    sink.addHandler(ListHandler())

    reader = StreamReader()
    reader.feed_data(request_bytes(99, api_key=1, api_version=16))
    reader.feed_eof()

    await ConnectionHandler(reader, StubWriter(), log=sink).run()  # type: ignore[arg-type]

    messages = [record.getMessage() for record in records]
    assert "Received FETCH v16 request with correlation ID: 99" in messages


@pytest.mark.asyncio()
async def test_unknown_api_key_is_still_answered(caplog: pytest.LogCaptureFixture) -> None:
    writer = StubWriter()
    handler = make_handler(request_bytes(5, api_key=9999), writer)

    with caplog.at_level(logging.INFO, logger="akafka.connection"):
        await handler.run()

    assert bytes(writer.written) == struct.pack(">ii", 0, 5)
    assert "Received 9999 v4 request" in caplog.text
    assert "[('127.0.0.1', 50000)]" in caplog.text


@pytest.mark.asyncio()
async def test_peer_closing_between_requests_is_not_a_warning(
    caplog: pytest.LogCaptureFixture,
) -> None:
    writer = StubWriter()
    handler = make_handler(request_bytes(1), writer)

    with caplog.at_level(logging.INFO, logger="akafka.connection"):
        await handler.run()

    assert handler.requests_handled == 1
    assert "Peer closed the connection" in caplog.text
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]
