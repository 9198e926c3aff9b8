from __future__ import annotations

import asyncio
import io

import pytest

from pdbridge.codec import WireCodec
from pdbridge.errors import FramingError
from pdbridge.transport import StdioTransport
from pdbridge.types import InboundMessage, LogMessage, OutletMessage


class RecordingWriter(io.BytesIO):
    def __init__(self) -> None:
        super().__init__()
        self.writes: list[bytes] = []
        self.flushes = 0

    def write(self, data) -> int:  # type: ignore[override]
        self.writes.append(bytes(data))
        return super().write(data)

    def flush(self) -> None:
        self.flushes += 1


@pytest.mark.asyncio
async def test_read_messages_until_eof() -> None:
    reader = asyncio.StreamReader()
    transport = StdioTransport(reader, io.BytesIO(), WireCodec(), read_chunk_bytes=8)
    reader.feed_data(b'{"type":"message","selector":"bang"}\n')
    reader.feed_data(b'oops\n{"type":"message","selector":"float","args":[1]}')
    reader.feed_data(b"\n")
    reader.feed_eof()

    items = [item async for item in transport.read_messages()]

    assert items[0] == InboundMessage(selector="bang")
    assert isinstance(items[1], FramingError)
    assert items[2] == InboundMessage(selector="float", args=(1,))


@pytest.mark.asyncio
async def test_partial_record_at_eof_is_dropped() -> None:
    reader = asyncio.StreamReader()
    transport = StdioTransport(reader, io.BytesIO(), WireCodec())
    reader.feed_data(b'{"type":"message","selector":"bang"}')
    reader.feed_eof()

    assert [item async for item in transport.read_messages()] == []


@pytest.mark.asyncio
async def test_send_writes_one_record_per_call() -> None:
    writer = RecordingWriter()
    transport = StdioTransport(asyncio.StreamReader(), writer, WireCodec())

    transport.send(OutletMessage(outlet=0, selector="float", args=(8,)))
    transport.send(LogMessage(text="hi"))

    assert writer.writes == [
        b'{"type":"outlet","outlet":0,"selector":"float","args":[8]}\n',
        b'{"type":"log","message":"hi"}\n',
    ]
    assert writer.flushes == 2
    assert transport.records_written == 2


@pytest.mark.asyncio
async def test_send_encoding_failure_writes_nothing() -> None:
    writer = RecordingWriter()
    transport = StdioTransport(asyncio.StreamReader(), writer, WireCodec())

    with pytest.raises(ValueError):
        transport.send(OutletMessage(outlet=0, selector="float", args=(float("inf"),)))

    assert writer.writes == []
