"""Byte stream transport between the host and the script runtime."""

from __future__ import annotations

import asyncio
import sys
import threading
from collections.abc import AsyncIterator
from typing import BinaryIO

from loguru import logger

from pdbridge.codec import Decoded, WireCodec
from pdbridge.types import OutboundMessage

DEFAULT_READ_CHUNK_BYTES = 64 * 1024


class StdioTransport:
    """Own the inbound reader and the outbound writer.

    Inbound bytes are fed to the codec as they arrive. Every outbound message
    is encoded first and then written with a single write and flush, so
    records never interleave on the wire.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: BinaryIO,
        codec: WireCodec,
        *,
        read_chunk_bytes: int = DEFAULT_READ_CHUNK_BYTES,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._codec = codec
        self._read_chunk_bytes = read_chunk_bytes
        self._write_lock = threading.Lock()
        self.records_written = 0

    def send(self, message: OutboundMessage) -> None:
        data = self._codec.encode(message)
        with self._write_lock:
            self._writer.write(data)
            self._writer.flush()
            self.records_written += 1

    async def read_messages(self) -> AsyncIterator[Decoded]:
        """Yield decoded messages and framing errors until the host closes the stream."""

        while True:
            chunk = await self._reader.read(self._read_chunk_bytes)
            if not chunk:
                break
            for item in self._codec.feed(chunk):
                yield item
        if self._codec.pending:
            logger.warning("transport.eof_partial_record bytes={}", self._codec.pending)
        logger.debug("transport.eof records_written={}", self.records_written)


async def open_stdio(*, limit: int = DEFAULT_READ_CHUNK_BYTES) -> tuple[asyncio.StreamReader, BinaryIO]:
    """Connect an asyncio reader to stdin and return it with the binary stdout."""

    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)
    protocol = asyncio.StreamReaderProtocol(reader)
    await loop.connect_read_pipe(lambda: protocol, sys.stdin.buffer)
    return reader, sys.stdout.buffer
