"""Bridge runtime: startup sequence and the inbound processing loop."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO

from loguru import logger

from pdbridge.api import ScriptApi
from pdbridge.codec import WireCodec
from pdbridge.config import Settings
from pdbridge.console import capture_stderr, capture_stdout
from pdbridge.dispatch import Dispatcher
from pdbridge.errors import FramingError, ScriptNotSpecifiedError, StartupError
from pdbridge.registry import Handler, HandlerRegistry
from pdbridge.script import load_script
from pdbridge.transport import StdioTransport, open_stdio
from pdbridge.types import DispatchContext, ErrorMessage, LogMessage, OutboundMessage, ReadyMessage, Value


class BridgeRuntime:
    """Wire codec, transport, registry, dispatcher and script API together.

    Records are processed strictly one at a time: a record is decoded and all
    of its synchronous handlers finish before the next read.
    """

    def __init__(
        self,
        settings: Settings,
        reader: asyncio.StreamReader,
        writer: BinaryIO,
        *,
        arguments: Iterable[Value] = (),
        api: ScriptApi | None = None,
    ) -> None:
        self.settings = settings
        self.codec = WireCodec(max_record_bytes=settings.max_record_bytes)
        self.transport = StdioTransport(reader, writer, self.codec, read_chunk_bytes=settings.read_chunk_bytes)
        self.registry = HandlerRegistry()
        self.dispatcher = Dispatcher(self.registry, self.send, include_traces=settings.include_traces)
        self.api = api if api is not None else ScriptApi()
        self._arguments = tuple(arguments)
        self._ready_sent = False

    @property
    def inlets(self) -> int:
        return self.settings.inlets

    @property
    def outlets(self) -> int:
        return self.settings.outlets

    @property
    def arguments(self) -> tuple[Value, ...]:
        return self._arguments

    @property
    def context(self) -> DispatchContext:
        return self.dispatcher.context

    def register_handler(self, selector: str, callback: Handler) -> None:
        self.registry.register(selector, callback)

    def unregister_handler(self, selector: str, callback: Handler | None = None) -> None:
        self.registry.unregister(selector, callback)

    def send(self, message: OutboundMessage) -> None:
        self.transport.send(message)

    def announce_ready(self) -> None:
        if self._ready_sent:
            return
        self.send(ReadyMessage())
        self._ready_sent = True

    async def run(self, script_path: Path | str | None) -> int:
        """Announce readiness, load the script and serve until EOF.

        Returns the process exit status: 0 after a clean EOF, 1 on a startup failure.
        """

        self.api.attach(self)
        try:
            with capture_stdout(self._post_console), capture_stderr(self._post_console_error):
                self.announce_ready()
                try:
                    load_script(script_path, self.api)
                except StartupError as exc:
                    logger.error("runtime.startup_failed reason={}", exc)
                    self.send(ErrorMessage(text=startup_error_text(exc)))
                    return 1
                logger.info("runtime.script_loaded path={} handlers={}", script_path, len(self.registry))
                await self.serve()
                return 0
        finally:
            self.api.detach()

    async def serve(self) -> None:
        async for item in self.transport.read_messages():
            if isinstance(item, FramingError):
                self.send(ErrorMessage(text=f"Parse error: {item}"))
                continue
            self.dispatcher.dispatch(item.inlet, item)
        await self.dispatcher.drain()

    def _post_console(self, line: str) -> None:
        self.send(LogMessage(text=line))

    def _post_console_error(self, line: str) -> None:
        self.send(ErrorMessage(text=line))


def startup_error_text(error: StartupError) -> str:
    if isinstance(error, ScriptNotSpecifiedError):
        return str(error)
    return f"Failed to load script: {error}"


async def run_bridge(
    settings: Settings,
    script_path: Path | str | None,
    *,
    arguments: Iterable[Value] = (),
    api: ScriptApi | None = None,
) -> int:
    """Run a bridge over the process stdin/stdout."""

    reader, writer = await open_stdio(limit=settings.read_chunk_bytes)
    runtime = BridgeRuntime(settings, reader, writer, arguments=arguments, api=api)
    return await runtime.run(script_path)
