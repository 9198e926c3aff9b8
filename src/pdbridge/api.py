"""Script-facing API.

User scripts talk to the host through a `ScriptApi`, normally the process-wide
``pdbridge.pd`` instance::

    from pdbridge import pd

    @pd.on("float")
    def double(inlet, value):
        pd.emit(0, value * 2)

    pd.on("bang", lambda inlet: pd.post("got a bang"))

Before the runtime attaches, handlers are kept locally and outlet/console
calls are written to the diagnostic log, so scripts can be imported and
exercised outside the host.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol

from loguru import logger

from pdbridge.marshal import marshal_outlet
from pdbridge.registry import Handler, HandlerRegistry
from pdbridge.types import DEFAULT_CONTEXT, DispatchContext, ErrorMessage, LogMessage, OutboundMessage, Value

__version__ = "0.1.0"


class HostBridge(Protocol):
    """What a `ScriptApi` needs from the running bridge."""

    @property
    def inlets(self) -> int: ...

    @property
    def outlets(self) -> int: ...

    @property
    def arguments(self) -> tuple[Value, ...]: ...

    @property
    def context(self) -> DispatchContext: ...

    def register_handler(self, selector: str, callback: Handler) -> None: ...

    def unregister_handler(self, selector: str, callback: Handler | None = None) -> None: ...

    def send(self, message: OutboundMessage) -> None: ...


class ScriptApi:
    def __init__(self, bridge: HostBridge | None = None) -> None:
        self._bridge = bridge
        self._local = HandlerRegistry()

    @property
    def attached(self) -> bool:
        return self._bridge is not None

    def attach(self, bridge: HostBridge) -> None:
        """Bind to a running bridge and hand over handlers registered so far."""

        self._bridge = bridge
        for selector in self._local.selectors():
            for callback in self._local.lookup(selector):
                bridge.register_handler(selector, callback)
        self._local.clear()

    def detach(self) -> None:
        self._bridge = None

    @property
    def inlets(self) -> int:
        return self._bridge.inlets if self._bridge is not None else 1

    @property
    def outlets(self) -> int:
        return self._bridge.outlets if self._bridge is not None else 1

    @property
    def args(self) -> tuple[Value, ...]:
        return self._bridge.arguments if self._bridge is not None else ()

    @property
    def inlet(self) -> int:
        return self._context().inlet

    @property
    def messagename(self) -> str:
        return self._context().selector

    @property
    def version(self) -> str:
        return __version__

    def on(self, selector: str, callback: Handler | None = None) -> Any:
        """Register `callback` for `selector`; without a callback, return a decorator."""

        if callback is None:

            def decorator(func: Handler) -> Handler:
                self.on(selector, func)
                return func

            return decorator

        if not callable(callback):
            raise TypeError("Callback must be callable")
        if self._bridge is not None:
            self._bridge.register_handler(selector, callback)
        else:
            self._local.register(selector, callback)
        return callback

    def off(self, selector: str, callback: Handler | None = None) -> None:
        if self._bridge is not None:
            self._bridge.unregister_handler(selector, callback)
        else:
            self._local.unregister(selector, callback)

    def emit(self, outlet: int, *values: Value) -> None:
        message = marshal_outlet(outlet, *values)
        if self._bridge is None:
            logger.info("api.outlet outlet={} selector={} args={}", message.outlet, message.selector, list(message.args))
            return
        self._bridge.send(message)

    def post(self, *args: object) -> None:
        text = _join(args)
        if self._bridge is None:
            logger.info("api.post {}", text)
            return
        self._bridge.send(LogMessage(text=text))

    def error(self, *args: object) -> None:
        text = _join(args)
        if self._bridge is None:
            logger.error("api.error {}", text)
            return
        self._bridge.send(ErrorMessage(text=text))

    def handlers(self, selector: str) -> tuple[Callable[..., Any], ...]:
        """Handlers not yet handed to a bridge, for inspection in tests."""

        return self._local.lookup(selector)

    def _context(self) -> DispatchContext:
        if self._bridge is None:
            return DEFAULT_CONTEXT
        return self._bridge.context


def _join(args: tuple[object, ...]) -> str:
    return " ".join(str(arg) for arg in args)


pd = ScriptApi()
