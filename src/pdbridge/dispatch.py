"""Dispatch inbound messages to registered handlers with per-handler fault isolation."""

from __future__ import annotations

import asyncio
import inspect
import traceback
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from pdbridge.codec import FALLBACK_SELECTOR
from pdbridge.registry import Handler, HandlerRegistry
from pdbridge.types import DEFAULT_CONTEXT, DispatchContext, ErrorMessage, InboundMessage, OutboundMessage

CONTEXT_PARAMETER = "ctx"


class Dispatcher:
    """Run one inbound message against the handler registry.

    Handlers are called as ``handler(inlet, *args)`` in registration order.
    A handler that declares a keyword-only ``ctx`` parameter also receives the
    `DispatchContext` of the call. Each failure becomes one error record and
    never stops the handlers after it.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        send: Callable[[OutboundMessage], None],
        *,
        include_traces: bool = True,
    ) -> None:
        self._registry = registry
        self._send = send
        self._include_traces = include_traces
        self._active: DispatchContext | None = None
        self._tasks: set[asyncio.Future[Any]] = set()

    @property
    def context(self) -> DispatchContext:
        """Context of the running dispatch, or the defaults outside one."""

        return self._active or DEFAULT_CONTEXT

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    def dispatch(self, inlet: int, message: InboundMessage) -> None:
        selector = message.selector
        handlers = self._registry.lookup(selector)
        if not handlers:
            handlers = self._registry.lookup(FALLBACK_SELECTOR)
        if not handlers:
            logger.debug("dispatch.no_handler selector={} inlet={}", selector, inlet)

        context = DispatchContext(inlet=inlet, selector=selector)
        previous = self._active
        self._active = context
        try:
            for handler in handlers:
                self._invoke(handler, context, message.args)
        finally:
            self._active = previous

    async def drain(self) -> None:
        """Wait for async handler tasks, including ones they start."""

        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
            # Let done callbacks run before checking again.
            await asyncio.sleep(0)

    def _invoke(self, handler: Handler, context: DispatchContext, args: tuple[Any, ...]) -> None:
        try:
            if _accepts_context(handler):
                result = handler(context.inlet, *args, **{CONTEXT_PARAMETER: context})
            else:
                result = handler(context.inlet, *args)
            if inspect.isawaitable(result):
                self._schedule(result, context)
        except Exception as exc:
            logger.opt(exception=True).warning(
                "dispatch.handler_failed selector={} inlet={} handler={}",
                context.selector,
                context.inlet,
                _handler_name(handler),
            )
            self._report(exc, context)

    def _schedule(self, awaitable: Awaitable[Any], context: DispatchContext) -> None:
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise RuntimeError("async handler requires a running event loop") from None

        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        task.add_done_callback(lambda done: self._finish(done, context))

    def _finish(self, task: asyncio.Future[Any], context: DispatchContext) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("dispatch.task_cancelled selector={}", context.selector)
            return
        error = task.exception()
        if isinstance(error, Exception):
            logger.opt(exception=error).warning(
                "dispatch.async_handler_failed selector={} inlet={}", context.selector, context.inlet
            )
            self._report(error, context)

    def _report(self, error: Exception, context: DispatchContext) -> None:
        text = f"Handler error in '{context.selector}': {_describe(error)}"
        trace: tuple[str, ...] = ()
        if self._include_traces and error.__traceback__ is not None:
            trace = tuple("".join(traceback.format_exception(error)).rstrip().splitlines())
        self._send(ErrorMessage(text=text, trace=trace))


def _accepts_context(handler: Handler) -> bool:
    try:
        parameters = inspect.signature(handler).parameters
    except (TypeError, ValueError):
        return False
    parameter = parameters.get(CONTEXT_PARAMETER)
    return parameter is not None and parameter.kind is inspect.Parameter.KEYWORD_ONLY


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)
