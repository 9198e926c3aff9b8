"""Selector to handler registry."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from loguru import logger

type Handler = Callable[..., Any]


class HandlerRegistry:
    """Insertion-ordered handler lists keyed by exact selector."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def register(self, selector: str, callback: Handler) -> None:
        self._handlers.setdefault(selector, []).append(callback)
        logger.debug("registry.register selector={} count={}", selector, len(self._handlers[selector]))

    def unregister(self, selector: str, callback: Handler | None = None) -> None:
        """Remove the first matching callback, or every callback for the selector."""

        handlers = self._handlers.get(selector)
        if handlers is None:
            return
        if callback is None:
            del self._handlers[selector]
            logger.debug("registry.clear selector={}", selector)
            return
        try:
            handlers.remove(callback)
        except ValueError:
            return
        if not handlers:
            del self._handlers[selector]
        logger.debug("registry.unregister selector={} remaining={}", selector, len(handlers))

    def lookup(self, selector: str) -> tuple[Handler, ...]:
        """Return a snapshot of the handlers for selector."""

        return tuple(self._handlers.get(selector, ()))

    def selectors(self) -> list[str]:
        return list(self._handlers)

    def clear(self) -> None:
        self._handlers.clear()

    def __contains__(self, selector: object) -> bool:
        return selector in self._handlers

    def __len__(self) -> int:
        return sum(len(handlers) for handlers in self._handlers.values())
