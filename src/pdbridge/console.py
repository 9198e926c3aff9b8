"""Route user `print()` output to host log and error records."""

from __future__ import annotations

import io
import sys
from collections.abc import Callable, Iterator
from contextlib import AbstractContextManager, contextmanager


class HostConsole(io.TextIOBase):
    """Text stream that posts every complete line through a callback.

    A partial line stays pending across `flush()` calls and is posted by
    `finish()` when the stream is released.
    """

    def __init__(self, post: Callable[[str], None]) -> None:
        super().__init__()
        self._post = post
        self._pending = ""

    @property
    def encoding(self) -> str:
        return "utf-8"

    def writable(self) -> bool:
        return True

    def isatty(self) -> bool:
        return False

    def write(self, text: str) -> int:
        if not isinstance(text, str):
            raise TypeError(f"write() argument must be str, not {type(text).__name__}")
        self._pending += text
        while "\n" in self._pending:
            line, self._pending = self._pending.split("\n", 1)
            self._post(line)
        return len(text)

    def flush(self) -> None:
        # Records are line based; partial lines wait for a newline or finish().
        return None

    def finish(self) -> None:
        if self._pending:
            line, self._pending = self._pending, ""
            self._post(line)


@contextmanager
def _capture(name: str, post: Callable[[str], None]) -> Iterator[HostConsole]:
    console = HostConsole(post)
    original = getattr(sys, name)
    setattr(sys, name, console)
    try:
        yield console
    finally:
        console.finish()
        setattr(sys, name, original)


def capture_stdout(post: Callable[[str], None]) -> AbstractContextManager[HostConsole]:
    """Swap `sys.stdout` for a `HostConsole` and restore it on exit."""

    return _capture("stdout", post)


def capture_stderr(post: Callable[[str], None]) -> AbstractContextManager[HostConsole]:
    """Swap `sys.stderr` for a `HostConsole` and restore it on exit.

    loguru sinks keep the stderr object they were added with, so diagnostics
    still reach the real stderr.
    """

    return _capture("stderr", post)
