"""Message types exchanged between the host and the script runtime."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

type Value = int | float | str | list[Value]
type OutboundMessage = OutletMessage | LogMessage | ErrorMessage | ReadyMessage


def is_value(obj: object) -> bool:
    """Return True when obj fits the number | text | nested list union."""

    if isinstance(obj, bool):
        return False
    if isinstance(obj, (int, float, str)):
        return True
    if isinstance(obj, list):
        return all(is_value(item) for item in obj)
    return False


def describe_value(obj: object) -> str:
    return type(obj).__name__


@dataclass(frozen=True)
class InboundMessage:
    """One decoded host message, consumed once by the dispatcher."""

    selector: str
    args: tuple[Value, ...] = ()
    inlet: int = 0


@dataclass(frozen=True)
class OutletMessage:
    outlet: int
    selector: str
    args: tuple[Value, ...] = ()

    def to_record(self) -> dict[str, Any]:
        return {"type": "outlet", "outlet": self.outlet, "selector": self.selector, "args": list(self.args)}


@dataclass(frozen=True)
class LogMessage:
    text: str

    def to_record(self) -> dict[str, Any]:
        return {"type": "log", "message": self.text}


@dataclass(frozen=True)
class ErrorMessage:
    text: str
    trace: tuple[str, ...] = field(default=())

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"type": "error", "message": self.text}
        if self.trace:
            record["trace"] = list(self.trace)
        return record


@dataclass(frozen=True)
class ReadyMessage:
    def to_record(self) -> dict[str, Any]:
        return {"type": "ready"}


@dataclass(frozen=True)
class DispatchContext:
    """Inlet and selector of the message currently being dispatched."""

    inlet: int = 0
    selector: str = ""


DEFAULT_CONTEXT = DispatchContext()
