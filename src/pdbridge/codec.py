"""Newline-delimited JSON record codec."""

from __future__ import annotations

import json
import math
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pdbridge.errors import FramingError, RecordTooLargeError
from pdbridge.types import InboundMessage, OutboundMessage, is_value

RECORD_TERMINATOR = b"\n"
MESSAGE_TYPE = "message"
FALLBACK_SELECTOR = "anything"
DEFAULT_MAX_RECORD_BYTES = 1024 * 1024

type Decoded = InboundMessage | FramingError


class InboundRecord(BaseModel):
    """Validated shape of a `message` record."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    type: str
    selector: str = Field(default=FALLBACK_SELECTOR, strict=True)
    args: list[Any] = Field(default_factory=list)
    inlet: int = Field(default=0, ge=0, strict=True)

    @field_validator("args")
    @classmethod
    def _check_args(cls, value: list[Any]) -> list[Any]:
        for index, item in enumerate(value):
            if not is_value(item):
                raise ValueError(f"argument {index} is not a number, string or list: {item!r}")
        return value


class WireCodec:
    """Split a byte stream into records and encode outbound messages.

    `feed` returns decoded messages and framing errors in arrival order. A bad
    record never affects the records around it.
    """

    def __init__(self, *, max_record_bytes: int = DEFAULT_MAX_RECORD_BYTES) -> None:
        if max_record_bytes <= 0:
            raise ValueError("max_record_bytes must be positive")
        self._max_record_bytes = max_record_bytes
        self._buffer = bytearray()
        self._discarding = False

    @property
    def pending(self) -> int:
        """Number of buffered bytes that do not yet form a complete record."""

        return len(self._buffer)

    def feed(self, data: bytes) -> list[Decoded]:
        results: list[Decoded] = []
        self._buffer.extend(data)

        while True:
            index = self._buffer.find(RECORD_TERMINATOR)
            if index < 0:
                break
            raw = bytes(self._buffer[:index])
            del self._buffer[: index + 1]
            if self._discarding:
                # Tail of an oversized record.
                self._discarding = False
                continue
            if len(raw) > self._max_record_bytes:
                results.append(self._oversized())
                continue
            decoded = self._decode_record(raw)
            if decoded is not None:
                results.append(decoded)

        if len(self._buffer) > self._max_record_bytes:
            self._buffer.clear()
            if not self._discarding:
                self._discarding = True
                results.append(self._oversized())
        return results

    def encode(self, message: OutboundMessage) -> bytes:
        payload = json.dumps(message.to_record(), separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        return payload.encode("utf-8") + RECORD_TERMINATOR

    def _oversized(self) -> RecordTooLargeError:
        error = RecordTooLargeError(self._max_record_bytes)
        logger.warning("codec.record_too_large limit={}", self._max_record_bytes)
        return error

    def _decode_record(self, raw: bytes) -> Decoded | None:
        if raw.endswith(b"\r"):
            raw = raw[:-1]
        if not raw.strip():
            return None

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            return self._framing_error(f"invalid UTF-8: {exc.reason}")
        try:
            payload = json.loads(text, parse_constant=_reject_constant, parse_float=_finite_float)
        except ValueError as exc:
            return self._framing_error(str(exc))

        if not isinstance(payload, dict) or "type" not in payload:
            logger.debug("codec.record_ignored reason=missing_type")
            return None
        if payload["type"] != MESSAGE_TYPE:
            logger.debug("codec.record_ignored type={}", payload["type"])
            return None

        try:
            record = InboundRecord.model_validate(payload)
        except ValidationError as exc:
            return self._framing_error(_summarize(exc))
        return InboundMessage(selector=record.selector, args=tuple(record.args), inlet=record.inlet)

    @staticmethod
    def _framing_error(reason: str) -> FramingError:
        logger.warning("codec.framing_error reason={}", reason)
        return FramingError(reason)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not allowed")


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"number {text} is out of range")
    return value


def _summarize(exc: ValidationError) -> str:
    parts: list[str] = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg', 'invalid')}" if location else str(error.get("msg", "invalid")))
    return "; ".join(parts)
