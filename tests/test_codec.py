from __future__ import annotations

import json

import pytest

from pdbridge.codec import WireCodec
from pdbridge.errors import FramingError, RecordTooLargeError
from pdbridge.types import ErrorMessage, InboundMessage, LogMessage, OutletMessage, ReadyMessage


def _record(**fields: object) -> bytes:
    return json.dumps(fields).encode("utf-8") + b"\n"


def test_feed_decodes_complete_record() -> None:
    codec = WireCodec()
    result = codec.feed(_record(type="message", selector="float", args=[4]))
    assert result == [InboundMessage(selector="float", args=(4,))]
    assert codec.pending == 0


def test_record_split_across_chunks_decodes_once_after_terminator() -> None:
    codec = WireCodec()
    assert codec.feed(b'{"type":"mess') == []
    assert codec.pending > 0
    result = codec.feed(b'age","selector":"bang","args":[]}\n')
    assert result == [InboundMessage(selector="bang", args=())]
    assert codec.pending == 0


def test_multiple_records_in_one_chunk_keep_arrival_order() -> None:
    codec = WireCodec()
    data = (
        _record(type="message", selector="bang", args=[])
        + _record(type="message", selector="symbol", args=["hi"])
        + _record(type="message", selector="list", args=[1, 2.5, "x"])
    )
    result = codec.feed(data)
    assert [item.selector for item in result if isinstance(item, InboundMessage)] == ["bang", "symbol", "list"]
    assert result[2].args == (1, 2.5, "x")


def test_malformed_record_reported_and_next_record_still_decodes() -> None:
    codec = WireCodec()
    result = codec.feed(b"{not json}\n" + _record(type="message", selector="bang"))
    assert isinstance(result[0], FramingError)
    assert result[1] == InboundMessage(selector="bang")


def test_records_without_message_type_are_ignored() -> None:
    codec = WireCodec()
    data = _record(selector="bang") + _record(type="outlet", outlet=0) + b"[1, 2]\n" + b"   \n"
    assert codec.feed(data) == []


def test_missing_selector_and_args_fall_back_to_defaults() -> None:
    codec = WireCodec()
    assert codec.feed(_record(type="message")) == [InboundMessage(selector="anything", args=())]


def test_inlet_is_read_from_record() -> None:
    codec = WireCodec()
    result = codec.feed(_record(type="message", inlet=2, selector="float", args=[1]))
    assert result == [InboundMessage(selector="float", args=(1,), inlet=2)]


@pytest.mark.parametrize(
    "fields",
    [
        {"type": "message", "selector": 5},
        {"type": "message", "selector": "x", "args": "nope"},
        {"type": "message", "selector": "x", "args": [True]},
        {"type": "message", "selector": "x", "args": [None]},
        {"type": "message", "selector": "x", "args": [{"a": 1}]},
        {"type": "message", "selector": "x", "inlet": -1},
        {"type": "message", "selector": "x", "inlet": "0"},
    ],
)
def test_invalid_message_shapes_are_framing_errors(fields: dict[str, object]) -> None:
    codec = WireCodec()
    result = codec.feed(_record(**fields))
    assert len(result) == 1
    assert isinstance(result[0], FramingError)


def test_nested_list_arguments_are_accepted() -> None:
    codec = WireCodec()
    result = codec.feed(_record(type="message", selector="anything", args=[[1, ["a"]], 2]))
    assert result == [InboundMessage(selector="anything", args=([1, ["a"]], 2))]


def test_crlf_terminator_and_split_utf8_character() -> None:
    codec = WireCodec()
    data = json.dumps({"type": "message", "selector": "symbol", "args": ["café"]}, ensure_ascii=False).encode()
    cut = data.index("é".encode()) + 1
    assert codec.feed(data[:cut]) == []
    result = codec.feed(data[cut:] + b"\r\n")
    assert result == [InboundMessage(selector="symbol", args=("café",))]


def test_invalid_utf8_is_framing_error() -> None:
    codec = WireCodec()
    result = codec.feed(b'{"type":"message","selector":"\xff"}\n')
    assert isinstance(result[0], FramingError)
    assert "UTF-8" in str(result[0])


def test_oversized_pending_record_is_dropped_until_next_terminator() -> None:
    codec = WireCodec(max_record_bytes=32)
    first = codec.feed(b"x" * 40)
    assert len(first) == 1
    assert isinstance(first[0], RecordTooLargeError)
    assert codec.pending == 0

    # More of the same oversized record is swallowed without a second report.
    assert codec.feed(b"y" * 40) == []
    result = codec.feed(b"tail\n" + _record(type="message", selector="bang"))
    assert result == [InboundMessage(selector="bang")]


def test_oversized_complete_record_is_framing_error() -> None:
    codec = WireCodec(max_record_bytes=16)
    result = codec.feed(_record(type="message", selector="a-long-selector-name"))
    assert len(result) == 1
    assert isinstance(result[0], RecordTooLargeError)


def test_max_record_bytes_must_be_positive() -> None:
    with pytest.raises(ValueError):
        WireCodec(max_record_bytes=0)


def test_encode_outbound_records() -> None:
    codec = WireCodec()
    assert codec.encode(OutletMessage(outlet=0, selector="bang")) == b'{"type":"outlet","outlet":0,"selector":"bang","args":[]}\n'
    assert codec.encode(OutletMessage(outlet=1, selector="float", args=(8,))) == (
        b'{"type":"outlet","outlet":1,"selector":"float","args":[8]}\n'
    )
    assert codec.encode(LogMessage(text="hello")) == b'{"type":"log","message":"hello"}\n'
    assert codec.encode(ErrorMessage(text="bad")) == b'{"type":"error","message":"bad"}\n'
    assert codec.encode(ReadyMessage()) == b'{"type":"ready"}\n'


def test_encode_error_with_trace_and_unicode() -> None:
    codec = WireCodec()
    data = codec.encode(ErrorMessage(text="café\nline", trace=("Traceback", "  boom")))
    assert data.endswith(b"\n")
    assert data.count(b"\n") == 1
    assert json.loads(data) == {"type": "error", "message": "café\nline", "trace": ["Traceback", "  boom"]}


def test_encode_rejects_non_finite_numbers() -> None:
    codec = WireCodec()
    with pytest.raises(ValueError):
        codec.encode(OutletMessage(outlet=0, selector="float", args=(float("nan"),)))


@pytest.mark.parametrize(
    "raw",
    [
        b'{"type":"message","selector":"float","args":[NaN]}\n',
        b'{"type":"message","selector":"float","args":[Infinity]}\n',
        b'{"type":"message","selector":"float","args":[-Infinity]}\n',
        b'{"type":"message","selector":"float","args":[1e400]}\n',
    ],
)
def test_non_finite_numbers_are_framing_errors(raw: bytes) -> None:
    codec = WireCodec()
    result = codec.feed(raw + _record(type="message", selector="bang"))
    assert isinstance(result[0], FramingError)
    assert result[1] == InboundMessage(selector="bang")
