"""Tests for the SSE event accumulator."""

import pytest

from kaiz_chat.models.events import SSEEvent
from kaiz_chat.streaming.accumulator import EventAccumulator, parse_line
from kaiz_chat.streaming.framer import LineFramer
from kaiz_chat.utils.exceptions import ParseError

from sse_helpers import format_comment, format_sse


def collect(text: str, accumulator: EventAccumulator | None = None) -> list[SSEEvent]:
    accumulator = accumulator or EventAccumulator()
    framer = LineFramer()
    events = []
    for line in framer.feed(text) + framer.flush():
        event = accumulator.process(line)
        if event:
            events.append(event)
    final = accumulator.finish()
    if final:
        events.append(final)
    return events


def test_multi_line_data_is_joined_with_newline():
    events = collect("data: foo\ndata: bar\n\n")
    assert events == [SSEEvent(type="message", data="foo\nbar")]


def test_blank_keepalive_produces_nothing():
    assert collect("\n\n") == []


def test_named_event():
    events = collect(format_sse("token", "Hel"))
    assert events == [SSEEvent(type="token", data="Hel")]


def test_event_type_is_trimmed():
    events = collect("event:   done  \ndata: x\n\n")
    assert events[0].type == "done"


def test_only_one_leading_space_removed_from_data():
    events = collect("data:  two spaces\n\ndata:none\n\n")
    assert [e.data for e in events] == [" two spaces", "none"]


def test_comments_are_ignored():
    events = collect(format_comment("keep-alive") + "data: x\n" + format_comment() + "\n")
    assert events == [SSEEvent(data="x")]


def test_unknown_fields_are_ignored():
    events = collect("id: 7\nretry: 3000\nfoo: bar\ndata: x\n\n")
    assert events == [SSEEvent(data="x")]


def test_event_without_data_is_dropped_and_type_reset():
    events = collect("event: token\n\ndata: x\n\n")
    assert events == [SSEEvent(type="message", data="x")]


def test_line_without_colon_is_ignored():
    assert collect("data\n\n") == []


def test_bare_data_line_does_not_emit_under_pending_type():
    events = collect("event: token\ndata\n\nevent: done\ndata: X\n\n")
    assert events == [SSEEvent(type="done", data="X")]


def test_parse_line_without_colon_returns_none():
    assert parse_line("data") is None
    assert parse_line("retry") is None


def test_end_of_stream_terminates_pending_event():
    events = collect("event: done\ndata: Hello")
    assert events == [SSEEvent(type="done", data="Hello")]


def test_malformed_line_is_skipped():
    accumulator = EventAccumulator()
    events = collect("dat a: nope\ndata: ok\n\n", accumulator)
    assert events == [SSEEvent(data="ok")]
    assert accumulator.skipped_lines == 1


def test_parse_line_rejects_bad_field_names():
    with pytest.raises(ParseError):
        parse_line("bad field: x")
    with pytest.raises(ParseError):
        parse_line("data: \x00")


def test_parse_line_splits_on_first_colon():
    assert parse_line("data: a: b") == ("data", "a: b")


def test_multi_line_payload_round_trips_through_formatter():
    events = collect(format_sse("done", '{"a": 1}\n{"b": 2}'))
    assert events[0].data == '{"a": 1}\n{"b": 2}'
