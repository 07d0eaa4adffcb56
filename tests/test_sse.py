from __future__ import annotations

import pytest

from pybustrack.stream._sse import SseDecoder, SseEvent, iter_sse_events


def _feed(decoder: SseDecoder, *lines: str) -> list[SseEvent]:
    events = [decoder.feed_line(line) for line in lines]
    return [event for event in events if event is not None]


def test_single_data_line_dispatched_on_blank_line() -> None:
    decoder = SseDecoder()

    assert _feed(decoder, 'data: {"lat": 1}\n') == []
    assert _feed(decoder, "\n") == [SseEvent(data='{"lat": 1}')]


def test_multiple_data_lines_joined_with_newline() -> None:
    events = _feed(SseDecoder(), "data: a", "data:b", "")

    assert events == [SseEvent(data="a\nb")]


def test_comments_and_unknown_fields_ignored() -> None:
    events = _feed(SseDecoder(), ": keep-alive", "foo: bar", "data: x", "")

    assert [e.data for e in events] == ["x"]


def test_event_id_and_retry_fields() -> None:
    decoder = SseDecoder()
    events = _feed(decoder, "event: position", "id: 7", "retry: 3000", "data: x", "")

    assert events == [SseEvent(data="x", event="position", id="7", retry=3000)]
    assert decoder.last_event_id == "7"


def test_blank_line_without_data_dispatches_nothing() -> None:
    assert _feed(SseDecoder(), "event: ping", "", "data: y", "") == [SseEvent(data="y")]


def test_crlf_line_endings() -> None:
    assert _feed(SseDecoder(), "data: z\r\n", "\r\n") == [SseEvent(data="z")]


@pytest.mark.asyncio
async def test_iter_sse_events_decodes_bytes() -> None:
    async def lines():
        for raw in (b"data: undefined\n", b"\n", b'data: {"lat": 13.0, "long": 80.0}\n', b"\n"):
            yield raw

    events = [event async for event in iter_sse_events(lines())]

    assert [e.data for e in events] == ["undefined", '{"lat": 13.0, "long": 80.0}']
