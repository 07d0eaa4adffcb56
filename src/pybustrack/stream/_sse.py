"""Minimal ``text/event-stream`` decoder.

Follows the WHATWG framing rules: ``data:`` lines accumulate and are
joined with newlines, a blank line dispatches the event, lines starting
with ``:`` are comments, and one space after the field colon is dropped.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass


@dataclass(frozen=True)
class SseEvent:
    """A dispatched server-sent event."""

    data: str
    event: str = "message"
    id: str | None = None
    retry: int | None = None


class SseDecoder:
    """Incremental line-oriented decoder."""

    def __init__(self) -> None:
        self._data: list[str] = []
        self._event: str | None = None
        self._retry: int | None = None
        self._last_id: str | None = None

    @property
    def last_event_id(self) -> str | None:
        return self._last_id

    def _reset(self) -> None:
        self._data = []
        self._event = None
        self._retry = None

    def feed_line(self, line: str) -> SseEvent | None:
        """Consume one line; return an event when the line completes one."""
        line = line.rstrip("\r\n")
        if not line:
            if not self._data:
                self._reset()
                return None
            event = SseEvent(
                data="\n".join(self._data),
                event=self._event or "message",
                id=self._last_id,
                retry=self._retry,
            )
            self._reset()
            return event

        if line.startswith(":"):
            return None

        name, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if name == "data":
            self._data.append(value)
        elif name == "event":
            self._event = value
        elif name == "id":
            if "\0" not in value:
                self._last_id = value
        elif name == "retry":
            if value.isdigit():
                self._retry = int(value)
        return None


async def iter_sse_events(lines: AsyncIterable[bytes]) -> AsyncIterator[SseEvent]:
    """Decode raw stream lines into events."""
    decoder = SseDecoder()
    async for raw in lines:
        event = decoder.feed_line(raw.decode("utf-8", errors="replace"))
        if event is not None:
            yield event
