"""Live position feed: event-stream decoding and the subscription state machine."""

from pybustrack.stream._sse import SseDecoder, SseEvent, iter_sse_events
from pybustrack.stream.client import PositionStreamClient, StreamState, parse_position_event

__all__ = [
    "PositionStreamClient",
    "SseDecoder",
    "SseEvent",
    "StreamState",
    "iter_sse_events",
    "parse_position_event",
]
