"""Subscription to the live position feed of one bus.

The client is an explicit state machine::

    UNCONNECTED --subscribe--> CONNECTING --open--> OPEN
    CONNECTING/OPEN --transport error--> ERRORED
    any --unsubscribe--> UNCONNECTED

``handle_open``, ``handle_message`` and ``handle_error`` are the only
transition functions. The network task calls them, and tests can feed
them synthetic events directly. No reconnect is attempted after an
error; callers resubscribe.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import json
import logging
import time
from collections.abc import Callable

from pydantic import ValidationError

from pybustrack._constants import NO_DATA_PLACEHOLDER, STREAM_ENDPOINT, STREAM_ERROR_MESSAGE
from pybustrack._transport import StreamTransport
from pybustrack.exceptions import BusTrackParseError, BusTrackTransportError
from pybustrack.models.position import PositionSample
from pybustrack.stream._sse import iter_sse_events

_logger = logging.getLogger(__name__)


class StreamState(enum.StrEnum):
    UNCONNECTED = "unconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    ERRORED = "errored"


_LIVE_STATES = frozenset({StreamState.CONNECTING, StreamState.OPEN})


def parse_position_event(data: str, *, received_at: float) -> PositionSample:
    """Parse an event payload into a sample stamped with *received_at*."""
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as exc:
        raise BusTrackParseError(f"Position event is not JSON: {data[:64]!r}", payload=data) from exc
    if not isinstance(payload, dict):
        raise BusTrackParseError("Position event is not an object", payload=payload)
    try:
        sample = PositionSample.model_validate(payload)
    except ValidationError as exc:
        raise BusTrackParseError("Position event has no usable coordinates", payload=payload) from exc
    return sample.model_copy(update={"received_at": received_at})


class PositionStreamClient:
    """Holds at most one live position connection and its latest sample.

    Usage::

        stream = PositionStreamClient(transport, on_sample=print)
        await stream.subscribe("12", token)
        sample = await stream.wait_for_first_sample(timeout=10)
        ...
        await stream.unsubscribe()
    """

    def __init__(
        self,
        transport: StreamTransport,
        *,
        endpoint: str = STREAM_ENDPOINT,
        on_sample: Callable[[PositionSample], None] | None = None,
        on_loaded: Callable[[], None] | None = None,
        on_error: Callable[[str], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._transport = transport
        self._endpoint = endpoint
        self._on_sample = on_sample
        self._on_loaded = on_loaded
        self._on_error = on_error
        self._clock = clock

        self._state = StreamState.UNCONNECTED
        self._entity_id: str | None = None
        self._token: str | None = None
        self._sample: PositionSample | None = None
        self._error: str | None = None
        self._loaded = False
        self._loaded_event = asyncio.Event()
        # Bumped on every (re)subscribe/unsubscribe so a torn-down
        # connection can no longer mutate state.
        self._generation = 0
        self._task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def entity_id(self) -> str | None:
        return self._entity_id

    @property
    def sample(self) -> PositionSample | None:
        """Current sample, or ``None`` before the first one arrives."""
        return self._sample

    @property
    def last_update(self) -> float | None:
        """Client epoch seconds of the last accepted sample."""
        return self._sample.received_at if self._sample is not None else None

    @property
    def error(self) -> str | None:
        """User-facing error message while ``ERRORED``."""
        return self._error

    @property
    def loaded(self) -> bool:
        return self._loaded

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PositionStreamClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.unsubscribe()

    async def subscribe(self, entity_id: str | None, token: str | None = None) -> None:
        """Follow *entity_id*, replacing any previous subscription.

        An empty id only tears down the current subscription. Subscribing
        again to the same id and token while connecting or open is a no-op.
        """
        entity = (entity_id or "").strip()
        if not entity:
            await self.unsubscribe()
            return
        if entity == self._entity_id and token == self._token and self._state in _LIVE_STATES:
            return

        await self.unsubscribe()

        self._generation += 1
        generation = self._generation
        self._entity_id = entity
        self._token = token
        self._state = StreamState.CONNECTING
        self._loaded_event = asyncio.Event()
        _logger.debug("Position stream subscribing bus=%s", entity)
        self._task = asyncio.get_running_loop().create_task(
            self._run(generation, entity, token),
            name=f"position-stream-{entity}",
        )

    async def resubscribe(self) -> None:
        """Reconnect to the current bus, e.g. after an error."""
        entity, token = self._entity_id, self._token
        await self.unsubscribe()
        if entity:
            await self.subscribe(entity, token)

    async def unsubscribe(self) -> None:
        """Close the connection and discard the current sample."""
        self._generation += 1
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if self._state is not StreamState.UNCONNECTED:
            _logger.debug("Position stream unsubscribed bus=%s", self._entity_id)
        self._state = StreamState.UNCONNECTED
        self._entity_id = None
        self._token = None
        self._sample = None
        self._error = None
        self._loaded = False

    async def wait_for_first_sample(self, timeout: float) -> PositionSample | None:
        """Wait until the current subscription delivers a sample.

        Returns ``None`` on timeout or when nothing is subscribed.
        """
        if self._sample is not None:
            return self._sample
        if self._state not in _LIVE_STATES or timeout <= 0:
            return None
        try:
            await asyncio.wait_for(self._loaded_event.wait(), timeout)
        except TimeoutError:
            return None
        return self._sample

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _is_current(self, generation: int | None) -> bool:
        return generation is None or generation == self._generation

    def handle_open(self, *, generation: int | None = None) -> None:
        if not self._is_current(generation) or self._state is not StreamState.CONNECTING:
            return
        self._state = StreamState.OPEN
        _logger.debug("Position stream open bus=%s", self._entity_id)

    def handle_message(self, data: str, *, generation: int | None = None) -> PositionSample | None:
        """Apply one event payload; returns the accepted sample, if any."""
        if not self._is_current(generation) or self._state not in _LIVE_STATES:
            return None
        if data.strip() == NO_DATA_PLACEHOLDER:
            return None

        try:
            sample = parse_position_event(data, received_at=self._clock())
        except BusTrackParseError as exc:
            _logger.warning("Discarding malformed position event bus=%s: %s", self._entity_id, exc)
            return None

        self._state = StreamState.OPEN
        self._sample = sample
        self._error = None
        self._notify(self._on_sample, sample)

        if not self._loaded:
            self._loaded = True
            self._loaded_event.set()
            self._notify(self._on_loaded)
        return sample

    def handle_error(self, exc: BaseException | None = None, *, generation: int | None = None) -> None:
        if not self._is_current(generation) or self._state not in _LIVE_STATES:
            return
        _logger.warning("Position stream failed bus=%s: %s", self._entity_id, exc)
        self._state = StreamState.ERRORED
        self._error = STREAM_ERROR_MESSAGE

        task = self._task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
        self._notify(self._on_error, STREAM_ERROR_MESSAGE)

    def _notify(self, callback: Callable[..., None] | None, *args: object) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            _logger.debug("Position stream callback failed", exc_info=True)

    # ------------------------------------------------------------------
    # Network task
    # ------------------------------------------------------------------

    async def _run(self, generation: int, entity: str, token: str | None) -> None:
        params = {"busNo": entity}
        if token:
            params["auth"] = token

        try:
            async with self._transport.open_stream(self._endpoint, params) as lines:
                self.handle_open(generation=generation)
                async for event in iter_sse_events(lines):
                    if event.event != "message":
                        continue
                    self.handle_message(event.data, generation=generation)
        except asyncio.CancelledError:
            raise
        except BusTrackTransportError as exc:
            self.handle_error(exc, generation=generation)
            return
        except Exception as exc:
            _logger.exception("Unexpected position stream failure bus=%s", entity)
            self.handle_error(exc, generation=generation)
            return

        self.handle_error(
            BusTrackTransportError("Position stream closed by server", endpoint=self._endpoint),
            generation=generation,
        )
