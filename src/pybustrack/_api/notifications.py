"""Notification endpoints.

Endpoints:
  - GET    /api/notifications?after=<epoch-ms>  (incremental fetch)
  - POST   /api/notifications                   (multipart create)
  - DELETE /api/notifications/{id}
"""

from __future__ import annotations

import logging
from typing import Any

import aiohttp
from pydantic import ValidationError

from pybustrack._constants import NOTIFICATIONS_ENDPOINT
from pybustrack._transport import Transport
from pybustrack.exceptions import BusTrackApiError, BusTrackParseError
from pybustrack.models.notification import NotificationDraft, NotificationRecord

_logger = logging.getLogger(__name__)


def _parse_notification_list(data: Any) -> list[NotificationRecord]:
    """Parse the fetch response, skipping individual malformed items."""
    if data is None:
        return []
    if not isinstance(data, list):
        raise BusTrackParseError(
            f"{NOTIFICATIONS_ENDPOINT} returned {type(data).__name__}, expected a list",
            payload=data,
        )

    records: list[NotificationRecord] = []
    for item in data:
        if not isinstance(item, dict):
            _logger.warning("Skipping non-object notification item: %r", item)
            continue
        try:
            records.append(NotificationRecord.model_validate(item))
        except ValidationError:
            _logger.warning("Skipping malformed notification item id=%r", item.get("_id", item.get("id")))
            _logger.debug("Notification validation failure", exc_info=True)
    return records


async def fetch_notifications_after(
    transport: Transport,
    watermark_ms: int,
) -> list[NotificationRecord]:
    """Fetch every notification strictly newer than *watermark_ms*.

    Returns
    -------
    list[NotificationRecord]
        Possibly empty, in the order the server returned them.
    """
    data = await transport.request_json(
        "GET",
        NOTIFICATIONS_ENDPOINT,
        params={"after": str(int(watermark_ms))},
    )
    records = _parse_notification_list(data)
    _logger.debug("Fetched %d notification(s) after=%d", len(records), watermark_ms)
    return records


def _raise_unless_success(endpoint: str, data: Any, default_message: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise BusTrackParseError(f"{endpoint} returned a non-object response", payload=data)
    if not data.get("success"):
        message = data.get("error") or data.get("message") or default_message
        raise BusTrackApiError(f"{endpoint} failed: {message}", endpoint=endpoint)
    return data


async def delete_notification(transport: Transport, notification_id: str) -> None:
    """Delete a notification on the server.

    Raises
    ------
    BusTrackApiError
        When the server reports ``success: false``.
    """
    endpoint = f"{NOTIFICATIONS_ENDPOINT}/{notification_id}"
    data = await transport.request_json("DELETE", endpoint)
    _raise_unless_success(endpoint, data, "Delete failed")
    _logger.debug("Deleted notification id=%s", notification_id)


async def create_notification(
    transport: Transport,
    draft: NotificationDraft,
    *,
    image: bytes | None = None,
    image_filename: str = "image",
    image_content_type: str = "application/octet-stream",
) -> NotificationRecord:
    """Publish a new notification as multipart form data.

    Returns
    -------
    NotificationRecord
        The record as created by the server.
    """
    form = aiohttp.FormData()
    for name, value in draft.to_form_fields().items():
        form.add_field(name, value)
    if image is not None:
        form.add_field("image", image, filename=image_filename, content_type=image_content_type)

    data = await transport.request_json("POST", NOTIFICATIONS_ENDPOINT, form=form)
    body = _raise_unless_success(NOTIFICATIONS_ENDPOINT, data, "Send failed")

    created = body.get("notif")
    if not isinstance(created, dict):
        raise BusTrackParseError(f"{NOTIFICATIONS_ENDPOINT} response missing 'notif'", payload=body)
    try:
        return NotificationRecord.model_validate(created)
    except ValidationError as exc:
        raise BusTrackParseError(
            f"{NOTIFICATIONS_ENDPOINT} returned an invalid notification",
            payload=created,
        ) from exc
