"""Notification models."""

from __future__ import annotations

import enum
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from pybustrack.ingestion.normalize import parse_timestamp, safe_str, to_epoch_ms
from pybustrack.models._base import BusTrackBaseModel


class NotificationType(enum.StrEnum):
    """Closed set of notification kinds.

    Values the backend sends that have no mapped member resolve to
    ``INFO``, which is how unknown kinds are displayed.
    """

    INFO = "info"
    WARNING = "warning"
    ALERT = "alert"
    SUCCESS = "success"

    @classmethod
    def _missing_(cls, value: object) -> NotificationType:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return cls.INFO


class NotificationRecord(BusTrackBaseModel):
    """A notification as published by the backend and cached locally.

    ``id`` and ``time`` are set by the backend and never change. ``read``
    is local state and only ever moves from ``False`` to ``True``.
    """

    id: str = Field(validation_alias=AliasChoices("_id", "id"))
    """Opaque unique identifier (``_id`` on the wire)."""
    title: str = ""
    message: str = ""
    sender: str = ""
    type: NotificationType = NotificationType.INFO
    image_ref: str | None = Field(
        default=None,
        validation_alias=AliasChoices("imageUrl", "imageRef", "image_ref", "image"),
    )
    """Opaque reference to an attached image."""
    time: datetime = Field(validation_alias=AliasChoices("time", "createdAt", "created_at"))
    """Creation timestamp (UTC)."""
    read: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str:
        text = safe_str(value)
        if text is None:
            raise ValueError("id must be non-empty")
        return text

    @field_validator("time", mode="before")
    @classmethod
    def _coerce_time(cls, value: Any) -> datetime:
        parsed = parse_timestamp(value)
        if parsed is None:
            raise ValueError(f"unparseable notification time: {value!r}")
        return parsed

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> NotificationType:
        return NotificationType(value)

    @property
    def time_ms(self) -> int:
        """Creation time in epoch milliseconds (the sync watermark unit)."""
        return to_epoch_ms(self.time)

    def as_read(self) -> NotificationRecord:
        """Copy of this record with ``read`` set."""
        if self.read:
            return self
        return self.model_copy(update={"read": True})

    def to_storage(self) -> dict[str, Any]:
        """JSON-safe dict that :meth:`model_validate` turns back into this record."""
        return self.model_dump(mode="json")


def sort_newest_first(records: Iterable[NotificationRecord]) -> list[NotificationRecord]:
    """Order records by ``time`` descending; ties keep their input order."""
    return sorted(records, key=lambda record: record.time_ms, reverse=True)


class NotificationDraft(BaseModel):
    """Fields for a notification created by transport staff."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    title: str
    message: str
    sender: str = "Transport Incharge"
    type: NotificationType = NotificationType.INFO
    target_student_ids: str = "all"

    @field_validator("title", "message")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value:
            raise ValueError("title and message are required")
        return value

    def to_form_fields(self) -> dict[str, str]:
        return {
            "title": self.title,
            "message": self.message,
            "sender": self.sender,
            "type": self.type.value,
            "targetStudentIds": self.target_student_ids,
        }
