"""The record shared between the widget data producer and its reader."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class WidgetData(BaseModel):
    """The next upcoming date, as shown by the home-screen countdown widget.

    Serialized with camelCase keys (``personName``, ``upcomingDate``,
    ``hasData``, ``personPhotoData`` ...). The photo travels as base64.

    Attributes:
        person_name: Partner's name.
        upcoming_date: When the date starts (local wall-clock time).
        location: Place name.
        display_text: "<name> - <medium date> at <short time>".
        has_data: False only for the placeholder shown when nothing is stored.
        person_photo_data: Small JPEG thumbnail of the partner.
        latitude: Optional latitude of the location.
        longitude: Optional longitude of the location.
    """

    person_name: str
    upcoming_date: datetime
    location: str
    display_text: str
    has_data: bool = True
    person_photo_data: bytes | None = None
    latitude: float | None = None
    longitude: float | None = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )

    @field_validator("upcoming_date")
    @classmethod
    def to_local_naive(cls, v: datetime) -> datetime:
        """Aware timestamps (epoch numbers, trailing Z) become naive local time."""
        if v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)
