"""Core data models for Heartbeat.

This module holds every entity of the relationship journal. A Person owns
its date logs outright, and each DateLog owns its emotions, gifts and
physical-touch moments. There are no back-references: analysis only ever
reads forward from a Person to its dates.

Models follow a tiered flow:
1. ENUMS (EmotionType, PhysicalTouchType, TouchDuration, DateType, GiftGiver)
2. DATE DETAILS (EmotionEntry, Gift, PhysicalTouchMoment)
3. DATE LOG (DateLog)
4. AGGREGATE ROOT (Person)

Example:
    >>> from datetime import date, time
    >>> person = Person(name="Sam", meeting_date=date(2026, 1, 8))
    >>> person.add_date(DateLog(location="Blue Bottle", date=date(2026, 1, 10), time=time(9, 30)))
    >>> len(person.dates)
    1
"""

from __future__ import annotations

import datetime as dt
import uuid as uuid_module
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# Enums
# =============================================================================


class EmotionType(str, Enum):
    """Feelings that can be attached to a date.

    Each kind carries a display colour and icon. Neither affects analysis.
    """

    HAPPY = "Happy"
    EXCITED = "Excited"
    GRATEFUL = "Grateful"
    LOVED = "Loved"
    PEACEFUL = "Peaceful"
    CONTENT = "Content"
    HOPEFUL = "Hopeful"
    SURPRISED = "Surprised"
    NERVOUS = "Nervous"
    ANXIOUS = "Anxious"
    CONFUSED = "Confused"
    SAD = "Sad"
    FRUSTRATED = "Frustrated"
    DISAPPOINTED = "Disappointed"
    BORED = "Bored"
    JEALOUS = "Jealous"

    @property
    def color(self) -> str:
        return _EMOTION_STYLE[self][0]

    @property
    def icon(self) -> str:
        return _EMOTION_STYLE[self][1]


_EMOTION_STYLE: dict[EmotionType, tuple[str, str]] = {
    EmotionType.HAPPY: ("yellow", "face.smiling"),
    EmotionType.EXCITED: ("orange", "sparkles"),
    EmotionType.GRATEFUL: ("green", "hands.sparkles"),
    EmotionType.LOVED: ("pink", "heart.fill"),
    EmotionType.PEACEFUL: ("mint", "leaf"),
    EmotionType.CONTENT: ("teal", "cup.and.saucer"),
    EmotionType.HOPEFUL: ("cyan", "sunrise"),
    EmotionType.SURPRISED: ("purple", "exclamationmark.circle"),
    EmotionType.NERVOUS: ("indigo", "waveform.path.ecg"),
    EmotionType.ANXIOUS: ("brown", "tornado"),
    EmotionType.CONFUSED: ("gray", "questionmark.circle"),
    EmotionType.SAD: ("blue", "cloud.rain"),
    EmotionType.FRUSTRATED: ("red", "flame"),
    EmotionType.DISAPPOINTED: ("gray", "hand.thumbsdown"),
    EmotionType.BORED: ("gray", "zzz"),
    EmotionType.JEALOUS: ("green", "eye"),
}


POSITIVE_EMOTIONS: frozenset[EmotionType] = frozenset(
    {
        EmotionType.HAPPY,
        EmotionType.EXCITED,
        EmotionType.GRATEFUL,
        EmotionType.LOVED,
        EmotionType.PEACEFUL,
        EmotionType.CONTENT,
        EmotionType.HOPEFUL,
        EmotionType.SURPRISED,
    }
)


class PhysicalTouchType(str, Enum):
    """Kinds of physical affection that can be logged on a date."""

    HAND_HOLDING = "Hand Holding"
    HUG = "Hug"
    KISS = "Kiss"
    CUDDLE = "Cuddle"
    ARM_AROUND = "Arm Around"
    HAND_ON_BACK = "Hand on Back"
    FOREHEAD_KISS = "Forehead Kiss"
    DANCING = "Dancing"


class TouchDuration(str, Enum):
    """Coarse duration bucket for a touch moment."""

    BRIEF = "Brief"
    MEDIUM = "Medium"
    LONG = "Long"


class DateType(str, Enum):
    """Classification of a date outing. Defaults to DINNER."""

    COFFEE = "coffee"
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    MUSEUM_GALLERY = "museum/gallery"
    WALK = "walk"
    DOG_WALK = "dog walk"
    DINNER_AT_THEIRS = "dinner at theirs"

    @property
    def display_name(self) -> str:
        return self.value.title()


class GiftGiver(str, Enum):
    """Who gave a gift: the journal owner or their partner."""

    ME = "me"
    PARTNER = "them"


# =============================================================================
# Date Details
# =============================================================================


class EmotionEntry(BaseModel):
    """A logged feeling with a 1-5 intensity.

    Intensity is clamped rather than rejected, so an entry built from any
    integer always lands inside the scale.
    """

    emotion_type: EmotionType
    intensity: int = 3

    @field_validator("intensity", mode="before")
    @classmethod
    def clamp_intensity(cls, v: Any) -> int:
        """Clamp intensity into [1, 5]."""
        try:
            value = int(v)
        except (TypeError, ValueError) as e:
            raise ValueError("intensity must be an integer") from e
        return max(1, min(5, value))


class Gift(BaseModel):
    """A gift exchanged on a date."""

    item: str
    giver: GiftGiver = GiftGiver.ME
    description: str | None = None

    @field_validator("description", mode="before")
    @classmethod
    def empty_description_to_none(cls, v: Any) -> str | None:
        if isinstance(v, str):
            return v.strip() or None
        return v


class PhysicalTouchMoment(BaseModel):
    """A moment of physical affection."""

    touch_type: PhysicalTouchType
    duration: TouchDuration = TouchDuration.BRIEF
    context: str | None = None


# =============================================================================
# Date Log
# =============================================================================


class DateLog(BaseModel):
    """A single past or planned outing with a partner.

    Whether a date is upcoming is never stored. It is derived at read time
    by combining ``date`` and ``time`` into one instant and comparing it to
    the current time.

    Attributes:
        id: Stable identifier, generated when missing.
        location: Place name as chosen by the user.
        latitude: Optional latitude. Present only together with longitude.
        longitude: Optional longitude. Present only together with latitude.
        date: Calendar day of the date.
        time: Time of day the date starts.
        notes: Free-text notes.
        date_type: What kind of outing it was.
        discussion_points: Topics talked about.
        emotions: Feelings logged for the date.
        journal_entry: Longer free-text reflection.
        gifts: Gifts exchanged.
        physical_touch_moments: Touch moments logged.
    """

    id: str = Field(default_factory=lambda: str(uuid_module.uuid4()))
    location: str
    latitude: float | None = None
    longitude: float | None = None
    date: dt.date
    time: dt.time = Field(default_factory=lambda: time(19, 0))
    notes: str = ""
    date_type: DateType = DateType.DINNER
    discussion_points: list[str] = Field(default_factory=list)
    emotions: list[EmotionEntry] = Field(default_factory=list)
    journal_entry: str = ""
    gifts: list[Gift] = Field(default_factory=list)
    physical_touch_moments: list[PhysicalTouchMoment] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def generate_id_if_empty(cls, v: str | None) -> str:
        """Generate UUID if empty or None."""
        if not v:
            return str(uuid_module.uuid4())
        return v

    @field_validator("latitude")
    @classmethod
    def validate_latitude(cls, v: float | None) -> float | None:
        if v is not None and (v < -90 or v > 90):
            raise ValueError(f"Latitude must be between -90 and 90 degrees, got {v}")
        return v

    @field_validator("longitude")
    @classmethod
    def validate_longitude(cls, v: float | None) -> float | None:
        if v is not None and (v < -180 or v > 180):
            raise ValueError(f"Longitude must be between -180 and 180 degrees, got {v}")
        return v

    @field_validator("discussion_points", mode="before")
    @classmethod
    def drop_blank_points(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [p.strip() for p in v if isinstance(p, str) and p.strip()]
        return v

    @model_validator(mode="after")
    def validate_coordinate_pair(self) -> Self:
        """Latitude and longitude must be both set or both absent."""
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self

    @property
    def full_datetime(self) -> datetime:
        """The date and time-of-day combined into one instant."""
        return datetime.combine(self.date, self.time)

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def is_upcoming(self, now: datetime | None = None) -> bool:
        """Check whether this date is still ahead of ``now``."""
        return self.full_datetime > (now or datetime.now())


# =============================================================================
# Aggregate Root
# =============================================================================


class Person(BaseModel):
    """Someone being dated, together with every date logged with them.

    Deleting a Person deletes their dates; dates are never persisted on
    their own.
    """

    id: str = Field(default_factory=lambda: str(uuid_module.uuid4()))
    name: str
    phone_number: str | None = None
    photo_data: bytes | None = None
    meeting_date: date
    is_archived: bool = False
    dates: list[DateLog] = Field(default_factory=list)

    model_config = {"ser_json_bytes": "base64", "val_json_bytes": "base64"}

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("phone_number", mode="before")
    @classmethod
    def empty_phone_to_none(cls, v: Any) -> str | None:
        if isinstance(v, str):
            return v.strip() or None
        return v

    def upcoming_dates(self, now: datetime | None = None) -> list[DateLog]:
        """Dates still ahead of ``now``, soonest first."""
        now = now or datetime.now()
        return sorted(
            (d for d in self.dates if d.full_datetime > now),
            key=lambda d: d.full_datetime,
        )

    def past_dates(self, now: datetime | None = None) -> list[DateLog]:
        """Dates at or before ``now``, most recent first."""
        now = now or datetime.now()
        return sorted(
            (d for d in self.dates if d.full_datetime <= now),
            key=lambda d: d.full_datetime,
            reverse=True,
        )

    def last_activity_date(self) -> date:
        """Latest logged date, or the meeting date when nothing is logged."""
        if not self.dates:
            return self.meeting_date
        return max(d.date for d in self.dates)

    def get_date(self, date_id: str) -> DateLog | None:
        for d in self.dates:
            if d.id == date_id:
                return d
        return None

    def add_date(self, date_log: DateLog) -> None:
        self.dates.append(date_log)

    def remove_date(self, date_id: str) -> bool:
        """Remove a date by id. Returns False when it was not found."""
        for index, d in enumerate(self.dates):
            if d.id == date_id:
                del self.dates[index]
                return True
        return False


# =============================================================================
# Roster helpers
# =============================================================================


def current_person(people: list[Person]) -> Person | None:
    """The person with the most recent activity, or None for an empty roster."""
    if not people:
        return None
    return max(people, key=lambda p: p.last_activity_date())


def archived_people(people: list[Person]) -> list[Person]:
    """Everyone except the current person, most recently active first."""
    current = current_person(people)
    others = [p for p in people if current is None or p.id != current.id]
    return sorted(others, key=lambda p: p.last_activity_date(), reverse=True)
