"""Central Pytest Fixtures for Heartbeat.

This module provides reusable people, dates, photos and temporary stores
across all test modules.

Fixtures included:
- Time: now (fixed reference time)
- Core data: new_person, long_term_person, busy_date
- Files: photo_bytes, store, exporter
- Isolation: isolated_environment (autouse; private data dir, fresh config)
"""

from __future__ import annotations

import logging
import os
from datetime import date, datetime, time, timedelta
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

import heartbeat.config as config_module
from heartbeat.config import reset_config
from heartbeat.core.models import (
    DateLog,
    DateType,
    EmotionEntry,
    EmotionType,
    Gift,
    GiftGiver,
    Person,
    PhysicalTouchMoment,
    PhysicalTouchType,
)
from heartbeat.storage.store import PersonStore
from heartbeat.widget.exporter import WidgetDataExporter

NOW = datetime(2026, 10, 18, 12, 0)


# =============================================================================
# Helper Functions
# =============================================================================


def make_date(
    day: date,
    hour: int = 19,
    location: str = "Blue Bottle",
    **kwargs,
) -> DateLog:
    """Build a DateLog on ``day`` at ``hour``:00 with optional extra fields."""
    return DateLog(location=location, date=day, time=time(hour, 0), **kwargs)


def create_test_photo(width: int = 400, height: int = 300, fmt: str = "PNG") -> bytes:
    """Encode a solid-colour image of the given size."""
    img = Image.new("RGBA" if fmt == "PNG" else "RGB", (width, height), color="red")
    buffer = BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point configuration at a private data dir and undo logging setup."""
    for key in list(os.environ):
        if key.upper().startswith("HEARTBEAT_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HEARTBEAT_PATHS__DATA_DIR", str(tmp_path / "heartbeat"))
    monkeypatch.setattr(config_module, "DEFAULT_CONFIG_PATHS", (tmp_path / "heartbeat.yaml",))
    reset_config()

    yield

    reset_config()
    package_logger = logging.getLogger("heartbeat")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
        handler.close()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


# =============================================================================
# Core Data
# =============================================================================


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def new_person() -> Person:
    """Met ten days ago, nothing logged."""
    return Person(name="Alex", meeting_date=NOW.date() - timedelta(days=10))


@pytest.fixture
def long_term_person() -> Person:
    """Met 400 days ago; six dates exactly 14 days apart, the last one today."""
    today = NOW.date()
    person = Person(
        name="Sam",
        phone_number="+1 555 0100",
        meeting_date=today - timedelta(days=400),
    )
    locations = ["Blue Bottle", "Tate Modern", "Hyde Park", "Dishoom", "Borough Market", "Home"]
    for index, location in enumerate(locations):
        person.add_date(
            make_date(
                today - timedelta(days=14 * (len(locations) - 1 - index)),
                location=location,
                notes="Lovely evening" if index % 2 == 0 else "",
            )
        )
    return person


@pytest.fixture
def busy_date() -> DateLog:
    """A date with every kind of detail recorded."""
    return DateLog(
        location="Tate Modern",
        date=date(2026, 10, 10),
        time=time(14, 0),
        date_type=DateType.MUSEUM_GALLERY,
        discussion_points=["art", "travel", "family", "work", "books"],
        emotions=[
            EmotionEntry(emotion_type=EmotionType.HAPPY, intensity=4),
            EmotionEntry(emotion_type=EmotionType.EXCITED, intensity=5),
            EmotionEntry(emotion_type=EmotionType.NERVOUS, intensity=2),
        ],
        journal_entry="We had a great time, amazing food, I love this place and it was fun",
        gifts=[
            Gift(item="Postcard", giver=GiftGiver.ME),
            Gift(item="Bookmark", giver=GiftGiver.PARTNER),
        ],
        physical_touch_moments=[
            PhysicalTouchMoment(touch_type=PhysicalTouchType.HAND_HOLDING),
            PhysicalTouchMoment(touch_type=PhysicalTouchType.KISS),
        ],
    )


# =============================================================================
# Files
# =============================================================================


@pytest.fixture
def photo_bytes() -> bytes:
    return create_test_photo()


@pytest.fixture
def store(tmp_path: Path) -> PersonStore:
    return PersonStore(tmp_path / "data" / "people.json")


@pytest.fixture
def exporter(tmp_path: Path) -> WidgetDataExporter:
    return WidgetDataExporter(tmp_path / "shared")
