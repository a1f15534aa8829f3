"""Widget data reader and countdown timeline.

The widget side never fails: a missing or undecodable data file yields a
placeholder record with ``has_data=False`` scheduled one day ahead.

Example:
    >>> data = load_widget_data(Path("~/.heartbeat/shared/nextDateWidgetData.json").expanduser())
    >>> time_remaining(data, datetime.now())
    (2, 3, 15)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

from pydantic import ValidationError

from heartbeat.widget.models import WidgetData

logger = logging.getLogger(__name__)


def placeholder_widget_data(now: datetime | None = None) -> WidgetData:
    """The record shown when no usable data file exists."""
    now = now or datetime.now()
    return WidgetData(
        person_name="No Data",
        upcoming_date=now + timedelta(days=1),
        location="Open Heartbeat app",
        display_text="Add a date",
        has_data=False,
    )


def load_widget_data(path: Path, now: datetime | None = None) -> WidgetData:
    """Read the widget data file, falling back to the placeholder.

    A record without ``hasData`` is treated as having data.
    """
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        logger.debug(f"No widget data at {path}")
        return placeholder_widget_data(now)
    except OSError as e:
        logger.warning(f"Failed to read widget data {path}: {e}")
        return placeholder_widget_data(now)

    try:
        return WidgetData.model_validate_json(content)
    except ValidationError as e:
        logger.warning(f"Failed to decode widget data {path}: {e.error_count()} errors")
        return placeholder_widget_data(now)


def time_remaining(data: WidgetData, at: datetime) -> tuple[int, int, int]:
    """Whole (days, hours, minutes) from ``at`` until the date; zeros once it has passed."""
    seconds = int((data.upcoming_date - at).total_seconds())
    if seconds <= 0:
        return (0, 0, 0)
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    return (days, hours, rest // 60)


def is_past(data: WidgetData, at: datetime) -> bool:
    return data.upcoming_date <= at


def countdown_text(data: WidgetData, at: datetime, include_minutes: bool = True) -> str:
    """Render the countdown the way the widget shows it, e.g. ``"2D 3H 15M"``."""
    days, hours, minutes = time_remaining(data, at)
    if include_minutes:
        return f"{days}D {hours}H {minutes}M"
    return f"{days}D {hours}H"


@dataclass(frozen=True)
class TimelineEntry:
    """One point in time at which the widget renders ``data``."""

    date: datetime
    data: WidgetData


@dataclass(frozen=True)
class Timeline:
    """Entries to render plus when to ask for a fresh timeline."""

    entries: list[TimelineEntry] = field(default_factory=list)
    refresh_at: datetime | None = None


def build_timeline(
    data: WidgetData,
    now: datetime,
    interval_minutes: int = 5,
    span_minutes: int = 60,
    refresh_minutes: int = 15,
) -> Timeline:
    """Build countdown entries from ``now`` every ``interval_minutes`` up to ``span_minutes``.

    With the defaults that is 12 entries (offsets 0, 5, ..., 55) and a
    refresh 15 minutes after ``now``.
    """
    entries = [
        TimelineEntry(date=now + timedelta(minutes=offset), data=data)
        for offset in range(0, span_minutes, interval_minutes)
    ]
    return Timeline(entries=entries, refresh_at=now + timedelta(minutes=refresh_minutes))
