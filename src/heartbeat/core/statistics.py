"""Descriptive statistics over a Person's date history.

Every analyzer rule reads from one RelationshipStatistics bundle computed
here. The bundle is rebuilt on each call and never cached.

Example:
    >>> stats = compute_relationship_statistics(person, now=datetime(2026, 10, 18, 12))
    >>> stats.months_together
    9
    >>> stats.consistency
    0.93
"""

from __future__ import annotations

import logging
import math
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime

from heartbeat.core.models import (
    DateType,
    EmotionType,
    GiftGiver,
    Person,
    PhysicalTouchType,
)

# Module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Calendar Helpers
# =============================================================================


def whole_days_between(start: date, end: date) -> int:
    """Number of whole days from ``start`` to ``end`` (negative if reversed)."""
    return (end - start).days


def whole_months_between(start: date, end: date) -> int:
    """Number of whole calendar months from ``start`` to ``end``.

    A month only counts once the day-of-month has been reached, so
    Jan 31 -> Feb 28 is 0 months and Jan 15 -> Feb 15 is 1 month.

    Args:
        start: Earlier date.
        end: Later date.

    Returns:
        Whole months elapsed. Negative when ``end`` precedes ``start``.
    """
    if end < start:
        return -whole_months_between(end, start)

    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day:
        months -= 1
    return months


def percentage(part: int, whole: int) -> int:
    """Whole-number share of ``part`` in ``whole``, rounded half up."""
    if whole <= 0:
        return 0
    return int(math.floor(part * 100 / whole + 0.5))


def mean(values: list[int] | list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def calculate_consistency(intervals: list[int]) -> float:
    """Score how regular a sequence of day gaps is.

    The score is one minus the coefficient of variation (population
    standard deviation over mean), floored at zero.

    Args:
        intervals: Day gaps between consecutive dates.

    Returns:
        A value in [0, 1]. 1.0 for fewer than two intervals or identical
        intervals.
    """
    if len(intervals) < 2:
        return 1.0

    average = mean(intervals)
    if average <= 0:
        # Every gap is zero: same-day dates are perfectly regular.
        return 1.0

    variance = sum((i - average) ** 2 for i in intervals) / len(intervals)
    coefficient = math.sqrt(variance) / average
    return max(0.0, min(1.0, 1.0 - coefficient))


# =============================================================================
# Statistics Bundle
# =============================================================================


@dataclass(frozen=True)
class RelationshipStatistics:
    """Aggregated view of one Person's history.

    Frequency maps keep first-seen order so ties resolve to whichever key
    was logged first.
    """

    person_name: str
    days_together: int
    months_together: int
    total_dates: int
    date_intervals: list[int] = field(default_factory=list)
    location_frequency: dict[str, int] = field(default_factory=dict)
    notes: list[str] = field(default_factory=list)
    time_patterns: list[int] = field(default_factory=list)
    phone_number: str | None = None
    emotion_frequency: dict[EmotionType, float] = field(default_factory=dict)
    given_gifts: int = 0
    received_gifts: int = 0
    touch_type_frequency: dict[PhysicalTouchType, int] = field(default_factory=dict)
    discussion_points: list[str] = field(default_factory=list)
    journal_entries: list[str] = field(default_factory=list)
    date_type_frequency: dict[DateType, int] = field(default_factory=dict)

    @property
    def average_interval(self) -> float:
        return mean(self.date_intervals)

    @property
    def consistency(self) -> float:
        return calculate_consistency(self.date_intervals)

    @property
    def total_gifts(self) -> int:
        return self.given_gifts + self.received_gifts

    @property
    def total_touch_moments(self) -> int:
        return sum(self.touch_type_frequency.values())

    @property
    def distinct_locations(self) -> int:
        return len(self.location_frequency)


def compute_relationship_statistics(
    person: Person,
    now: datetime | None = None,
) -> RelationshipStatistics:
    """Build the statistics bundle for ``person`` as of ``now``.

    Args:
        person: The person whose history is analyzed. Only read.
        now: Reference time. Defaults to the current local time.

    Returns:
        A fresh RelationshipStatistics.
    """
    now = now or datetime.now()
    today = now.date()
    dates = person.dates

    # Intervals between consecutive dates, by calendar day
    sorted_days = sorted(d.date for d in dates)
    intervals = [
        whole_days_between(earlier, later)
        for earlier, later in zip(sorted_days, sorted_days[1:])
    ]

    location_frequency: Counter[str] = Counter(d.location for d in dates)

    # Mean intensity per emotion kind
    intensities: dict[EmotionType, list[int]] = defaultdict(list)
    for d in dates:
        for entry in d.emotions:
            intensities[entry.emotion_type].append(entry.intensity)
    emotion_frequency = {kind: mean(values) for kind, values in intensities.items()}

    all_gifts = [g for d in dates for g in d.gifts]
    given = sum(1 for g in all_gifts if g.giver == GiftGiver.ME)

    touch_frequency: Counter[PhysicalTouchType] = Counter(
        m.touch_type for d in dates for m in d.physical_touch_moments
    )
    date_type_frequency: Counter[DateType] = Counter(d.date_type for d in dates)

    stats = RelationshipStatistics(
        person_name=person.name,
        days_together=whole_days_between(person.meeting_date, today),
        months_together=whole_months_between(person.meeting_date, today),
        total_dates=len(dates),
        date_intervals=intervals,
        location_frequency=dict(location_frequency),
        notes=[d.notes for d in dates if d.notes],
        time_patterns=[d.time.hour for d in dates],
        phone_number=person.phone_number,
        emotion_frequency=emotion_frequency,
        given_gifts=given,
        received_gifts=len(all_gifts) - given,
        touch_type_frequency=dict(touch_frequency),
        discussion_points=[p for d in dates for p in d.discussion_points],
        journal_entries=[d.journal_entry for d in dates if d.journal_entry],
        date_type_frequency=dict(date_type_frequency),
    )

    logger.debug(
        f"Statistics for {person.name}: {stats.total_dates} dates, "
        f"{len(intervals)} intervals, {stats.months_together} months"
    )
    return stats
