"""Relationship Analyzer: Heuristic Insights Over a Person's History.

This module turns one Person's full date history into an ordered list of
Insight records. It works in two stages:

1. Aggregation: compute_relationship_statistics() builds a
   RelationshipStatistics bundle (intervals, frequencies, mean emotion
   intensities, gift and touch counts).
2. Rule evaluation: eleven independent rule functions each read the bundle
   and return one Insight or None.

Three rules always fire (timeline, momentum, recommendation). The others
need enough data and are skipped otherwise. Nothing here raises for a
well-formed Person: missing data simply omits an insight.

The async entry point waits for an artificial, cancellable delay before
computing. The delay only paces the caller's loading state and has no
bearing on the result.

Example:
    >>> analyzer = RelationshipAnalyzer()
    >>> insights = analyzer.analyze(person, now=datetime(2026, 10, 18, 12))
    >>> [i.title for i in insights][:2]
    ['Milestone Achievement', 'Emotional Signature']
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from heartbeat.ai.insights import Insight, InsightCategory
from heartbeat.config import AnalysisConfig, get_config
from heartbeat.core.models import POSITIVE_EMOTIONS, Person
from heartbeat.core.statistics import (
    RelationshipStatistics,
    compute_relationship_statistics,
    mean,
    percentage,
)

# Module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================


POSITIVE_NOTE_WORDS: tuple[str, ...] = (
    "amazing",
    "wonderful",
    "great",
    "love",
    "perfect",
    "beautiful",
    "fun",
    "happy",
    "best",
    "incredible",
)

# Hour boundaries for time-of-day buckets
AFTERNOON_START_HOUR = 12
EVENING_START_HOUR = 17


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


# =============================================================================
# Rules
# =============================================================================


def analyze_relationship_timeline(stats: RelationshipStatistics) -> Insight:
    """Pick a milestone message from how long the relationship has run."""
    months = stats.months_together

    if months >= 12:
        years, remaining = divmod(months, 12)
        span = _plural(years, "year")
        if remaining > 0:
            span += f" and {_plural(remaining, 'month')}"
        return Insight(
            icon="🎊",
            title="Milestone Achievement",
            description=(
                f"Your relationship has flourished for {span}, with {stats.total_dates} "
                "meaningful dates together. This demonstrates a strong foundation built on "
                "consistent quality time and shared experiences."
            ),
            category=InsightCategory.TIMELINE,
            score=10,
        )
    if months >= 6:
        return Insight(
            icon="💫",
            title="Growing Connection",
            description=(
                f"After {months} months together, your relationship shows beautiful "
                f"progression with {stats.total_dates} dates. You've moved beyond the "
                "honeymoon phase into deeper understanding and connection."
            ),
            category=InsightCategory.TIMELINE,
            score=8,
        )
    if months >= 3:
        return Insight(
            icon="🌱",
            title="Blossoming Romance",
            description=(
                f"Your {months}-month journey includes {stats.total_dates} special moments "
                "together. This is a crucial period where you're truly getting to know each "
                "other's authentic selves."
            ),
            category=InsightCategory.TIMELINE,
            score=6,
        )

    weeks = max(1, stats.days_together // 7)
    return Insight(
        icon="✨",
        title="Fresh Beginning",
        description=(
            f"Your romance is {_plural(weeks, 'week')} young with {stats.total_dates} dates "
            "already. The excitement and discovery phase is in full swing, and every moment "
            "together reveals something new."
        ),
        category=InsightCategory.TIMELINE,
        score=4,
    )


def analyze_dating_patterns(stats: RelationshipStatistics) -> Insight | None:
    """Describe how regularly the couple meets. Needs at least two intervals."""
    if len(stats.date_intervals) < 2:
        return None

    average = stats.average_interval
    consistency = stats.consistency
    every = int(average)
    score = round(consistency * 10)

    if consistency > 0.8 and average <= 7:
        return Insight(
            icon="📱",
            title="Highly Connected",
            description=(
                f"You see each other every {every} days with remarkable consistency. This "
                "suggests strong mutual interest and prioritization of your relationship in "
                "both your lives."
            ),
            category=InsightCategory.DATING_PATTERN,
            score=score,
        )
    if consistency > 0.6 and average <= 14:
        return Insight(
            icon="⚖️",
            title="Balanced Rhythm",
            description=(
                f"Your dating pattern of every {every} days shows a healthy balance between "
                "togetherness and independence. This sustainable pace allows for both "
                "connection and personal growth."
            ),
            category=InsightCategory.DATING_PATTERN,
            score=score,
        )
    if average > 21:
        return Insight(
            icon="🌙",
            title="Quality Over Quantity",
            description=(
                f"While you meet less frequently (every {every} days), this suggests you "
                "both value meaningful, quality time together rather than casual encounters."
            ),
            category=InsightCategory.DATING_PATTERN,
            score=score,
        )
    return None


def analyze_location_patterns(stats: RelationshipStatistics) -> Insight | None:
    """Spot a favourite place, or a taste for variety."""
    if not stats.location_frequency:
        return None

    favorite, count = max(stats.location_frequency.items(), key=lambda item: item[1])

    if count > 2:
        share = percentage(count, stats.total_dates)
        return Insight(
            icon="🗺️",
            title="Special Place Discovered",
            description=(
                f"You've returned to {favorite} {count} times ({share}% of your dates). This "
                "location clearly holds special meaning, perhaps it's where you feel most "
                "comfortable being yourselves together."
            ),
            category=InsightCategory.LOCATION,
            score=share // 10,
        )
    if stats.distinct_locations >= 5:
        return Insight(
            icon="🌍",
            title="Adventure Seekers",
            description=(
                f"You've explored {stats.distinct_locations} different locations together, "
                "showing your shared love for new experiences and adventure. This variety "
                "keeps your relationship fresh and exciting."
            ),
            category=InsightCategory.LOCATION,
            score=stats.distinct_locations,
        )
    return None


def analyze_time_preferences(stats: RelationshipStatistics) -> Insight | None:
    """Find whether mornings, afternoons or evenings dominate.

    Evening and afternoon must strictly beat both other buckets. Morning
    wins whenever it is non-empty and at least matches afternoon.
    """
    hours = stats.time_patterns
    if not hours:
        return None

    evening = sum(1 for h in hours if h >= EVENING_START_HOUR)
    afternoon = sum(1 for h in hours if AFTERNOON_START_HOUR <= h < EVENING_START_HOUR)
    morning = sum(1 for h in hours if h < AFTERNOON_START_HOUR)
    total = len(hours)

    if evening > afternoon and evening > morning:
        return Insight(
            icon="🌆",
            title="Evening Connection",
            description=(
                "Most of your dates happen in the evening, creating intimate moments as the "
                "day winds down. This suggests you both value deep conversation and romantic "
                "ambiance."
            ),
            category=InsightCategory.TIME_PREFERENCE,
            score=percentage(evening, total) // 10,
        )
    if afternoon > morning and afternoon > evening:
        return Insight(
            icon="☀️",
            title="Afternoon Lovers",
            description=(
                "You prefer afternoon dates, making the most of daylight hours together. "
                "This indicates an active, optimistic relationship filled with energy and "
                "shared activities."
            ),
            category=InsightCategory.TIME_PREFERENCE,
            score=percentage(afternoon, total) // 10,
        )
    if morning > 0 and morning >= afternoon:
        return Insight(
            icon="🌅",
            title="Morning Partnership",
            description=(
                "Your preference for morning dates is unique and special. Starting days "
                "together shows deep commitment and the desire to share life's fresh "
                "beginnings."
            ),
            category=InsightCategory.TIME_PREFERENCE,
            score=percentage(morning, total) // 10,
        )
    return None


def analyze_relationship_momentum(stats: RelationshipStatistics) -> Insight:
    """Compare the last three gaps with the overall average gap."""
    recent = stats.date_intervals[-3:]

    if recent:
        overall_average = stats.average_interval
        recent_average = mean(recent)

        if recent_average < overall_average * 0.7:
            return Insight(
                icon="🚀",
                title="Accelerating Bond",
                description=(
                    "Your recent dating frequency has increased significantly, indicating "
                    "growing excitement and deeper connection. The relationship momentum is "
                    "building beautifully."
                ),
                category=InsightCategory.MOMENTUM,
                score=9,
            )
        if recent_average > overall_average * 1.3:
            return Insight(
                icon="🌊",
                title="Natural Ebb",
                description=(
                    "Recent dates are spaced slightly further apart, which is natural as "
                    "relationships mature. This often indicates growing comfort and security "
                    "with each other."
                ),
                category=InsightCategory.MOMENTUM,
                score=5,
            )

    return Insight(
        icon="💝",
        title="Steady Foundation",
        description=(
            "Your dating pattern shows consistent commitment and reliability. This steady "
            "approach builds trust and demonstrates mutual respect for each other's time and "
            "feelings."
        ),
        category=InsightCategory.MOMENTUM,
        score=7,
    )


def analyze_memories(stats: RelationshipStatistics) -> Insight | None:
    """Reward note-taking, or notes full of positive words."""
    if not stats.notes:
        return None

    note_share = percentage(len(stats.notes), stats.total_dates)
    joyful_notes = sum(
        1 for note in stats.notes if any(word in note.lower() for word in POSITIVE_NOTE_WORDS)
    )

    if len(stats.notes) * 2 >= stats.total_dates:
        return Insight(
            icon="📝",
            title="Memory Keeper",
            description=(
                f"You've documented {note_share}% of your dates with notes, showing how much "
                "these moments mean to you. Your attention to preserving memories "
                "demonstrates deep care for your relationship's story."
            ),
            category=InsightCategory.MEMORY,
            score=note_share // 10,
        )
    if joyful_notes >= 3:
        return Insight(
            icon="😊",
            title="Joyful Memories",
            description=(
                "Your notes are filled with positive emotions and happy memories. This "
                "emotional record shows a relationship built on joy, laughter, and genuine "
                "enjoyment of each other's company."
            ),
            category=InsightCategory.MEMORY,
            score=min(10, joyful_notes * 2),
        )
    return None


def analyze_emotional_connection(stats: RelationshipStatistics) -> Insight | None:
    """Report the most intense emotion and how many kinds are positive."""
    if not stats.emotion_frequency:
        return None

    top_emotion, top_intensity = max(stats.emotion_frequency.items(), key=lambda item: item[1])
    positive_kinds = sum(1 for kind in stats.emotion_frequency if kind in POSITIVE_EMOTIONS)

    return Insight(
        icon="💕",
        title="Emotional Signature",
        description=(
            f"Your most frequent emotion with {stats.person_name} is "
            f"{top_emotion.value.lower()} (intensity: {int(top_intensity)}/5). This emotional "
            "foundation shapes your connection: you feel genuinely good around each other. "
            f"Out of {len(stats.emotion_frequency)} emotions logged, {positive_kinds} are "
            "positive, reflecting a nurturing relationship."
        ),
        category=InsightCategory.EMOTIONAL,
        score=min(10, int(top_intensity * 2)),
    )


def analyze_gift_exchange(stats: RelationshipStatistics) -> Insight | None:
    """Compare gifts given with gifts received."""
    total = stats.total_gifts
    if total == 0:
        return None

    given, received = stats.given_gifts, stats.received_gifts
    score = min(10, total * 2)

    if given > received:
        return Insight(
            icon="🎁",
            title="Generous Spirit",
            description=(
                f"You've given {given} gifts while receiving {received}. Your generosity "
                "demonstrates thoughtfulness and care. Gift-giving is a beautiful love "
                "language you're using to show affection."
            ),
            category=InsightCategory.THOUGHTFULNESS,
            score=score,
        )
    if received > given:
        return Insight(
            icon="🎀",
            title="Cherished & Appreciated",
            description=(
                f"You've received {received} gifts compared to giving {given}. Your partner "
                "shows their affection through thoughtful gestures, demonstrating how valued "
                "you are in their life."
            ),
            category=InsightCategory.THOUGHTFULNESS,
            score=score,
        )
    return Insight(
        icon="🎊",
        title="Reciprocal Appreciation",
        description=(
            f"You and {stats.person_name} have exchanged {total} gifts equally. This balanced "
            "exchange shows mutual care and thoughtfulness: you both express love through "
            "meaningful presents."
        ),
        category=InsightCategory.THOUGHTFULNESS,
        score=score,
    )


def analyze_physical_intimacy(stats: RelationshipStatistics) -> Insight | None:
    """Report the most common touch and touch moments per date."""
    total = stats.total_touch_moments
    if total == 0:
        return None

    per_date = total / max(1, stats.total_dates)
    most_common, _ = max(stats.touch_type_frequency.items(), key=lambda item: item[1])

    return Insight(
        icon="🤝",
        title="Physical Connection",
        description=(
            f"You've shared {total} moments of physical intimacy across your dates. Your most "
            f"common form is {most_common.value.lower()}, showing how you naturally express "
            f"affection. With {per_date:.1f} moments per date, you maintain a healthy "
            "physical connection."
        ),
        category=InsightCategory.INTIMACY,
        score=min(10, round(per_date * 3)),
    )


def analyze_date_type_preferences(stats: RelationshipStatistics) -> Insight | None:
    """Report the most frequent kind of date and its share."""
    if not stats.date_type_frequency:
        return None

    favorite, count = max(stats.date_type_frequency.items(), key=lambda item: item[1])
    share = percentage(count, stats.total_dates)

    return Insight(
        icon="🎯",
        title="Date Type Preference",
        description=(
            f"{share}% of your dates are {favorite.value.lower()}s, showing this is your "
            "preferred way to spend time together. This consistency suggests you've found the "
            "activities that bring out the best in your connection."
        ),
        category=InsightCategory.DATE_TYPE,
        score=share // 10,
    )


def generate_personalized_recommendation(stats: RelationshipStatistics) -> Insight:
    """Suggest one next step. The first matching condition wins."""
    if stats.months_together < 3 and stats.total_dates >= 5:
        return Insight(
            icon="💡",
            title="Next Chapter Suggestion",
            description=(
                "Consider planning a slightly longer date experience, perhaps a weekend "
                "afternoon together. Your frequent early dates show strong connection; it's "
                "time to explore deeper shared experiences."
            ),
            category=InsightCategory.RECOMMENDATION,
            score=6,
        )
    if stats.distinct_locations <= 2 and stats.total_dates >= 3:
        return Insight(
            icon="🎯",
            title="Exploration Opportunity",
            description=(
                "Try exploring new locations together! You've established comfort in familiar "
                "places, and now's the perfect time to create fresh memories in different "
                "environments."
            ),
            category=InsightCategory.RECOMMENDATION,
            score=6,
        )
    if len(stats.notes) < stats.total_dates // 2:
        return Insight(
            icon="📱",
            title="Memory Enhancement",
            description=(
                "Consider adding more notes about your dates. These small details become "
                "precious memories over time and help you both reflect on your beautiful "
                "journey together."
            ),
            category=InsightCategory.RECOMMENDATION,
            score=6,
        )
    return Insight(
        icon="🌟",
        title="Relationship Excellence",
        description=(
            "Your dating patterns show exceptional thoughtfulness and care. Continue nurturing "
            "this beautiful connection. You're building something truly special together."
        ),
        category=InsightCategory.RECOMMENDATION,
        score=9,
    )


# Emission order of the rules
RELATIONSHIP_RULES: tuple[Callable[[RelationshipStatistics], Insight | None], ...] = (
    analyze_relationship_timeline,
    analyze_emotional_connection,
    analyze_dating_patterns,
    analyze_location_patterns,
    analyze_time_preferences,
    analyze_gift_exchange,
    analyze_physical_intimacy,
    analyze_date_type_preferences,
    analyze_relationship_momentum,
    analyze_memories,
    generate_personalized_recommendation,
)


# =============================================================================
# Analyzer
# =============================================================================


def generate_insights(stats: RelationshipStatistics) -> list[Insight]:
    """Run every rule over ``stats`` in order, dropping rules that abstain."""
    insights: list[Insight] = []
    for rule in RELATIONSHIP_RULES:
        insight = rule(stats)
        if insight is not None:
            insights.append(insight)
    return insights


class RelationshipAnalyzer:
    """Produces relationship insights for one Person.

    The synchronous ``analyze`` is a pure function of the person and the
    reference time. ``analyze_async`` adds the configured artificial delay
    in front of it.

    Attributes:
        _config: Analysis settings (delay behaviour).
        _logger: Logger instance.

    Example:
        >>> analyzer = RelationshipAnalyzer(AnalysisConfig(simulate_delay=False))
        >>> insights = asyncio.run(analyzer.analyze_async(person))
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        """Initialize the analyzer.

        Args:
            config: Analysis configuration. Uses the application config if not provided.
        """
        self._config = config or get_config().analysis
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def analyze(self, person: Person, now: datetime | None = None) -> list[Insight]:
        """Compute insights for ``person`` as of ``now``.

        Args:
            person: Person with their full date history. Never modified.
            now: Reference time. Defaults to the current local time.

        Returns:
            Ordered list of insights. Always holds at least the timeline,
            momentum and recommendation insights.
        """
        stats = compute_relationship_statistics(person, now=now)
        insights = generate_insights(stats)
        self._logger.info(f"Relationship analysis for {person.name}: {len(insights)} insights")
        return insights

    async def analyze_async(
        self,
        person: Person,
        now: datetime | None = None,
        delay: float | None = None,
    ) -> list[Insight]:
        """Wait out the artificial delay, then analyze.

        Cancelling the awaiting task during the delay raises
        ``asyncio.CancelledError`` and computes nothing.

        Args:
            person: Person to analyze.
            now: Reference time. Defaults to the time the delay ends.
            delay: Seconds to wait. Defaults to the configured delay.
        """
        await asyncio.sleep(self._delay_seconds(delay))
        return self.analyze(person, now=now)

    def _delay_seconds(self, override: float | None) -> float:
        if override is not None:
            return max(0.0, override)
        if not self._config.simulate_delay:
            return 0.0
        return self._config.delay_seconds


def analyze_relationship(person: Person, now: datetime | None = None) -> list[Insight]:
    """Convenience function: analyze without any delay.

    Example:
        >>> insights = analyze_relationship(person)
    """
    return generate_insights(compute_relationship_statistics(person, now=now))
