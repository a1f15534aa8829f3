"""Single-date analyzer.

Applies the same style of threshold rules as the relationship analyzer,
but over one DateLog: its emotions, discussion points, touch moments,
gifts and journal entry. Two insights are always produced (date quality
and relationship growth).

Example:
    >>> insights = DateAnalyzer(AnalysisConfig(simulate_delay=False)).analyze(date_log)
    >>> insights[-1].title
    'Relationship Growth'
"""

from __future__ import annotations

import asyncio
import logging

from heartbeat.ai.insights import Insight, InsightCategory
from heartbeat.config import AnalysisConfig, get_config
from heartbeat.core.models import (
    POSITIVE_EMOTIONS,
    DateLog,
    GiftGiver,
    PhysicalTouchType,
)

JOURNAL_POSITIVE_WORDS: tuple[str, ...] = (
    "great",
    "amazing",
    "wonderful",
    "perfect",
    "love",
    "happy",
    "fun",
    "enjoyed",
    "beautiful",
)

HIGH_INTIMACY_TOUCHES = frozenset({PhysicalTouchType.KISS, PhysicalTouchType.CUDDLE})
MEDIUM_INTIMACY_TOUCHES = frozenset({PhysicalTouchType.HUG, PhysicalTouchType.HAND_HOLDING})


def analyze_emotions(date_log: DateLog) -> Insight | None:
    """Overall tone of the logged emotions, listing the first three.

    Positive when more than half of the entries are in ``POSITIVE_EMOTIONS``.
    """
    emotions = date_log.emotions
    if not emotions:
        return None

    # Integer mean, as shown to the user ("4/5")
    average = sum(e.intensity for e in emotions) // len(emotions)
    dominant = ", ".join(e.emotion_type.value for e in emotions[:3])
    positive = sum(1 for e in emotions if e.emotion_type in POSITIVE_EMOTIONS)

    if positive > len(emotions) // 2:
        description = (
            f"This date generated predominantly positive emotions. You felt {dominant} with "
            f"an average intensity of {average}/5. This suggests strong emotional connection "
            "and enjoyment."
        )
    else:
        description = (
            f"This date had mixed emotional responses. Key feelings included {dominant}. "
            "Consider what might have contributed to less positive emotions."
        )

    return Insight(
        title="Emotional Analysis",
        description=description,
        category=InsightCategory.EMOTIONAL,
        score=min(10, average * 2),
        icon="heart.circle",
    )


def analyze_discussion_points(date_log: DateLog) -> Insight | None:
    """Conversation depth by number of topics (5+, 3+, fewer)."""
    count = len(date_log.discussion_points)
    if count == 0:
        return None

    if count >= 5:
        description = (
            f"Excellent conversation depth! You discussed {count} different topics, showing "
            "strong communication and mutual interest. High variety in conversation topics "
            "indicates good compatibility."
        )
    elif count >= 3:
        description = (
            f"Good conversation flow with {count} discussion points. This shows healthy "
            "communication, though there's room for deeper exploration of topics."
        )
    else:
        description = (
            f"Limited discussion points ({count}) recorded. Consider whether conversation "
            "flowed naturally or if there might be opportunities for deeper connection."
        )

    return Insight(
        title="Communication Quality",
        description=description,
        category=InsightCategory.COMMUNICATION,
        score=min(10, count * 2),
        icon="bubble.left.and.bubble.right",
    )


def intimacy_level(date_log: DateLog) -> str:
    """Classify the date's touch moments as High, Medium or Low."""
    kinds = {m.touch_type for m in date_log.physical_touch_moments}
    if kinds & HIGH_INTIMACY_TOUCHES:
        return "High"
    if kinds & MEDIUM_INTIMACY_TOUCHES:
        return "Medium"
    return "Low"


def analyze_physical_touch(date_log: DateLog) -> Insight | None:
    """Touch moments and their intimacy level; see ``intimacy_level``."""
    count = len(date_log.physical_touch_moments)
    if count == 0:
        return None

    level = intimacy_level(date_log)
    return Insight(
        title="Physical Intimacy",
        description=(
            f"Physical intimacy level: {level}. You recorded {count} physical touch moments, "
            f"indicating {level.lower()} physical comfort and connection. Physical touch is an "
            "important bonding mechanism in relationships."
        ),
        category=InsightCategory.INTIMACY,
        score=min(10, count * 3),
        icon="hands.sparkles",
    )


def analyze_gifts(date_log: DateLog) -> Insight | None:
    """Gift counts by giver, closing on mutual, given or received."""
    count = len(date_log.gifts)
    if count == 0:
        return None

    given = sum(1 for g in date_log.gifts if g.giver == GiftGiver.ME)
    received = count - given

    if given > 0 and received > 0:
        closing = "Mutual gift-giving shows thoughtfulness from both parties."
    elif given > 0:
        closing = "Your thoughtfulness in giving gifts shows care and consideration."
    else:
        closing = "Receiving gifts indicates their thoughtfulness towards you."

    return Insight(
        title="Thoughtfulness",
        description=f"Gift exchange: {count} total ({given} given, {received} received). {closing}",
        category=InsightCategory.THOUGHTFULNESS,
        score=min(10, count * 3),
        icon="gift",
    )


def journal_sentiment(positive_words: int) -> str:
    """Map a count of distinct positive keywords to a sentiment label."""
    if positive_words > 3:
        return "Very Positive"
    if positive_words > 1:
        return "Positive"
    return "Neutral"


def analyze_journal_entry(date_log: DateLog) -> Insight | None:
    """Word count plus a keyword sentiment over the journal entry.

    Each keyword counts once however often it appears.
    """
    entry = date_log.journal_entry
    if not entry:
        return None

    word_count = len(entry.split())
    lowered = entry.lower()
    positive_words = sum(1 for word in JOURNAL_POSITIVE_WORDS if word in lowered)
    sentiment = journal_sentiment(positive_words)

    if word_count > 50:
        closing = "Detailed journaling indicates significant emotional impact."
    else:
        closing = "Consider writing more detailed entries to capture memories better."

    return Insight(
        title="Personal Reflection",
        description=(
            f"Journal sentiment: {sentiment}. Your {word_count}-word entry reveals "
            f"{sentiment.lower()} feelings about this date. {closing}"
        ),
        category=InsightCategory.REFLECTION,
        score=min(10, word_count // 10 + positive_words * 2),
        icon="book",
    )


_QUALITY_TEXT: dict[int, str] = {
    4: (
        "Comprehensive date documentation! You've captured emotions, conversations, physical "
        "moments, and personal reflections. This suggests a well-rounded, meaningful experience."
    ),
    3: (
        "Well-documented date with good detail across multiple dimensions. This indicates a "
        "quality time together with meaningful connection."
    ),
    2: (
        "Moderate documentation. Consider capturing more aspects of your dates to build richer "
        "memories and insights over time."
    ),
}

_LIMITED_QUALITY_TEXT = (
    "Limited documentation. Recording more details about your dates can help you understand "
    "patterns and growth in your relationship."
)


def documentation_completeness(date_log: DateLog) -> int:
    """How many of emotions, discussion, journal and touch were recorded (0-4)."""
    return sum(
        (
            bool(date_log.emotions),
            bool(date_log.discussion_points),
            bool(date_log.journal_entry),
            bool(date_log.physical_touch_moments),
        )
    )


def analyze_overall_quality(date_log: DateLog) -> Insight:
    """Always emitted. Score rises by 2 per documented aspect, from 2 to 10."""
    completeness = documentation_completeness(date_log)
    return Insight(
        title="Date Quality Score",
        description=_QUALITY_TEXT.get(completeness, _LIMITED_QUALITY_TEXT),
        category=InsightCategory.OVERALL,
        score=completeness * 2 + 2,
        icon="star.circle",
    )


def analyze_relationship_growth(date_log: DateLog) -> Insight:
    """Always emitted with fixed text, independent of the date's contents."""
    return Insight(
        title="Relationship Growth",
        description=(
            "Based on the richness of this date experience, your relationship shows signs of "
            "healthy development. The variety of emotional, physical, and intellectual "
            "connections suggests growing intimacy and compatibility."
        ),
        category=InsightCategory.GROWTH,
        score=8,
        icon="arrow.up.heart",
    )


DATE_RULES = (
    analyze_emotions,
    analyze_discussion_points,
    analyze_physical_touch,
    analyze_gifts,
    analyze_journal_entry,
    analyze_overall_quality,
    analyze_relationship_growth,
)


def analyze_date(date_log: DateLog) -> list[Insight]:
    """Run every single-date rule in order, dropping rules that abstain."""
    insights = [rule(date_log) for rule in DATE_RULES]
    return [insight for insight in insights if insight is not None]


class DateAnalyzer:
    """Produces insights for one DateLog, with an optional artificial delay.

    Attributes:
        _config: Delay settings.
        _logger: Logger instance.
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self._config = config or get_config().analysis
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def analyze(self, date_log: DateLog) -> list[Insight]:
        insights = analyze_date(date_log)
        self._logger.info(
            f"Date analysis for {date_log.location} on {date_log.date}: {len(insights)} insights"
        )
        return insights

    async def analyze_async(self, date_log: DateLog, delay: float | None = None) -> list[Insight]:
        """Wait out the artificial delay, then analyze.

        Cancelling the awaiting task during the delay raises
        ``asyncio.CancelledError`` and computes nothing.
        """
        await asyncio.sleep(self._delay_seconds(delay))
        return self.analyze(date_log)

    def _delay_seconds(self, override: float | None) -> float:
        if override is not None:
            return max(0.0, override)
        if not self._config.simulate_delay:
            return 0.0
        return self._config.delay_seconds
