"""Tests for the single-date analyzer."""

from __future__ import annotations

import asyncio
import logging
from datetime import date

import pytest

from heartbeat.ai.date_analyzer import (
    DateAnalyzer,
    analyze_date,
    analyze_discussion_points,
    analyze_emotions,
    analyze_gifts,
    analyze_journal_entry,
    analyze_physical_touch,
    documentation_completeness,
)
from heartbeat.ai.insights import InsightCategory
from heartbeat.config import AnalysisConfig
from heartbeat.core.models import (
    DateLog,
    EmotionEntry,
    EmotionType,
    Gift,
    GiftGiver,
    PhysicalTouchMoment,
    PhysicalTouchType,
)


def bare_date(**kwargs) -> DateLog:
    return DateLog(location="Hyde Park", date=date(2026, 10, 1), **kwargs)


class TestAnalyzeDate:
    def test_bare_date_yields_quality_and_growth(self) -> None:
        insights = analyze_date(bare_date())

        assert [i.title for i in insights] == ["Date Quality Score", "Relationship Growth"]
        assert insights[0].score == 2
        assert insights[0].description.startswith("Limited documentation")
        assert insights[1].score == 8

    def test_busy_date_order(self, busy_date: DateLog) -> None:
        insights = analyze_date(busy_date)

        assert [i.category for i in insights] == [
            InsightCategory.EMOTIONAL,
            InsightCategory.COMMUNICATION,
            InsightCategory.INTIMACY,
            InsightCategory.THOUGHTFULNESS,
            InsightCategory.REFLECTION,
            InsightCategory.OVERALL,
            InsightCategory.GROWTH,
        ]
        quality = insights[5]
        assert quality.score == 10
        assert quality.description.startswith("Comprehensive date documentation!")

    def test_async_wrapper(self, busy_date: DateLog) -> None:
        analyzer = DateAnalyzer(AnalysisConfig(simulate_delay=False))
        assert asyncio.run(analyzer.analyze_async(busy_date)) == analyzer.analyze(busy_date)

    def test_cancel_during_delay(self, busy_date: DateLog) -> None:
        analyzer = DateAnalyzer(AnalysisConfig())

        async def run() -> None:
            task = asyncio.create_task(analyzer.analyze_async(busy_date, delay=30))
            await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run())

    def test_configured_delay(self) -> None:
        assert DateAnalyzer(AnalysisConfig())._delay_seconds(None) == 2.0
        assert DateAnalyzer(AnalysisConfig(simulate_delay=False))._delay_seconds(None) == 0.0
        assert DateAnalyzer(AnalysisConfig())._delay_seconds(-1.0) == 0.0

    def test_logs_under_class_logger(
        self, busy_date: DateLog, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="heartbeat"):
            DateAnalyzer(AnalysisConfig(simulate_delay=False)).analyze(busy_date)

        record = caplog.records[-1]
        assert record.name == "heartbeat.ai.date_analyzer.DateAnalyzer"
        assert "Tate Modern" in record.getMessage()


class TestEmotionRule:
    def test_predominantly_positive(self, busy_date: DateLog) -> None:
        insight = analyze_emotions(busy_date)

        assert insight.title == "Emotional Analysis"
        assert "predominantly positive" in insight.description
        assert "Happy, Excited, Nervous" in insight.description
        # (4 + 5 + 2) // 3
        assert "average intensity of 3/5" in insight.description
        assert insight.score == 6

    def test_mixed(self) -> None:
        date_log = bare_date(
            emotions=[
                EmotionEntry(emotion_type=EmotionType.SAD, intensity=2),
                EmotionEntry(emotion_type=EmotionType.HAPPY, intensity=4),
            ]
        )
        insight = analyze_emotions(date_log)
        assert "mixed emotional responses" in insight.description

    def test_only_first_three_listed(self) -> None:
        kinds = [EmotionType.HAPPY, EmotionType.LOVED, EmotionType.CONTENT, EmotionType.BORED]
        date_log = bare_date(emotions=[EmotionEntry(emotion_type=k) for k in kinds])
        assert "Bored" not in analyze_emotions(date_log).description

    def test_none_without_emotions(self) -> None:
        assert analyze_emotions(bare_date()) is None


class TestDiscussionRule:
    @pytest.mark.parametrize(
        "count, opening, score",
        [(5, "Excellent conversation depth!", 10), (3, "Good conversation flow", 6), (1, "Limited discussion points (1)", 2)],
    )
    def test_thresholds(self, count: int, opening: str, score: int) -> None:
        date_log = bare_date(discussion_points=[f"topic {i}" for i in range(count)])
        insight = analyze_discussion_points(date_log)
        assert insight.description.startswith(opening)
        assert insight.score == score


class TestTouchRule:
    @pytest.mark.parametrize(
        "kinds, level",
        [
            ([PhysicalTouchType.HUG, PhysicalTouchType.CUDDLE], "High"),
            ([PhysicalTouchType.HAND_HOLDING], "Medium"),
            ([PhysicalTouchType.DANCING, PhysicalTouchType.ARM_AROUND], "Low"),
        ],
    )
    def test_levels(self, kinds: list[PhysicalTouchType], level: str) -> None:
        date_log = bare_date(physical_touch_moments=[PhysicalTouchMoment(touch_type=k) for k in kinds])
        insight = analyze_physical_touch(date_log)
        assert insight.description.startswith(f"Physical intimacy level: {level}.")
        assert insight.score == len(kinds) * 3


class TestGiftRule:
    @pytest.mark.parametrize(
        "givers, closing",
        [
            ([GiftGiver.ME, GiftGiver.PARTNER], "Mutual gift-giving"),
            ([GiftGiver.ME], "Your thoughtfulness in giving gifts"),
            ([GiftGiver.PARTNER, GiftGiver.PARTNER], "Receiving gifts"),
        ],
    )
    def test_closing(self, givers: list[GiftGiver], closing: str) -> None:
        date_log = bare_date(gifts=[Gift(item="Flowers", giver=g) for g in givers])
        insight = analyze_gifts(date_log)
        assert closing in insight.description
        assert insight.score == len(givers) * 3


class TestJournalRule:
    def test_very_positive(self, busy_date: DateLog) -> None:
        insight = analyze_journal_entry(busy_date)

        assert insight.description.startswith("Journal sentiment: Very Positive.")
        assert "15-word entry" in insight.description
        # 15 // 10 + 4 keywords * 2
        assert insight.score == 9

    def test_neutral_and_detailed(self) -> None:
        journal = " ".join(["walked"] * 60)
        insight = analyze_journal_entry(bare_date(journal_entry=journal))
        assert "Neutral" in insight.description
        assert "Detailed journaling" in insight.description

    def test_keyword_counted_once(self) -> None:
        insight = analyze_journal_entry(bare_date(journal_entry="fun fun fun fun"))
        assert "Neutral" in insight.description

    def test_empty_journal(self) -> None:
        assert analyze_journal_entry(bare_date()) is None


def test_completeness_ignores_gifts() -> None:
    date_log = bare_date(gifts=[Gift(item="Card")], discussion_points=["work"])
    assert documentation_completeness(date_log) == 1
