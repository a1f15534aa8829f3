"""Insight records shared by the relationship and single-date analyzers."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator


class InsightCategory(str, Enum):
    """What an insight is about.

    The first group is produced by the relationship analyzer, the second by
    the single-date analyzer. EMOTIONAL, INTIMACY and THOUGHTFULNESS are
    shared.
    """

    TIMELINE = "timeline"
    DATING_PATTERN = "dating_pattern"
    LOCATION = "location"
    TIME_PREFERENCE = "time_preference"
    MOMENTUM = "momentum"
    MEMORY = "memory"
    DATE_TYPE = "date_type"
    RECOMMENDATION = "recommendation"

    EMOTIONAL = "emotional"
    INTIMACY = "intimacy"
    THOUGHTFULNESS = "thoughtfulness"

    COMMUNICATION = "communication"
    REFLECTION = "reflection"
    OVERALL = "overall"
    GROWTH = "growth"


class Insight(BaseModel):
    """A templated observation selected by a threshold rule.

    Attributes:
        title: Short heading.
        description: Pre-authored prose with the rule's numbers filled in.
        category: Which rule family produced it.
        score: Heuristic strength from 0 to 10.
        icon: Emoji or symbol name for display.
    """

    title: str
    description: str
    category: InsightCategory
    score: int = Field(default=5, ge=0, le=10)
    icon: str = ""

    model_config = {"frozen": True}

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, v: int | float) -> int:
        return max(0, min(10, int(v)))
