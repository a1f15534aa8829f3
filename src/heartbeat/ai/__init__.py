"""Insight analyzers for Heartbeat.

Both analyzers are rule-based: they aggregate a person's (or a single
date's) logged data and pick canned insight texts by threshold rules.

Exports:
    - RelationshipAnalyzer: Insights over a person's whole history
    - DateAnalyzer: Insights over one date
    - Insight / InsightCategory: The shared result record
    - analyze_relationship / analyze_date: Delay-free convenience functions
"""

from heartbeat.ai.date_analyzer import DateAnalyzer, analyze_date
from heartbeat.ai.insights import Insight, InsightCategory
from heartbeat.ai.relationship_analyzer import RelationshipAnalyzer, analyze_relationship

__all__ = [
    "DateAnalyzer",
    "Insight",
    "InsightCategory",
    "RelationshipAnalyzer",
    "analyze_date",
    "analyze_relationship",
]
