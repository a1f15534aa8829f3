"""Heartbeat: a relationship journal with heuristic insights."""

__version__ = "1.0.0"
