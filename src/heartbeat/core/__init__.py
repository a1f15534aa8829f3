"""Core data models and statistics for Heartbeat."""
