"""Roster persistence.

Exports:
    - PersonStore: JSON-file store for every Person and their dates
    - StorageError, PersonNotFoundError, DateNotFoundError
"""

from heartbeat.storage.store import (
    DateNotFoundError,
    PersonNotFoundError,
    PersonStore,
    StorageError,
)

__all__ = ["DateNotFoundError", "PersonNotFoundError", "PersonStore", "StorageError"]
