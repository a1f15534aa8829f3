"""JSON Roster Store: Persistence for the Person Aggregate.

Every Person, with all of their dates, lives in one JSON document:

    {"version": 1, "people": [{...Person...}, ...]}

Each operation loads the document, changes it and writes it back
atomically, so a concurrent reader (the widget) sees either the old or
the new file and never a partial one. After every successful save the
store hands the roster to an optional widget exporter; exporter failures
are logged and never undo the save.

Example:
    >>> store = PersonStore(Path("~/.heartbeat/people.json").expanduser())
    >>> sam = store.add_person(Person(name="Sam", meeting_date=date(2026, 1, 8)))
    >>> store.add_date(sam.id, DateLog(location="Blue Bottle", date=date(2026, 1, 10)))
    >>> store.current_person().name
    'Sam'
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, Field, ValidationError

from heartbeat.core.models import DateLog, Person
from heartbeat.core.models import archived_people as _archived_people
from heartbeat.core.models import current_person as _current_person
from heartbeat.utils.files import atomic_write_text
from heartbeat.widget.exporter import WidgetExportError

SCHEMA_VERSION = 1


# =============================================================================
# Exceptions
# =============================================================================


class StorageError(Exception):
    """Base exception for roster persistence errors.

    Storage errors are recoverable: the caller may retry the operation or
    discard the change. The file on disk is never left half-written.

    Attributes:
        message: Human-readable error description.
        retriable: Whether retrying the same operation may succeed.
        original_error: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        retriable: bool = False,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.retriable = retriable
        self.original_error = original_error

    def __str__(self) -> str:
        return self.message


class PersonNotFoundError(StorageError):
    """No person with the requested id exists."""

    def __init__(self, person_id: str) -> None:
        super().__init__(f"Person not found: {person_id}")
        self.person_id = person_id


class DateNotFoundError(StorageError):
    """The person exists but has no date with the requested id."""

    def __init__(self, person_id: str, date_id: str) -> None:
        super().__init__(f"Date {date_id} not found for person {person_id}")
        self.person_id = person_id
        self.date_id = date_id


# =============================================================================
# Document Model
# =============================================================================


class RosterDocument(BaseModel):
    """On-disk layout of the roster file."""

    version: int = SCHEMA_VERSION
    people: list[Person] = Field(default_factory=list)

    model_config = {"ser_json_bytes": "base64", "val_json_bytes": "base64"}


class RosterListener(Protocol):
    """Anything notified with the full roster after a save (the widget exporter)."""

    def update(self, people: list[Person], now: datetime | None = None) -> Any: ...


# =============================================================================
# Store
# =============================================================================


class PersonStore:
    """Persists the roster of people to a single JSON file.

    Attributes:
        path: Location of the JSON document.
        listener: Optional object notified after every save.
    """

    def __init__(self, path: Path, listener: RosterListener | None = None) -> None:
        self.path = Path(path)
        self.listener = listener
        self._logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # -------------------------------------------------------------------------
    # Load / save
    # -------------------------------------------------------------------------

    def load(self) -> list[Person]:
        """Read the roster. A missing file is an empty roster.

        Raises:
            StorageError: If the file cannot be read, is not valid JSON, or
                was written by a newer schema version.
        """
        if not self.path.exists():
            return []

        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(
                f"Cannot read roster file {self.path}: {e}", retriable=True, original_error=e
            ) from e
        except UnicodeDecodeError as e:
            raise StorageError(
                f"Roster file {self.path} is corrupt: not UTF-8 text", original_error=e
            ) from e

        if not content.strip():
            return []

        try:
            document = RosterDocument.model_validate_json(content)
        except ValidationError as e:
            raise StorageError(
                f"Roster file {self.path} is corrupt: {e.error_count()} validation errors",
                original_error=e,
            ) from e

        if document.version > SCHEMA_VERSION:
            raise StorageError(
                f"Roster file {self.path} has unsupported version {document.version}"
            )

        return document.people

    def save(self, people: list[Person], now: datetime | None = None) -> None:
        """Write the roster atomically and notify the listener.

        Raises:
            StorageError: If the write fails. The previous file is kept.
        """
        document = RosterDocument(people=people)
        try:
            atomic_write_text(self.path, document.model_dump_json(indent=2), prefix=".people_")
        except OSError as e:
            raise StorageError(
                f"Failed to write roster file {self.path}: {e}", retriable=True, original_error=e
            ) from e

        self._logger.debug(f"Saved {len(people)} people to {self.path}")
        self._notify(people, now)

    def _notify(self, people: list[Person], now: datetime | None) -> None:
        if self.listener is None:
            return
        try:
            self.listener.update(people, now=now)
        except WidgetExportError as e:
            self._logger.warning(f"Widget data update failed: {e}")

    # -------------------------------------------------------------------------
    # People
    # -------------------------------------------------------------------------

    def list_people(self) -> list[Person]:
        return self.load()

    def get_person(self, person_id: str) -> Person:
        """Look up one person.

        Raises:
            PersonNotFoundError: If no person has ``person_id``.
        """
        for person in self.load():
            if person.id == person_id:
                return person
        raise PersonNotFoundError(person_id)

    def add_person(self, person: Person) -> Person:
        people = self.load()
        if any(p.id == person.id for p in people):
            raise StorageError(f"Person already exists: {person.id}")
        people.append(person)
        self.save(people)
        self._logger.info(f"Added person {person.name} ({person.id})")
        return person

    def update_person(self, person: Person) -> Person:
        """Replace the stored person that has ``person.id``."""
        people = self.load()
        index = self._index_of(people, person.id)
        people[index] = person
        self.save(people)
        return person

    def delete_person(self, person_id: str) -> Person:
        """Remove a person together with all of their dates."""
        people = self.load()
        index = self._index_of(people, person_id)
        removed = people.pop(index)
        self.save(people)
        self._logger.info(f"Deleted person {removed.name} and {len(removed.dates)} dates")
        return removed

    # -------------------------------------------------------------------------
    # Dates
    # -------------------------------------------------------------------------

    def add_date(self, person_id: str, date_log: DateLog) -> DateLog:
        people = self.load()
        person = people[self._index_of(people, person_id)]
        person.add_date(date_log)
        self.save(people)
        return date_log

    def update_date(self, person_id: str, date_log: DateLog) -> DateLog:
        """Replace the date that has ``date_log.id`` on the given person."""
        people = self.load()
        person = people[self._index_of(people, person_id)]
        for index, existing in enumerate(person.dates):
            if existing.id == date_log.id:
                person.dates[index] = date_log
                break
        else:
            raise DateNotFoundError(person_id, date_log.id)
        self.save(people)
        return date_log

    def delete_date(self, person_id: str, date_id: str) -> None:
        people = self.load()
        person = people[self._index_of(people, person_id)]
        if not person.remove_date(date_id):
            raise DateNotFoundError(person_id, date_id)
        self.save(people)

    # -------------------------------------------------------------------------
    # Roster selection
    # -------------------------------------------------------------------------

    def current_person(self) -> Person | None:
        return _current_person(self.load())

    def archived_people(self) -> list[Person]:
        return _archived_people(self.load())

    @staticmethod
    def _index_of(people: list[Person], person_id: str) -> int:
        for index, person in enumerate(people):
            if person.id == person_id:
                return index
        raise PersonNotFoundError(person_id)
