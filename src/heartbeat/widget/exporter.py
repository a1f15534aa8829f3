"""Widget data export.

Finds the soonest upcoming date across every person and writes it to a
JSON file in the shared container directory, where the countdown widget
reads it. When nothing is upcoming the file is removed so the widget
falls back to its placeholder.

Example:
    >>> exporter = WidgetDataExporter(Path("~/.heartbeat/shared").expanduser())
    >>> exporter.update(store.list_people())
    WidgetData(person_name='Sam', ...)
"""

from __future__ import annotations

import logging
from datetime import datetime
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from heartbeat.config import AppConfig
from heartbeat.core.models import DateLog, Person
from heartbeat.utils.files import atomic_write_text
from heartbeat.widget.models import WidgetData

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "nextDateWidgetData.json"


class WidgetExportError(Exception):
    """Raised when the widget data file cannot be written or removed."""

    pass


def format_display_text(person_name: str, when: datetime) -> str:
    """Format as ``"Sam - Jan 10, 2026 at 9:30 AM"``."""
    hour = when.hour % 12 or 12
    meridiem = "AM" if when.hour < 12 else "PM"
    return f"{person_name} - {when:%b} {when.day}, {when.year} at {hour}:{when:%M} {meridiem}"


def next_upcoming_date(
    people: list[Person],
    now: datetime | None = None,
) -> tuple[Person, DateLog] | None:
    """The earliest date strictly after ``now`` across all people.

    Ties keep roster order.
    """
    now = now or datetime.now()
    candidates = [
        (person, date_log)
        for person in people
        for date_log in person.dates
        if date_log.full_datetime > now
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda pair: pair[1].full_datetime)


def compress_photo(photo_data: bytes, max_pixels: int = 100, quality: int = 50) -> bytes | None:
    """Downscale a photo to fit ``max_pixels`` square and re-encode as JPEG.

    Returns None when the bytes are not a decodable image or exceed
    Pillow's decompression-bomb limit.
    """
    try:
        with Image.open(BytesIO(photo_data)) as img:
            # JPEG has no alpha or palette modes
            if img.mode != "RGB":
                img = img.convert("RGB")
            img.thumbnail((max_pixels, max_pixels))
            buffer = BytesIO()
            img.save(buffer, format="JPEG", quality=quality)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        logger.warning(f"Could not compress photo for widget: {e}")
        return None

    compressed = buffer.getvalue()
    logger.debug(f"Compressed photo from {len(photo_data)} to {len(compressed)} bytes")
    return compressed


class WidgetDataExporter:
    """Writes the next upcoming date into the shared widget container.

    Attributes:
        container_dir: Directory shared with the widget.
        filename: Name of the data file inside ``container_dir``.
        photo_max_pixels: Bounding box edge for the embedded thumbnail.
        jpeg_quality: JPEG quality for the embedded thumbnail.
    """

    def __init__(
        self,
        container_dir: Path,
        filename: str = DEFAULT_FILENAME,
        photo_max_pixels: int = 100,
        jpeg_quality: int = 50,
    ) -> None:
        self.container_dir = Path(container_dir)
        self.filename = filename
        self.photo_max_pixels = photo_max_pixels
        self.jpeg_quality = jpeg_quality

    @classmethod
    def from_config(cls, config: AppConfig) -> "WidgetDataExporter":
        return cls(
            container_dir=config.paths.shared_container_dir,
            filename=config.widget.filename,
            photo_max_pixels=config.widget.photo_max_pixels,
            jpeg_quality=config.widget.jpeg_quality,
        )

    @property
    def data_file(self) -> Path:
        return self.container_dir / self.filename

    def build(self, people: list[Person], now: datetime | None = None) -> WidgetData | None:
        """Build the widget record without touching the filesystem."""
        found = next_upcoming_date(people, now)
        if found is None:
            return None

        person, date_log = found
        photo = None
        if person.photo_data:
            photo = compress_photo(person.photo_data, self.photo_max_pixels, self.jpeg_quality)

        return WidgetData(
            person_name=person.name,
            upcoming_date=date_log.full_datetime,
            location=date_log.location,
            display_text=format_display_text(person.name, date_log.full_datetime),
            has_data=True,
            person_photo_data=photo,
            latitude=date_log.latitude,
            longitude=date_log.longitude,
        )

    def update(self, people: list[Person], now: datetime | None = None) -> WidgetData | None:
        """Rewrite the data file for ``people``, or remove it when nothing is upcoming.

        Returns:
            The record written, or None when the file was removed.

        Raises:
            WidgetExportError: If the file cannot be written or removed.
        """
        data = self.build(people, now) if people else None
        if data is None:
            logger.info("No upcoming dates; clearing widget data")
            self.clear()
            return None

        try:
            atomic_write_text(self.data_file, data.to_json(), prefix=".widget_")
        except OSError as e:
            raise WidgetExportError(f"Failed to write widget data to {self.data_file}: {e}") from e

        logger.info(
            f"Updated widget data for {data.person_name} at {data.location} on {data.upcoming_date}"
        )
        return data

    def clear(self) -> None:
        """Remove the data file if present."""
        try:
            self.data_file.unlink(missing_ok=True)
        except OSError as e:
            raise WidgetExportError(f"Failed to remove widget data {self.data_file}: {e}") from e
