"""Tests for widget data export and consumption."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from conftest import create_test_photo, make_date
from heartbeat.core.models import Person
from heartbeat.storage.store import PersonStore
from heartbeat.widget.exporter import (
    WidgetDataExporter,
    compress_photo,
    format_display_text,
    next_upcoming_date,
)
from heartbeat.widget.models import WidgetData
from heartbeat.widget.reader import (
    build_timeline,
    countdown_text,
    is_past,
    load_widget_data,
    time_remaining,
)


def person_with_dates(name: str, *moments: datetime, photo: bytes | None = None) -> Person:
    person = Person(name=name, meeting_date=date(2026, 1, 1), photo_data=photo)
    for moment in moments:
        person.add_date(make_date(moment.date(), hour=moment.hour, location=f"{name}'s place"))
    return person


# =============================================================================
# Producer
# =============================================================================


class TestDisplayText:
    @pytest.mark.parametrize(
        "when, expected",
        [
            (datetime(2026, 1, 10, 9, 30), "Sam - Jan 10, 2026 at 9:30 AM"),
            (datetime(2026, 11, 3, 21, 5), "Sam - Nov 3, 2026 at 9:05 PM"),
            (datetime(2026, 7, 1, 0, 15), "Sam - Jul 1, 2026 at 12:15 AM"),
            (datetime(2026, 7, 1, 12, 0), "Sam - Jul 1, 2026 at 12:00 PM"),
        ],
    )
    def test_format(self, when: datetime, expected: str) -> None:
        assert format_display_text("Sam", when) == expected


class TestNextUpcomingDate:
    def test_earliest_across_people(self, now: datetime) -> None:
        sam = person_with_dates("Sam", now + timedelta(days=3), now - timedelta(days=1))
        alex = person_with_dates("Alex", now + timedelta(days=1, hours=2))

        person, date_log = next_upcoming_date([sam, alex], now)

        assert person.name == "Alex"
        assert date_log.location == "Alex's place"

    def test_date_at_now_is_not_upcoming(self, now: datetime) -> None:
        sam = person_with_dates("Sam", now)
        assert next_upcoming_date([sam], now) is None


class TestCompressPhoto:
    def test_fits_bounding_box_as_jpeg(self, photo_bytes: bytes) -> None:
        compressed = compress_photo(photo_bytes, max_pixels=100, quality=50)

        with Image.open(BytesIO(compressed)) as img:
            assert img.format == "JPEG"
            assert img.size == (100, 75)

    def test_small_photo_not_upscaled(self) -> None:
        compressed = compress_photo(create_test_photo(40, 20, fmt="JPEG"))
        with Image.open(BytesIO(compressed)) as img:
            assert img.size == (40, 20)

    def test_undecodable_photo(self) -> None:
        assert compress_photo(b"not an image") is None

    def test_oversized_photo(self, photo_bytes: bytes, monkeypatch: pytest.MonkeyPatch) -> None:
        # 400x300 is more than twice this limit, which Pillow treats as an error
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        assert compress_photo(photo_bytes) is None

    def test_oversized_photo_does_not_block_save(
        self,
        tmp_path: Path,
        exporter: WidgetDataExporter,
        photo_bytes: bytes,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        store = PersonStore(tmp_path / "people.json", listener=exporter)
        sam = Person(name="Sam", meeting_date=date(2026, 1, 1), photo_data=photo_bytes)
        sam.add_date(make_date(date(2099, 6, 1)))

        store.add_person(sam)

        assert store.get_person(sam.id).photo_data == photo_bytes
        assert "personPhotoData" not in json.loads(exporter.data_file.read_text())


class TestExporter:
    def test_writes_camel_case_record(
        self, exporter: WidgetDataExporter, now: datetime, photo_bytes: bytes
    ) -> None:
        sam = person_with_dates("Sam", datetime(2026, 10, 20, 19, 0), photo=photo_bytes)

        exporter.update([sam], now)

        payload = json.loads(exporter.data_file.read_text())
        assert payload["personName"] == "Sam"
        assert payload["location"] == "Sam's place"
        assert payload["displayText"] == "Sam - Oct 20, 2026 at 7:00 PM"
        assert payload["hasData"] is True
        assert isinstance(payload["personPhotoData"], str)
        assert "latitude" not in payload
        assert exporter.data_file.name == "nextDateWidgetData.json"

    def test_coordinates_exported(self, exporter: WidgetDataExporter, now: datetime) -> None:
        sam = Person(name="Sam", meeting_date=date(2026, 1, 1))
        sam.add_date(make_date(date(2026, 10, 20), latitude=51.5, longitude=-0.12))

        data = exporter.update([sam], now)

        assert data.latitude == 51.5
        assert json.loads(exporter.data_file.read_text())["longitude"] == -0.12

    def test_no_people_removes_file(self, exporter: WidgetDataExporter, now: datetime) -> None:
        exporter.update([person_with_dates("Sam", now + timedelta(days=1))], now)
        assert exporter.data_file.exists()

        assert exporter.update([], now) is None
        assert not exporter.data_file.exists()

    def test_no_upcoming_removes_file(self, exporter: WidgetDataExporter, now: datetime) -> None:
        exporter.update([person_with_dates("Sam", now + timedelta(days=1))], now)

        exporter.update([person_with_dates("Sam", now - timedelta(days=1))], now)

        assert not exporter.data_file.exists()

    def test_bad_photo_is_omitted(self, exporter: WidgetDataExporter, now: datetime) -> None:
        sam = person_with_dates("Sam", now + timedelta(days=1), photo=b"garbage")

        data = exporter.update([sam], now)

        assert data.person_photo_data is None

    def test_clear_is_idempotent(self, exporter: WidgetDataExporter) -> None:
        exporter.clear()
        exporter.clear()
        assert not exporter.data_file.exists()

    def test_store_keeps_widget_in_sync(self, tmp_path: Path, exporter: WidgetDataExporter) -> None:
        store = PersonStore(tmp_path / "people.json", listener=exporter)
        sam = Person(name="Sam", meeting_date=date(2026, 1, 1))
        store.add_person(sam)
        assert not exporter.data_file.exists()

        upcoming = make_date(date(2099, 6, 1), location="Somewhere later")
        store.add_date(sam.id, upcoming)
        assert exporter.data_file.exists()

        store.delete_date(sam.id, upcoming.id)
        assert not exporter.data_file.exists()


# =============================================================================
# Consumer
# =============================================================================


class TestLoadWidgetData:
    def test_missing_file_gives_placeholder(self, tmp_path: Path, now: datetime) -> None:
        data = load_widget_data(tmp_path / "absent.json", now)

        assert data.has_data is False
        assert data.person_name == "No Data"
        assert data.location == "Open Heartbeat app"
        assert data.display_text == "Add a date"
        assert data.upcoming_date == now + timedelta(days=1)

    def test_corrupt_file_gives_placeholder(self, tmp_path: Path, now: datetime) -> None:
        path = tmp_path / "data.json"
        path.write_text('{"personName": "Sam"')

        assert load_widget_data(path, now).has_data is False

    def test_missing_has_data_defaults_true(self, tmp_path: Path, now: datetime) -> None:
        path = tmp_path / "data.json"
        path.write_text(
            json.dumps(
                {
                    "personName": "Sam",
                    "upcomingDate": "2026-10-20T19:00:00",
                    "location": "Dishoom",
                    "displayText": "Sam - Oct 20, 2026 at 7:00 PM",
                }
            )
        )

        data = load_widget_data(path, now)

        assert data.has_data is True
        assert data.upcoming_date == datetime(2026, 10, 20, 19, 0)

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (1792000000, datetime.fromtimestamp(1792000000)),
            (
                "2026-10-20T19:00:00Z",
                datetime(2026, 10, 20, 19, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None),
            ),
        ],
    )
    def test_aware_timestamps_become_local(
        self, tmp_path: Path, now: datetime, raw: object, expected: datetime
    ) -> None:
        path = tmp_path / "data.json"
        path.write_text(
            json.dumps(
                {
                    "personName": "Sam",
                    "upcomingDate": raw,
                    "location": "Dishoom",
                    "displayText": "Sam - soon",
                }
            )
        )

        data = load_widget_data(path, now)

        assert data.has_data is True
        assert data.upcoming_date.tzinfo is None
        assert data.upcoming_date == expected
        assert countdown_text(data, now)
        assert is_past(data, now) is (expected <= now)

    def test_reads_exporter_output(
        self, exporter: WidgetDataExporter, now: datetime, photo_bytes: bytes
    ) -> None:
        written = exporter.update(
            [person_with_dates("Sam", datetime(2026, 10, 20, 19, 0), photo=photo_bytes)], now
        )

        assert load_widget_data(exporter.data_file, now) == written


class TestCountdown:
    @pytest.fixture
    def data(self) -> WidgetData:
        return WidgetData(
            person_name="Sam",
            upcoming_date=datetime(2026, 10, 20, 15, 15),
            location="Dishoom",
            display_text="Sam - Oct 20, 2026 at 3:15 PM",
        )

    def test_time_remaining(self, data: WidgetData, now: datetime) -> None:
        assert time_remaining(data, now) == (2, 3, 15)
        assert countdown_text(data, now) == "2D 3H 15M"
        assert countdown_text(data, now, include_minutes=False) == "2D 3H"

    def test_past_is_zero(self, data: WidgetData) -> None:
        later = datetime(2026, 10, 21)
        assert time_remaining(data, later) == (0, 0, 0)
        assert is_past(data, later)

    def test_exact_moment_is_past(self, data: WidgetData) -> None:
        assert is_past(data, data.upcoming_date)
        assert not is_past(data, data.upcoming_date - timedelta(seconds=1))

    def test_timeline(self, data: WidgetData, now: datetime) -> None:
        timeline = build_timeline(data, now)

        assert len(timeline.entries) == 12
        assert timeline.entries[0].date == now
        assert timeline.entries[-1].date == now + timedelta(minutes=55)
        assert timeline.refresh_at == now + timedelta(minutes=15)
        assert all(entry.data is data for entry in timeline.entries)
