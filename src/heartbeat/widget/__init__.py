"""Countdown widget data: producer, shared record and reader."""

from heartbeat.widget.exporter import WidgetDataExporter, WidgetExportError
from heartbeat.widget.models import WidgetData
from heartbeat.widget.reader import build_timeline, load_widget_data, time_remaining

__all__ = [
    "WidgetData",
    "WidgetDataExporter",
    "WidgetExportError",
    "build_timeline",
    "load_widget_data",
    "time_remaining",
]
