"""
Command Line Interface for Heartbeat.

This module provides the user interface for the relationship journal:
managing the people you date, logging dates with their details, reading
heuristic insights and keeping the countdown widget's data file fresh.
"""

import asyncio
import logging
import sys
from datetime import datetime, time
from pathlib import Path

import click
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from heartbeat import __version__
from heartbeat.ai.date_analyzer import DateAnalyzer
from heartbeat.ai.insights import Insight, InsightCategory
from heartbeat.ai.relationship_analyzer import RelationshipAnalyzer
from heartbeat.config import AppConfig, ConfigError, get_config, load_config
from heartbeat.core.models import (
    DateLog,
    DateType,
    EmotionEntry,
    EmotionType,
    Gift,
    GiftGiver,
    Person,
    PhysicalTouchMoment,
    PhysicalTouchType,
    TouchDuration,
    current_person,
)
from heartbeat.storage.store import PersonStore, StorageError
from heartbeat.utils.logging import log_duration, setup_logging
from heartbeat.widget.exporter import WidgetDataExporter, WidgetExportError
from heartbeat.widget.reader import build_timeline, countdown_text, load_widget_data

logger = logging.getLogger(__name__)

# Initialize Rich console
console = Console()

CATEGORY_STYLES: dict[InsightCategory, str] = {
    InsightCategory.TIMELINE: "magenta",
    InsightCategory.DATING_PATTERN: "blue",
    InsightCategory.LOCATION: "green",
    InsightCategory.TIME_PREFERENCE: "yellow",
    InsightCategory.MOMENTUM: "cyan",
    InsightCategory.MEMORY: "bright_magenta",
    InsightCategory.DATE_TYPE: "bright_blue",
    InsightCategory.RECOMMENDATION: "bright_yellow",
    InsightCategory.EMOTIONAL: "red",
    InsightCategory.INTIMACY: "purple",
    InsightCategory.THOUGHTFULNESS: "green",
    InsightCategory.COMMUNICATION: "blue",
    InsightCategory.REFLECTION: "dark_orange",
    InsightCategory.OVERALL: "cyan",
    InsightCategory.GROWTH: "spring_green3",
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def print_header(text: str) -> None:
    """Print a styled header."""
    console.print()
    console.print(Panel(text, style="bold magenta", expand=False))
    console.print()


def print_success(text: str) -> None:
    """Print green success message."""
    console.print(f"[bold green]✓[/bold green] {text}")


def print_warning(text: str) -> None:
    """Print yellow warning message."""
    console.print(f"[bold yellow]⚠[/bold yellow] {text}")


def print_error(text: str) -> None:
    """Print red error message."""
    console.print(f"[bold red]✗[/bold red] {text}")


def print_info_panel(title: str, content: str, border_style: str = "blue") -> None:
    """Print info panel box."""
    console.print(Panel(content, title=title, border_style=border_style))


def fail(text: str) -> None:
    """Print an error and exit with status 1."""
    print_error(text)
    sys.exit(1)


def create_progress() -> Progress:
    """Spinner shown while an analysis is running."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    )


def short_id(value: str) -> str:
    return value[:8]


def format_when(when: datetime) -> str:
    hour = when.hour % 12 or 12
    return f"{when:%a %b} {when.day}, {when.year} {hour}:{when:%M} {'AM' if when.hour < 12 else 'PM'}"


def print_insights(insights: list[Insight]) -> None:
    """Print each insight as a panel, in analyzer order."""
    for insight in insights:
        console.print(
            Panel(
                insight.description,
                title=f"{insight.icon} [bold]{insight.title}[/bold]",
                title_align="left",
                subtitle=f"score {insight.score}/10",
                subtitle_align="right",
                border_style=CATEGORY_STYLES.get(insight.category, "blue"),
            )
        )


# =============================================================================
# ARGUMENT PARSING
# =============================================================================


def _lookup_enum(enum_cls, text: str, label: str):
    """Match an enum member by value or name, ignoring case and separators."""
    wanted = text.strip().lower().replace("_", " ").replace("-", " ")
    for member in enum_cls:
        if wanted in (member.value.lower(), member.name.lower().replace("_", " ")):
            return member
    choices = ", ".join(m.value for m in enum_cls)
    raise click.BadParameter(f"unknown {label} '{text}' (choose from: {choices})")


def parse_emotions(ctx, param, values: tuple[str, ...]) -> list[EmotionEntry]:
    """Parse ``kind[:intensity]`` values, e.g. ``happy:4``."""
    entries = []
    for value in values:
        kind, _, intensity = value.partition(":")
        emotion = _lookup_enum(EmotionType, kind, "emotion")
        if intensity and not intensity.strip().lstrip("-").isdigit():
            raise click.BadParameter(f"intensity must be a number in '{value}'")
        entries.append(EmotionEntry(emotion_type=emotion, intensity=int(intensity) if intensity else 3))
    return entries


def parse_gifts(ctx, param, values: tuple[str, ...]) -> list[Gift]:
    """Parse ``item[:me|them]`` values, e.g. ``flowers:them``."""
    gifts = []
    for value in values:
        item, sep, giver = value.rpartition(":")
        if not sep or giver.strip().lower() not in ("me", "them"):
            item, giver = value, "me"
        if not item.strip():
            raise click.BadParameter(f"gift item is empty in '{value}'")
        gifts.append(Gift(item=item.strip(), giver=GiftGiver(giver.strip().lower())))
    return gifts


def parse_touches(ctx, param, values: tuple[str, ...]) -> list[PhysicalTouchMoment]:
    """Parse ``kind[:duration]`` values, e.g. ``hug:long``."""
    moments = []
    for value in values:
        kind, _, duration = value.partition(":")
        moments.append(
            PhysicalTouchMoment(
                touch_type=_lookup_enum(PhysicalTouchType, kind, "touch"),
                duration=_lookup_enum(TouchDuration, duration, "duration")
                if duration
                else TouchDuration.BRIEF,
            )
        )
    return moments


def resolve_person(people: list[Person], ref: str) -> Person:
    """Find a person by full id or unique id prefix."""
    for person in people:
        if person.id == ref:
            return person
    matches = [p for p in people if p.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        fail(f"Person id '{ref}' is ambiguous ({len(matches)} matches)")
    fail(f"Person not found: {ref}")


def resolve_date(person: Person, ref: str) -> DateLog:
    """Find one of a person's dates by full id or unique id prefix."""
    found = person.get_date(ref)
    if found is not None:
        return found
    matches = [d for d in person.dates if d.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    fail(f"Date not found for {person.name}: {ref}")


# =============================================================================
# MAIN CLI GROUP
# =============================================================================


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.option("--config", "config_path", type=click.Path(path_type=Path), help="Custom config file")
@click.option("--data-file", type=click.Path(path_type=Path), help="Roster JSON file to use")
@click.version_option(__version__, prog_name="heartbeat")
@click.pass_context
def cli(ctx, verbose, debug, config_path, data_file):
    """
    Heartbeat - a relationship journal with heuristic insights.

    Log the people you date and every date with them, then read what the
    patterns say.
    """
    try:
        config: AppConfig = load_config(config_path) if config_path else get_config()
    except ConfigError as e:
        fail(str(e))

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    else:
        level = None
    setup_logging(config, level=level)

    exporter = WidgetDataExporter.from_config(config)
    store = PersonStore(data_file or config.paths.data_file, listener=exporter)

    # Store context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["store"] = store
    ctx.obj["exporter"] = exporter
    ctx.obj["debug"] = debug


def _load_people(store: PersonStore) -> list[Person]:
    try:
        return store.list_people()
    except StorageError as e:
        fail(str(e))


# =============================================================================
# PERSON COMMANDS
# =============================================================================


@cli.group()
def person():
    """Manage the people you date."""


@person.command("add")
@click.argument("name")
@click.option("--met", type=click.DateTime(formats=["%Y-%m-%d"]), required=True, help="Meeting date")
@click.option("--phone", help="Phone number")
@click.option(
    "--photo",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Photo file to attach",
)
@click.pass_context
def person_add(ctx, name, met, phone, photo):
    """Add a person you are dating."""
    store: PersonStore = ctx.obj["store"]
    try:
        new_person = Person(
            name=name,
            meeting_date=met.date(),
            phone_number=phone,
            photo_data=photo.read_bytes() if photo else None,
        )
        store.add_person(new_person)
    except ValidationError as e:
        fail(f"Invalid person: {e.errors()[0]['msg']}")
    except StorageError as e:
        fail(str(e))

    print_success(f"Added {new_person.name} ({short_id(new_person.id)})")


@person.command("list")
@click.pass_context
def person_list(ctx):
    """List everyone, marking who is current."""
    people = _load_people(ctx.obj["store"])
    if not people:
        print_warning("No people yet. Add one with: heartbeat person add NAME --met YYYY-MM-DD")
        return

    current = current_person(people)
    ordered = [current] + sorted(
        (p for p in people if p.id != current.id),
        key=lambda p: p.last_activity_date(),
        reverse=True,
    )

    table = Table(title="People")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Met")
    table.add_column("Dates", justify="right")
    table.add_column("Last activity")
    table.add_column("Status")

    for p in ordered:
        status = "[green]current[/green]" if p.id == current.id else "[dim]archived[/dim]"
        table.add_row(
            short_id(p.id),
            p.name,
            p.meeting_date.isoformat(),
            str(len(p.dates)),
            p.last_activity_date().isoformat(),
            status,
        )
    console.print(table)


@person.command("remove")
@click.argument("person_id")
@click.pass_context
def person_remove(ctx, person_id):
    """Remove a person and all of their dates."""
    store: PersonStore = ctx.obj["store"]
    target = resolve_person(_load_people(store), person_id)
    try:
        store.delete_person(target.id)
    except StorageError as e:
        fail(str(e))
    print_success(f"Removed {target.name} and {len(target.dates)} dates")


# =============================================================================
# DATE COMMANDS
# =============================================================================


@cli.group("date")
def date_group():
    """Log and review dates."""


@date_group.command("add")
@click.argument("person_id")
@click.option("--location", required=True, help="Where the date is")
@click.option("--on", "on_day", type=click.DateTime(formats=["%Y-%m-%d"]), required=True, help="Day")
@click.option("--at", "at_time", type=click.DateTime(formats=["%H:%M"]), default="19:00", help="Start time")
@click.option(
    "--type",
    "date_type",
    type=click.Choice([t.value for t in DateType], case_sensitive=False),
    default=DateType.DINNER.value,
    help="Kind of date",
)
@click.option("--notes", default="", help="Short notes")
@click.option("--lat", type=float, help="Latitude")
@click.option("--lon", type=float, help="Longitude")
@click.option("--discuss", multiple=True, help="Discussion point (repeatable)")
@click.option("--emotion", "emotions", multiple=True, callback=parse_emotions, help="kind:intensity")
@click.option("--gift", "gifts", multiple=True, callback=parse_gifts, help="item:me|them")
@click.option("--touch", "touches", multiple=True, callback=parse_touches, help="kind:duration")
@click.option("--journal", default="", help="Journal entry")
@click.pass_context
def date_add(
    ctx,
    person_id,
    location,
    on_day,
    at_time,
    date_type,
    notes,
    lat,
    lon,
    discuss,
    emotions,
    gifts,
    touches,
    journal,
):
    """Log a past or upcoming date with someone."""
    store: PersonStore = ctx.obj["store"]
    target = resolve_person(_load_people(store), person_id)

    try:
        date_log = DateLog(
            location=location,
            latitude=lat,
            longitude=lon,
            date=on_day.date(),
            time=time(at_time.hour, at_time.minute),
            notes=notes,
            date_type=DateType(date_type.lower()),
            discussion_points=list(discuss),
            emotions=emotions,
            journal_entry=journal,
            gifts=gifts,
            physical_touch_moments=touches,
        )
        store.add_date(target.id, date_log)
    except ValidationError as e:
        fail(f"Invalid date: {e.errors()[0]['msg']}")
    except StorageError as e:
        fail(str(e))

    kind = "upcoming" if date_log.is_upcoming() else "past"
    print_success(
        f"Logged {kind} date with {target.name} at {location} ({short_id(date_log.id)})"
    )


def _dates_table(title: str, dates: list[DateLog]) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("When")
    table.add_column("Location", style="bold")
    table.add_column("Type")
    table.add_column("Details")
    for d in dates:
        details = []
        if d.emotions:
            details.append(f"{len(d.emotions)} emotions")
        if d.gifts:
            details.append(f"{len(d.gifts)} gifts")
        if d.physical_touch_moments:
            details.append(f"{len(d.physical_touch_moments)} touches")
        if d.notes:
            details.append("notes")
        table.add_row(
            short_id(d.id),
            format_when(d.full_datetime),
            d.location,
            d.date_type.display_name,
            ", ".join(details),
        )
    return table


@date_group.command("list")
@click.argument("person_id")
@click.pass_context
def date_list(ctx, person_id):
    """List a person's upcoming and past dates."""
    target = resolve_person(_load_people(ctx.obj["store"]), person_id)
    if not target.dates:
        print_warning(f"No dates logged with {target.name} yet")
        return

    now = datetime.now()
    upcoming = target.upcoming_dates(now)
    past = target.past_dates(now)
    if upcoming:
        console.print(_dates_table(f"Upcoming with {target.name}", upcoming))
    if past:
        console.print(_dates_table(f"Past dates with {target.name}", past))


@date_group.command("remove")
@click.argument("person_id")
@click.argument("date_id")
@click.pass_context
def date_remove(ctx, person_id, date_id):
    """Remove one date."""
    store: PersonStore = ctx.obj["store"]
    target = resolve_person(_load_people(store), person_id)
    date_log = resolve_date(target, date_id)
    try:
        store.delete_date(target.id, date_log.id)
    except StorageError as e:
        fail(str(e))
    print_success(f"Removed date at {date_log.location} on {date_log.date.isoformat()}")


# =============================================================================
# INSIGHTS COMMAND
# =============================================================================


@cli.command()
@click.argument("person_id")
@click.option("--date", "date_id", help="Analyze a single date instead of the relationship")
@click.option("--no-delay", is_flag=True, help="Skip the analysis pause")
@click.pass_context
def insights(ctx, person_id, date_id, no_delay):
    """Show heuristic insights for a relationship or a single date."""
    config: AppConfig = ctx.obj["config"]
    target = resolve_person(_load_people(ctx.obj["store"]), person_id)
    delay = 0.0 if no_delay else None

    if date_id:
        date_log = resolve_date(target, date_id)
        print_header(f"💗 {date_log.location} with {target.name}")
        analyzer = DateAnalyzer(config.analysis)
        work = analyzer.analyze_async(date_log, delay=delay)
        description = "Analyzing date..."
    else:
        print_header(f"💗 You & {target.name}")
        analyzer = RelationshipAnalyzer(config.analysis)
        work = analyzer.analyze_async(target, delay=delay)
        description = "Analyzing relationship..."

    with log_duration(logger, description.rstrip(".")):
        with create_progress() as progress:
            progress.add_task(description, total=None)
            results = asyncio.run(work)

    print_insights(results)


# =============================================================================
# WIDGET COMMANDS
# =============================================================================


@cli.group()
def widget():
    """Manage the countdown widget's data file."""


@widget.command("refresh")
@click.pass_context
def widget_refresh(ctx):
    """Rewrite the widget data from the current roster."""
    exporter: WidgetDataExporter = ctx.obj["exporter"]
    people = _load_people(ctx.obj["store"])
    try:
        data = exporter.update(people)
    except WidgetExportError as e:
        fail(str(e))

    if data is None:
        print_warning("No upcoming dates; widget data cleared")
    else:
        print_success(f"Widget shows: {data.display_text}")


@widget.command("show")
@click.option("--timeline", "show_timeline", is_flag=True, help="Also list timeline entries")
@click.pass_context
def widget_show(ctx, show_timeline):
    """Show what the widget would display right now."""
    config: AppConfig = ctx.obj["config"]
    exporter: WidgetDataExporter = ctx.obj["exporter"]
    now = datetime.now()
    data = load_widget_data(exporter.data_file, now)

    if not data.has_data:
        print_warning(f"{data.person_name}: {data.display_text} ({data.location})")
    else:
        content = (
            f"[bold]{data.person_name.upper()}[/bold]\n"
            f"[bold magenta]{countdown_text(data, now)}[/bold magenta]\n"
            f"{data.location.upper()}\n"
            f"[dim]{data.display_text}[/dim]"
        )
        if data.person_photo_data:
            content += f"\n[dim]photo: {len(data.person_photo_data)} bytes[/dim]"
        print_info_panel("Next Date", content, border_style="magenta")

    if show_timeline:
        timeline = build_timeline(
            data,
            now,
            interval_minutes=config.widget.entry_interval_minutes,
            span_minutes=config.widget.entry_span_minutes,
            refresh_minutes=config.widget.refresh_minutes,
        )
        table = Table(title="Timeline")
        table.add_column("At")
        table.add_column("Countdown", justify="right")
        for entry in timeline.entries:
            table.add_row(f"{entry.date:%H:%M}", countdown_text(entry.data, entry.date))
        console.print(table)
        console.print(f"Next refresh at {timeline.refresh_at:%H:%M}")


@widget.command("clear")
@click.pass_context
def widget_clear(ctx):
    """Remove the widget data file."""
    exporter: WidgetDataExporter = ctx.obj["exporter"]
    try:
        exporter.clear()
    except WidgetExportError as e:
        fail(str(e))
    print_success("Widget data cleared")


def main():
    """Entry point for the console script."""
    cli()


if __name__ == "__main__":
    main()
