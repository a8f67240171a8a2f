#!/usr/bin/env python3
"""
ForexFactory calendar paste.

Parses calendar text copied from forexfactory.com/calendar (times in
IST) and shows the events grouped by time. Reads a file or stdin.
"""

import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import json
import logging
from typing import List, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from ictjournal.api.client import ApiError, JournalApiClient
from ictjournal.core.config import Config
from ictjournal.core.records import CalendarEvent
from ictjournal.core.timeutils import DISPLAY_TIMEZONE, today_in_zone
from ictjournal.ingest.forexfactory import group_by_time, parse_forexfactory_text
from ictjournal.ingest.importer import load_calendar_events, save_calendar_events

app = typer.Typer(help="ForexFactory calendar paste")
console = Console()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


def print_events(events: List[CalendarEvent], title: str) -> None:
    """Print events as a table, one section per time label."""
    if not events:
        console.print("[dim]No events.[/dim]")
        return

    table = Table(title=title)
    table.add_column("Time")
    table.add_column("Cur")
    table.add_column("Event")
    table.add_column("Actual", justify="right")
    table.add_column("Forecast", justify="right")
    table.add_column("Previous", justify="right")

    for group in group_by_time(events):
        for position, event in enumerate(group.items):
            table.add_row(
                group.time_label if position == 0 else "",
                event.currency or "—",
                event.event or "Event",
                event.actual or "—",
                event.forecast or "—",
                event.previous or "—",
            )
        table.add_section()

    console.print(table)


@app.command()
def parse(
    path: Optional[Path] = typer.Argument(None, help="Text file (stdin if omitted)"),
    save: bool = typer.Option(False, "--save", "-s", help="Store events in the local DB"),
    as_json: bool = typer.Option(False, "--json", help="Print events as JSON"),
):
    """
    Parse pasted calendar text.
    """
    load_dotenv()
    config = Config.from_env()

    raw = path.read_text(encoding="utf-8") if path else sys.stdin.read()
    today = today_in_zone(DISPLAY_TIMEZONE)
    events = parse_forexfactory_text(raw, today=today)

    if as_json:
        print(json.dumps([event.to_dict() for event in events], indent=2, ensure_ascii=False))
    else:
        print_events(events, f"ForexFactory {today.isoformat()} (IST)")
        console.print(f"Parsed events: {len(events)}")

    if save and events:
        count = save_calendar_events(config, events)
        console.print(f"[green]Saved {count} events[/green]")


@app.command()
def today(
    currency: Optional[str] = typer.Option(None, "--currency", "-c", help="Filter by currency (e.g. USD)"),
    remote: bool = typer.Option(False, "--remote", "-r", help="Fetch from the journal API"),
):
    """
    Show today's calendar from the local DB or the journal API.
    """
    load_dotenv()
    config = Config.from_env()

    if remote:
        try:
            events = JournalApiClient(config).calendar_today(currency=currency)
        except ApiError as e:
            console.print(f"[red]Calendar fetch failed: {e}[/red]")
            raise typer.Exit(1)
    else:
        events = load_calendar_events(config, today_in_zone(config.display_timezone))
        if currency:
            events = [event for event in events if event.currency == currency.strip().upper()]

    print_events(events, "Today's calendar")


if __name__ == "__main__":
    app()
