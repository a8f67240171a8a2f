"""
ForexFactory calendar paste parser.

Turns text copied from the ForexFactory calendar page into
CalendarEvents. The page copies as a loose sequence of lines:

    9:30am
    USD
    Core CPI m/m
    0.3%	0.2%	0.4%

A time line opens a block, a currency line follows, then pairs of
title line + "actual forecast previous" line. Parsing is a single
forward scan and never raises on odd input; the worst case is an
empty list.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional

from ictjournal.core.records import CalendarEvent
from ictjournal.core.timeutils import iso_from_ist_day

logger = logging.getLogger(__name__)

_TIME_TOKEN_RE = re.compile(r"^(\d{1,2})(?::\d{2})?(am|pm)$")
_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_TABS_RE = re.compile(r"\t+")
_WIDE_SPACE_RE = re.compile(r"\s{2,}")

NOISE_LINES = {"actual", "forecast", "previous"}
EM_DASH = "—"


def _clean_lines(raw: str) -> List[str]:
    lines = (line.replace("\u00a0", " ").strip() for line in _LINE_SPLIT_RE.split(raw))
    return [line for line in lines if line]


def _is_noise(line: str) -> bool:
    return line == EM_DASH or line.lower() in NOISE_LINES


def split_columns(line: str) -> List[str]:
    """
    Split a values line into exactly [actual, forecast, previous].

    Tabs are tried first (what a browser copy usually produces), then
    runs of two or more spaces. Returns [] when neither gives 3 values.
    """
    tabbed = [part.strip() for part in _TABS_RE.split(line) if part.strip()]
    if len(tabbed) >= 3:
        return tabbed[:3]

    spaced = [part.strip() for part in _WIDE_SPACE_RE.split(line) if part.strip()]
    if len(spaced) >= 3:
        return spaced[:3]

    return []


def parse_forexfactory_text(
    raw: str,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> List[CalendarEvent]:
    """
    Parse pasted ForexFactory calendar text.

    Args:
        raw: Pasted text
        today: IST date the times belong to (resolved from the clock if None)
        now: Timestamp used when a time label can't be converted

    Returns:
        Events in order of appearance, ids 1..n

    Notes:
        While a title waits for its values line, any other line that
        does not split into 3 columns is ignored, including what looks
        like a second title. A waiting title is dropped when a new time
        or currency line arrives; only one still waiting at the end of
        the input is emitted without values.
    """
    current_time: Optional[str] = None
    current_currency: Optional[str] = None
    pending_title: Optional[str] = None

    events: List[CalendarEvent] = []

    def emit(title: str, values: Optional[List[str]] = None) -> None:
        actual, forecast, previous = values if values else (None, None, None)
        events.append(CalendarEvent(
            id=len(events) + 1,
            date=iso_from_ist_day(current_time, today=today, now=now),
            time_label=current_time,
            currency=current_currency,
            event=title,
            actual=actual,
            forecast=forecast,
            previous=previous,
        ))

    for line in _clean_lines(raw or ""):
        compact = re.sub(r"\s+", "", line).lower()
        if _TIME_TOKEN_RE.match(compact):
            current_time = compact
            current_currency = None
            pending_title = None
            continue

        upper = line.upper()
        if _CURRENCY_RE.match(upper):
            current_currency = upper
            pending_title = None
            continue

        if _is_noise(line):
            continue

        if pending_title and current_time:
            columns = split_columns(line)
            if len(columns) == 3:
                emit(pending_title, columns)
                pending_title = None
            else:
                logger.debug(f"Ignoring continuation line under {pending_title!r}: {line!r}")
            continue

        if current_time:
            pending_title = line

    if pending_title and current_time:
        emit(pending_title)

    logger.debug(f"Parsed {len(events)} calendar events")
    return events


@dataclass
class TimeGroup:
    """Consecutive events sharing one time label."""
    time_label: str
    items: List[CalendarEvent]


def group_by_time(events: List[CalendarEvent]) -> List[TimeGroup]:
    """
    Group consecutive events by time label, preserving order.

    A label that reappears later starts a new group.
    """
    groups: List[TimeGroup] = []
    last: Optional[str] = None
    for event in events:
        key = event.time_label or EM_DASH
        if key != last:
            groups.append(TimeGroup(time_label=key, items=[event]))
            last = key
        else:
            groups[-1].items.append(event)
    return groups


def normalize_pair(raw: str) -> str:
    """
    Normalize a pair like "eur/usd" to "EURUSD".

    Returns "" unless exactly six letters remain.
    """
    letters = re.sub(r"[^A-Z]", "", (raw or "").replace("/", "", 1).upper())
    return letters if len(letters) == 6 else ""
