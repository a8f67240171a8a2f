"""
Broker statement rows.

Maps the generic broker export layout
(instrument, side, open_time, open_price, close_time, close_price,
stop_loss, take_profit, lot_size, pnl, fees, notes)
onto TradeRecord. The mapping is one-way: fees are folded into notes.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, List, Optional
from zoneinfo import ZoneInfo

from ictjournal.core.records import TradeRecord
from ictjournal.core.timeutils import format_iso_utc, parse_iso_datetime
from ictjournal.ingest.coerce import normalize_direction, to_number, to_text

logger = logging.getLogger(__name__)

BROKER_REQUIRED_COLUMNS = ("open_time", "open_price", "side")

BROKER_COLUMNS = (
    "instrument",
    "side",
    "open_time",
    "open_price",
    "close_time",
    "close_price",
    "stop_loss",
    "take_profit",
    "lot_size",
    "pnl",
    "fees",
    "notes",
)

# e.g. "12/19/2025, 12:25"
_BROKER_DATETIME_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4}),\s*(\d{1,2}):(\d{2})$")


def parse_broker_datetime(value: str, tz: Optional[str] = None) -> Optional[str]:
    """
    Parse a broker timestamp to an ISO UTC string.

    Accepts "MM/DD/YYYY, HH:mm" or anything ISO-8601. Wall-clock values
    without an offset are read in tz (UTC when not given).

    Returns:
        ISO string, or None if the value is empty or unparseable
    """
    s = (value or "").strip()
    if not s:
        return None

    match = _BROKER_DATETIME_RE.match(s)
    if match:
        month, day, year, hour, minute = (int(part) for part in match.groups())
        try:
            parsed = datetime(
                year, month, day, hour, minute,
                tzinfo=ZoneInfo(tz) if tz else timezone.utc,
            )
        except ValueError:
            logger.debug(f"Out-of-range broker timestamp: {s!r}")
            return None
        return format_iso_utc(parsed)

    parsed = parse_iso_datetime(s, default_tz=tz)
    if parsed is None:
        logger.debug(f"Unparseable broker timestamp: {s!r}")
        return None
    return format_iso_utc(parsed)


def merge_fees_into_notes(notes: Optional[str], fees: Optional[str]) -> Optional[str]:
    """
    Append a fees suffix to notes.

    "entered early" + "2.50" -> "entered early | Fees: 2.50"
    None + "2.50" -> "Fees: 2.50"
    """
    if fees is None:
        return notes
    if notes:
        return f"{notes} | Fees: {fees}"
    return f"Fees: {fees}"


def map_broker_row(
    row: List[str],
    get: Callable[[List[str], str], str],
    tz: Optional[str] = None,
) -> TradeRecord:
    """
    Convert one broker statement row.

    Args:
        row: Raw cells
        get: Column accessor bound to the header
        tz: Zone for naive timestamps
    """
    open_time = parse_broker_datetime(get(row, "open_time"), tz=tz)
    close_time = parse_broker_datetime(get(row, "close_time"), tz=tz)

    # Keep the fee text as written ("2.50" stays "2.50") once it parses as a number
    raw_fees = to_text(get(row, "fees"))
    fees = raw_fees if to_number(raw_fees) is not None else None

    return TradeRecord(
        date=open_time,
        instrument=to_text(get(row, "instrument")),
        direction=normalize_direction(get(row, "side")),
        entry_time=open_time,
        entry_price=to_number(get(row, "open_price")),
        exit_time=close_time,
        exit_price=to_number(get(row, "close_price")),
        stop_loss=to_number(get(row, "stop_loss")),
        take_profit=to_number(get(row, "take_profit")),
        lot_size=to_number(get(row, "lot_size")),
        pnl=to_number(get(row, "pnl")),
        notes=merge_fees_into_notes(to_text(get(row, "notes")), fees),
    )
