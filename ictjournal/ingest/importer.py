"""
Local trade store import/export.

Accepts decoded TradeRecords the same way POST /trades/import does:
each record is validated and saved independently, and failures come
back as (index, reason) pairs instead of aborting the batch.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from ictjournal.core.config import Config
from ictjournal.core.db import init_db, session_scope
from ictjournal.core.models import CalendarEntry, Trade
from ictjournal.core.records import CalendarEvent, ImportResult, RowFailure, TradeRecord
from ictjournal.core.timeutils import format_iso_utc, parse_iso_datetime
from ictjournal.ingest.coerce import split_list
from ictjournal.review.metrics import calculate_trade_metrics

logger = logging.getLogger(__name__)

ALLOWED_VALUES = {
    "session": {"Asia", "London", "New York"},
    "killzone": {"London Open", "NY AM", "NY PM"},
    "weekly_bias": {"Bullish", "Bearish", "Range"},
    "daily_bias": {"Bullish", "Bearish", "Range"},
    "draw_on_liquidity": {"Buy-side", "Sell-side"},
    "setup_type": {
        "FVG",
        "Order Block",
        "Liquidity Sweep + MSS",
        "Judas Swing",
        "Power of 3 (AMD)",
        "Breaker Block",
    },
    "entry_confirmation": {"MSS", "Displacement", "FVG Tap"},
    "emotional_state": {"Calm", "FOMO", "Revenge", "Hesitant"},
    "outcome": {"win", "loss", "breakeven"},
    "ltf_confirmation_quality": {"Strong", "Weak"},
}

POSITIVE_FIELDS = ("stop_loss", "take_profit", "exit_price", "lot_size", "risk_per_trade")


class TradeValidationError(ValueError):
    """A record can't be stored as a trade."""


def _to_db_datetime(value: Optional[str], field_name: str) -> Optional[datetime]:
    if value is None:
        return None
    parsed = parse_iso_datetime(value)
    if parsed is None:
        raise TradeValidationError(f"{field_name}: invalid date {value!r}")
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)


def _from_db_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return format_iso_utc(value.replace(tzinfo=timezone.utc))


def validate_trade(record: TradeRecord) -> None:
    """
    Check a record against the trade rules.

    Raises:
        TradeValidationError: with the first problem found
    """
    if not record.date:
        raise TradeValidationError("date: required")
    if not record.instrument:
        raise TradeValidationError("instrument: required")
    if record.direction not in ("long", "short"):
        raise TradeValidationError("direction: must be 'long' or 'short'")
    if record.entry_price is None or record.entry_price <= 0:
        raise TradeValidationError("entryPrice: must be a positive number")

    for name in POSITIVE_FIELDS:
        value = getattr(record, name)
        if value is not None and value <= 0:
            raise TradeValidationError(f"{name}: must be positive")

    for name, allowed in ALLOWED_VALUES.items():
        value = getattr(record, name)
        if value is not None and value not in allowed:
            raise TradeValidationError(f"{name}: unexpected value {value!r}")


def record_to_model(record: TradeRecord) -> Trade:
    """Build an unsaved Trade row from a validated record."""
    trade_date = _to_db_datetime(record.date, "date")
    return Trade(
        date=trade_date,
        instrument=record.instrument,
        direction=record.direction,
        session=record.session,
        killzone=record.killzone,
        weekly_bias=record.weekly_bias,
        daily_bias=record.daily_bias,
        draw_on_liquidity=record.draw_on_liquidity,
        is_premium_discount=record.is_premium_discount,
        setup_type=record.setup_type,
        pd_arrays="; ".join(record.pd_arrays) or None,
        entry_time=_to_db_datetime(record.entry_time, "entryTime") or trade_date,
        entry_timeframe=record.entry_timeframe,
        entry_confirmation=record.entry_confirmation,
        entry_price=record.entry_price,
        stop_loss=record.stop_loss,
        take_profit=record.take_profit,
        exit_time=_to_db_datetime(record.exit_time, "exitTime"),
        exit_price=record.exit_price,
        lot_size=record.lot_size,
        risk_per_trade=record.risk_per_trade,
        pnl=record.pnl,
        rr=record.rr,
        r_multiple=record.r_multiple,
        outcome=record.outcome,
        emotional_state=record.emotional_state,
        partial_taken=record.partial_taken,
        sl_moved_to_be=record.sl_moved_to_be,
        followed_htf_bias=record.followed_htf_bias,
        correct_session=record.correct_session,
        valid_pd_array=record.valid_pd_array,
        risk_respected=record.risk_respected,
        no_early_exit=record.no_early_exit,
        mae=record.mae,
        mfe=record.mfe,
        htf_level_used=record.htf_level_used,
        ltf_confirmation_quality=record.ltf_confirmation_quality,
        rule_break_count=record.rule_break_count,
        trade_quality=record.trade_quality,
        tags="; ".join(record.tags) or None,
        notes=record.notes,
    )


def model_to_record(trade: Trade) -> TradeRecord:
    """Read a stored Trade back as a TradeRecord."""
    return TradeRecord(
        id=str(trade.id),
        date=_from_db_datetime(trade.date),
        instrument=trade.instrument,
        direction=trade.direction,
        session=trade.session,
        killzone=trade.killzone,
        weekly_bias=trade.weekly_bias,
        daily_bias=trade.daily_bias,
        draw_on_liquidity=trade.draw_on_liquidity,
        is_premium_discount=trade.is_premium_discount,
        setup_type=trade.setup_type,
        pd_arrays=split_list(trade.pd_arrays),
        entry_time=_from_db_datetime(trade.entry_time),
        entry_timeframe=trade.entry_timeframe,
        entry_confirmation=trade.entry_confirmation,
        entry_price=trade.entry_price,
        stop_loss=trade.stop_loss,
        take_profit=trade.take_profit,
        exit_time=_from_db_datetime(trade.exit_time),
        exit_price=trade.exit_price,
        lot_size=trade.lot_size,
        risk_per_trade=trade.risk_per_trade,
        pnl=trade.pnl,
        rr=trade.rr,
        r_multiple=trade.r_multiple,
        outcome=trade.outcome,
        emotional_state=trade.emotional_state,
        partial_taken=trade.partial_taken,
        sl_moved_to_be=trade.sl_moved_to_be,
        followed_htf_bias=trade.followed_htf_bias,
        correct_session=trade.correct_session,
        valid_pd_array=trade.valid_pd_array,
        risk_respected=trade.risk_respected,
        no_early_exit=trade.no_early_exit,
        mae=trade.mae,
        mfe=trade.mfe,
        htf_level_used=trade.htf_level_used,
        ltf_confirmation_quality=trade.ltf_confirmation_quality,
        rule_break_count=trade.rule_break_count,
        trade_quality=trade.trade_quality,
        tags=split_list(trade.tags),
        notes=trade.notes,
    )


def import_trades(config: Config, records: Sequence[TradeRecord]) -> ImportResult:
    """
    Validate and store a batch of trades.

    Each record is committed on its own, so one bad row never rolls
    back the others.

    Args:
        config: Application config
        records: Decoded trades

    Returns:
        ImportResult with the created count and 0-based failure indexes

    Raises:
        ValueError: if records is empty
    """
    if not records:
        raise ValueError("No trades provided")

    init_db(config)
    result = ImportResult()

    for index, record in enumerate(records):
        try:
            validate_trade(record)
            trade = record_to_model(calculate_trade_metrics(record))
            with session_scope(config) as session:
                session.add(trade)
            result.created += 1
        except TradeValidationError as e:
            result.failed.append(RowFailure(index=index, reason=str(e)))
        except Exception as e:
            logger.error(f"Failed to store trade #{index}: {e}")
            result.failed.append(RowFailure(index=index, reason=str(e) or "Failed to import trade"))

    logger.info(f"Imported trades: created={result.created} failed={len(result.failed)}")
    return result


def export_trades(config: Config) -> List[TradeRecord]:
    """All stored trades, oldest first."""
    init_db(config)
    with session_scope(config) as session:
        trades = session.query(Trade).order_by(Trade.date, Trade.id).all()
        return [model_to_record(trade) for trade in trades]


def save_calendar_events(config: Config, events: Iterable[CalendarEvent]) -> int:
    """
    Store parsed calendar events.

    Returns:
        Number of rows written
    """
    init_db(config)
    count = 0
    with session_scope(config) as session:
        for event in events:
            event_time = _to_db_datetime(event.date, "date")
            session.add(CalendarEntry(
                event_time=event_time,
                time_label=event.time_label,
                currency=event.currency,
                event=event.event,
                actual=event.actual,
                forecast=event.forecast,
                previous=event.previous,
            ))
            count += 1

    logger.info(f"Saved {count} calendar events")
    return count


def load_calendar_events(config: Config, day: date) -> List[CalendarEvent]:
    """
    Stored events falling on the given day in the display timezone.

    Ids are renumbered 1..n in time order, matching parser output.
    """
    init_db(config)
    local_midnight = datetime(day.year, day.month, day.day, tzinfo=ZoneInfo(config.display_timezone))
    start = local_midnight.astimezone(timezone.utc).replace(tzinfo=None)
    end = start + timedelta(days=1)

    with session_scope(config) as session:
        entries = (
            session.query(CalendarEntry)
            .filter(CalendarEntry.event_time >= start, CalendarEntry.event_time < end)
            .order_by(CalendarEntry.event_time, CalendarEntry.id)
            .all()
        )
        return [
            CalendarEvent(
                id=position,
                date=_from_db_datetime(entry.event_time),
                time_label=entry.time_label,
                currency=entry.currency,
                event=entry.event,
                actual=entry.actual,
                forecast=entry.forecast,
                previous=entry.previous,
            )
            for position, entry in enumerate(entries, start=1)
        ]
