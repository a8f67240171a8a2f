"""
Database models for ICT Journal.

Models: Trade, CalendarEntry.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Trade(Base):
    """
    A single journaled trade.

    Timestamps are stored as UTC. List fields (pd arrays, tags) are
    stored "; "-joined, the same way the CSV export writes them.
    """

    __tablename__ = "trades"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    instrument: Mapped[str] = mapped_column(String(20), nullable=False)
    direction: Mapped[str] = mapped_column(String(5), nullable=False)

    # ICT pre-trade context
    session: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    killzone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    weekly_bias: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    daily_bias: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    draw_on_liquidity: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    is_premium_discount: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # Setup
    setup_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    pd_arrays: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Execution
    entry_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    entry_timeframe: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    entry_confirmation: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    entry_price: Mapped[float] = mapped_column(Float, nullable=False)
    stop_loss: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    take_profit: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    exit_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    exit_price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    lot_size: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    risk_per_trade: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Outcome
    pnl: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    rr: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    r_multiple: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    outcome: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)

    # Management
    emotional_state: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    partial_taken: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    sl_moved_to_be: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # Rule evaluation
    followed_htf_bias: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    correct_session: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    valid_pd_array: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    risk_respected: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    no_early_exit: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    # Post-trade review
    mae: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    mfe: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    htf_level_used: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    ltf_confirmation_quality: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    rule_break_count: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    trade_quality: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Notes
    tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<Trade {self.id}: {self.direction} {self.instrument} @ {self.entry_price}>"


class CalendarEntry(Base):
    """
    A saved economic calendar event.

    Stores parsed ForexFactory pastes so the day's calendar survives
    a restart.
    """

    __tablename__ = "calendar_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_time: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    time_label: Mapped[str] = mapped_column(String(10), nullable=False)
    currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    event: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    actual: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    forecast: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    previous: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    source: Mapped[str] = mapped_column(String(20), default="forexfactory")
    saved_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<CalendarEntry {self.id}: {self.time_label} {self.currency} {self.event}>"
