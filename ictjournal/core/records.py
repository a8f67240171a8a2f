"""
Plain records passed between the parsers, the store and the API.

These are transient values, not database rows (see core/models.py).
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class CalendarEvent:
    """
    One economic calendar event.

    Produced by the ForexFactory paste parser and returned by
    GET /calendar/today in the same shape.
    """
    id: int
    date: str  # ISO-8601 UTC
    time_label: str
    currency: Optional[str] = None
    event: Optional[str] = None
    actual: Optional[str] = None
    forecast: Optional[str] = None
    previous: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape, absent optionals omitted."""
        data: Dict[str, Any] = {"id": self.id, "date": self.date, "timeLabel": self.time_label}
        for key in ("currency", "event", "actual", "forecast", "previous"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalendarEvent":
        return cls(
            id=int(data["id"]),
            date=str(data["date"]),
            time_label=str(data.get("timeLabel") or ""),
            currency=data.get("currency"),
            event=data.get("event"),
            actual=data.get("actual"),
            forecast=data.get("forecast"),
            previous=data.get("previous"),
        )


@dataclass(frozen=True)
class TradeRecord:
    """
    A single journaled trade.

    Every field is optional so that "absent" stays distinct from
    empty strings, zero and False. Records are never changed in place;
    use dataclasses.replace() to derive a new one.
    """

    # Identity and timing
    id: Optional[str] = None
    date: Optional[str] = None
    entry_time: Optional[str] = None
    exit_time: Optional[str] = None

    # Instrument
    instrument: Optional[str] = None
    direction: Optional[str] = None  # "long" | "short"

    # ICT pre-trade context
    session: Optional[str] = None
    killzone: Optional[str] = None
    weekly_bias: Optional[str] = None
    daily_bias: Optional[str] = None
    draw_on_liquidity: Optional[str] = None
    is_premium_discount: Optional[bool] = None

    # Setup
    setup_type: Optional[str] = None
    pd_arrays: Tuple[str, ...] = ()

    # Execution
    entry_timeframe: Optional[str] = None
    entry_confirmation: Optional[str] = None
    entry_price: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    exit_price: Optional[float] = None
    lot_size: Optional[float] = None
    risk_per_trade: Optional[float] = None

    # Outcome
    pnl: Optional[float] = None
    rr: Optional[float] = None
    r_multiple: Optional[float] = None
    outcome: Optional[str] = None

    # Management
    emotional_state: Optional[str] = None
    partial_taken: Optional[bool] = None
    sl_moved_to_be: Optional[bool] = None

    # Rule compliance
    followed_htf_bias: Optional[bool] = None
    correct_session: Optional[bool] = None
    valid_pd_array: Optional[bool] = None
    risk_respected: Optional[bool] = None
    no_early_exit: Optional[bool] = None

    # Post-trade analytics
    mae: Optional[float] = None
    mfe: Optional[float] = None
    htf_level_used: Optional[str] = None
    ltf_confirmation_quality: Optional[str] = None
    rule_break_count: Optional[float] = None
    trade_quality: Optional[str] = None

    # Free text
    tags: Tuple[str, ...] = ()
    notes: Optional[str] = None

    def populated_fields(self) -> Dict[str, Any]:
        """Fields that carry a value (non-None, non-empty list)."""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None or value == ():
                continue
            result[f.name] = value
        return result

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the trade API, camelCase keys, absent fields omitted."""
        payload = {}
        for name, value in self.populated_fields().items():
            payload[FIELD_TO_COLUMN[name]] = list(value) if isinstance(value, tuple) else value
        return payload


# Native export column name for every TradeRecord field
FIELD_TO_COLUMN: Dict[str, str] = {
    "id": "id",
    "date": "date",
    "entry_time": "entryTime",
    "exit_time": "exitTime",
    "instrument": "instrument",
    "direction": "direction",
    "session": "session",
    "killzone": "killzone",
    "weekly_bias": "weeklyBias",
    "daily_bias": "dailyBias",
    "draw_on_liquidity": "drawOnLiquidity",
    "is_premium_discount": "isPremiumDiscount",
    "setup_type": "setupType",
    "pd_arrays": "pdArrays",
    "entry_timeframe": "entryTimeframe",
    "entry_confirmation": "entryConfirmation",
    "entry_price": "entryPrice",
    "stop_loss": "stopLoss",
    "take_profit": "takeProfit",
    "exit_price": "exitPrice",
    "lot_size": "lotSize",
    "risk_per_trade": "riskPerTrade",
    "pnl": "pnl",
    "rr": "rr",
    "r_multiple": "rMultiple",
    "outcome": "outcome",
    "emotional_state": "emotionalState",
    "partial_taken": "partialTaken",
    "sl_moved_to_be": "slMovedToBE",
    "followed_htf_bias": "followedHTFBias",
    "correct_session": "correctSession",
    "valid_pd_array": "validPDArray",
    "risk_respected": "riskRespected",
    "no_early_exit": "noEarlyExit",
    "mae": "mae",
    "mfe": "mfe",
    "htf_level_used": "htfLevelUsed",
    "ltf_confirmation_quality": "ltfConfirmationQuality",
    "rule_break_count": "ruleBreakCount",
    "trade_quality": "tradeQuality",
    "tags": "tags",
    "notes": "notes",
}


@dataclass(frozen=True)
class RowFailure:
    """A row that could not be turned into a trade."""
    index: int
    reason: str

    def __str__(self) -> str:
        return f"Row {self.index}: {self.reason}"


@dataclass
class DecodeResult:
    """Outcome of decoding one CSV document."""
    records: List[TradeRecord] = field(default_factory=list)
    failures: List[RowFailure] = field(default_factory=list)
    schema: Optional[str] = None  # "native" | "broker"
    # Spreadsheet row of each record, parallel to records
    row_numbers: List[int] = field(default_factory=list)


@dataclass
class ImportResult:
    """
    Outcome of a bulk import.

    Mirrors the {created, failed} body of POST /trades/import.
    Failure indexes are 0-based positions in the submitted list.
    """
    created: int = 0
    failed: List[RowFailure] = field(default_factory=list)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "ImportResult":
        failed = [
            RowFailure(index=int(item.get("index", 0)), reason=str(item.get("reason", "")))
            for item in data.get("failed") or []
        ]
        return cls(created=int(data.get("created") or 0), failed=failed)

    def summary(self, preview: int = 3, row_numbers: Optional[Sequence[int]] = None) -> str:
        """
        Human-readable summary.

        Args:
            preview: How many failures to list
            row_numbers: Source row of each submitted record, as in
                DecodeResult.row_numbers. Without it, the submitted list
                is assumed to be the file's rows in order (index + 2:
                1-based plus the header).
        """
        lines = [f"Import finished. Created: {self.created}. Failed: {len(self.failed)}."]
        if self.failed:
            lines.append("")
            lines.append("First errors:")
            for failure in self.failed[:preview]:
                if row_numbers is not None and 0 <= failure.index < len(row_numbers):
                    row = row_numbers[failure.index]
                else:
                    row = failure.index + 2
                lines.append(f"Row {row}: {failure.reason}")
        return "\n".join(lines)
