"""
Trade CSV import/export.

Encodes TradeRecords to the journal's own export format and decodes
either that format or a generic broker statement back into records.

Decoding is best-effort per row: only an unrecognized header is a
hard failure (CsvFormatError). Row problems come back as RowFailures.
"""

import csv
import io
import logging
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ictjournal.core.records import (
    FIELD_TO_COLUMN,
    DecodeResult,
    RowFailure,
    TradeRecord,
)
from ictjournal.core.timeutils import format_iso_utc
from ictjournal.ingest.broker import BROKER_REQUIRED_COLUMNS, map_broker_row
from ictjournal.ingest.coerce import (
    normalize_direction,
    split_list,
    to_bool,
    to_number,
    to_text,
)

logger = logging.getLogger(__name__)

CSV_MIME_TYPE = "text/csv;charset=utf-8"

# Column order of the export file
EXPORT_COLUMNS: List[str] = [
    "id",
    "date",
    "instrument",
    "direction",
    "session",
    "killzone",
    "weeklyBias",
    "dailyBias",
    "drawOnLiquidity",
    "isPremiumDiscount",
    "setupType",
    "pdArrays",
    "entryTime",
    "entryTimeframe",
    "entryConfirmation",
    "entryPrice",
    "stopLoss",
    "takeProfit",
    "exitTime",
    "exitPrice",
    "lotSize",
    "riskPerTrade",
    "pnl",
    "rr",
    "rMultiple",
    "outcome",
    "emotionalState",
    "partialTaken",
    "slMovedToBE",
    "followedHTFBias",
    "correctSession",
    "validPDArray",
    "riskRespected",
    "noEarlyExit",
    "mae",
    "mfe",
    "htfLevelUsed",
    "ltfConfirmationQuality",
    "ruleBreakCount",
    "tradeQuality",
    "tags",
    "notes",
]

COLUMN_TO_FIELD: Dict[str, str] = {column: name for name, column in FIELD_TO_COLUMN.items()}

NATIVE_REQUIRED_COLUMNS = ("date", "direction", "entryPrice")

BOOL_COLUMNS = {
    "isPremiumDiscount",
    "partialTaken",
    "slMovedToBE",
    "followedHTFBias",
    "correctSession",
    "validPDArray",
    "riskRespected",
    "noEarlyExit",
}

NUMBER_COLUMNS = {
    "entryPrice",
    "stopLoss",
    "takeProfit",
    "exitPrice",
    "lotSize",
    "riskPerTrade",
    "pnl",
    "rr",
    "rMultiple",
    "mae",
    "mfe",
    "ruleBreakCount",
}

LIST_COLUMNS = {"pdArrays", "tags"}

LIST_SEPARATOR = "; "


class CsvFormatError(ValueError):
    """The CSV header matches neither the export nor the broker layout."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            message
            or "Invalid CSV format. Use the exported CSV, or a broker CSV with "
            "columns: instrument, side, open_time, open_price"
        )


# ----------------------------- encoding -----------------------------

def _format_number(value: float) -> str:
    if isinstance(value, int):
        return str(value)
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def _to_cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return _format_number(value)
    if isinstance(value, datetime):
        return format_iso_utc(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return LIST_SEPARATOR.join(str(item) for item in value)
    return str(value)


def _csv_line(cells: List[str]) -> str:
    # "\r\n" as terminator so the writer quotes cells holding either break
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\r\n").writerow(cells)
    return buf.getvalue()[:-2]


def escape_cell(value: Any) -> str:
    """
    Render one CSV cell.

    Quotes the text (doubling inner quotes) only when it contains a
    comma, a double quote or a line break.
    """
    text = _to_cell_text(value)
    return _csv_line([text]) if text else ""


def encode_trades(records: Iterable[TradeRecord]) -> str:
    """
    Encode trades in the export format.

    Returns:
        CSV text: header line then one line per record, "\\n"-separated
    """
    lines = [_csv_line(list(EXPORT_COLUMNS))]
    for record in records:
        lines.append(_csv_line([
            _to_cell_text(getattr(record, COLUMN_TO_FIELD[column]))
            for column in EXPORT_COLUMNS
        ]))

    logger.debug(f"Encoded {len(lines) - 1} trades to CSV")
    return "\n".join(lines)


def export_filename(day: date) -> str:
    """Download name for an export made on the given day."""
    return f"trades_{day.isoformat()}.csv"


# ----------------------------- tokenizing -----------------------------

def tokenize_csv(text: str) -> List[List[str]]:
    """
    Split CSV text into rows of raw cell strings.

    Handles quoted cells, "" escapes, commas and newlines inside quotes,
    and CRLF/LF endings. An unterminated quote swallows the rest of the
    input into its cell rather than failing.
    """
    rows: List[List[str]] = []
    row: List[str] = []
    cell: List[str] = []
    in_quotes = False

    def push_cell() -> None:
        row.append("".join(cell))
        cell.clear()

    def push_row() -> None:
        nonlocal row
        # Skip rows that are a single empty cell (blank lines)
        if not (len(row) == 1 and row[0] == ""):
            rows.append(row)
        row = []

    i = 0
    length = len(text)
    while i < length:
        ch = text[i]

        if in_quotes:
            if ch == '"':
                if i + 1 < length and text[i + 1] == '"':
                    cell.append('"')
                    i += 1
                else:
                    in_quotes = False
            else:
                cell.append(ch)
        elif ch == '"':
            in_quotes = True
        elif ch == ",":
            push_cell()
        elif ch == "\n":
            push_cell()
            push_row()
        elif ch != "\r":
            cell.append(ch)

        i += 1

    push_cell()
    if row:
        push_row()

    if in_quotes:
        logger.debug("CSV ended inside a quoted cell; kept the remainder as one cell")

    return rows


# ----------------------------- decoding -----------------------------

def detect_schema(header: List[str]) -> Optional[str]:
    """Return "native", "broker" or None for a trimmed header row."""
    columns = set(header)
    if all(column in columns for column in NATIVE_REQUIRED_COLUMNS):
        return "native"
    if all(column in columns for column in BROKER_REQUIRED_COLUMNS):
        return "broker"
    return None


def _cell_getter(header: List[str]):
    index: Dict[str, int] = {}
    for position, name in enumerate(header):
        index[name] = position

    def get(row: List[str], column: str) -> str:
        position = index.get(column)
        if position is None or position >= len(row):
            return ""
        return row[position]

    return get


def map_native_row(row: List[str], get) -> TradeRecord:
    """Coerce one export-format row into a TradeRecord."""
    values: Dict[str, Any] = {}
    for column in EXPORT_COLUMNS:
        raw = get(row, column)
        if column in BOOL_COLUMNS:
            value = to_bool(raw)
        elif column in NUMBER_COLUMNS:
            value = to_number(raw)
        elif column in LIST_COLUMNS:
            value = split_list(raw)
        elif column == "direction":
            value = normalize_direction(raw)
        else:
            value = to_text(raw)
        values[COLUMN_TO_FIELD[column]] = value
    return TradeRecord(**values)


def _has_trade_data(record: TradeRecord) -> bool:
    return any(
        value is not None
        for value in (record.instrument, record.date, record.entry_price)
    )


def decode_trades(text: str, tz: Optional[str] = None) -> DecodeResult:
    """
    Decode CSV text in either supported layout.

    Args:
        text: Raw CSV content
        tz: Zone for naive broker timestamps (UTC when None)

    Returns:
        DecodeResult with the records, per-row failures and the schema used.
        Failure indexes and row_numbers are spreadsheet rows (first data
        row is row 2).

    Raises:
        CsvFormatError: header matches neither layout
    """
    rows = tokenize_csv(text)
    if not rows:
        raise CsvFormatError("CSV is empty")

    header = [name.strip() for name in rows[0]]
    schema = detect_schema(header)
    if schema is None:
        logger.warning(f"Unrecognized CSV header: {header[:8]}")
        raise CsvFormatError()

    get = _cell_getter(header)
    result = DecodeResult(schema=schema)

    for data_index, row in enumerate(rows[1:], start=1):
        if all(not cell.strip() for cell in row):
            continue

        if schema == "broker":
            record = map_broker_row(row, get, tz=tz)
        else:
            record = map_native_row(row, get)

        if not _has_trade_data(record):
            result.failures.append(
                RowFailure(index=data_index + 1, reason="Row has no usable trade data")
            )
            continue

        result.records.append(record)
        result.row_numbers.append(data_index + 1)

    logger.info(
        f"Decoded {len(result.records)} trades ({schema} format), "
        f"{len(result.failures)} rows skipped"
    )
    return result


def decode_trades_or_error(
    text: str, tz: Optional[str] = None
) -> Tuple[Optional[DecodeResult], Optional[str]]:
    """
    Like decode_trades(), but returns the format error as data.

    Returns:
        Tuple of (result, None) or (None, error message)
    """
    try:
        return decode_trades(text, tz=tz), None
    except CsvFormatError as e:
        return None, str(e)
