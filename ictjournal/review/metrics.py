"""
Trade metrics.

Fills in P&L, outcome, risk:reward and R multiple for imported trades
and scores rule compliance. Pip math assumes a 4-decimal forex quote at
$10 per pip per standard lot.
"""

from dataclasses import replace
from typing import Optional

from ictjournal.core.records import TradeRecord

PIP_FACTOR = 10_000
PIP_VALUE_PER_LOT = 10

# |R| below this is a scratch trade
BREAKEVEN_R = 0.1

A_PLUS = "A+ Trade"
RULE_BREAK = "Rule Break Trade"
STANDARD = "Standard Trade"


def calculate_trade_metrics(record: TradeRecord) -> TradeRecord:
    """
    Derive pnl, outcome, rr and r_multiple for a record.

    pnl comes from pip math when the record has none. A closed trade
    with a stop gets a signed R multiple, and its outcome follows R
    (|R| < 0.1 is breakeven). Without a stop the outcome falls back to
    the sign of pnl when the record leaves it open.

    Returns:
        A new TradeRecord; the input is untouched
    """
    pnl = record.pnl
    outcome = record.outcome
    rr = record.rr
    r_multiple = record.r_multiple

    entry = record.entry_price
    exit_price = record.exit_price
    stop = record.stop_loss

    if pnl is None and exit_price and entry and record.lot_size:
        if record.direction == "long":
            pips = (exit_price - entry) * PIP_FACTOR
        else:
            pips = (entry - exit_price) * PIP_FACTOR
        pnl = pips * record.lot_size * PIP_VALUE_PER_LOT

        if outcome is None:
            outcome = _outcome_from_pnl(pnl)

    if exit_price and entry and stop:
        risk = abs(entry - stop)
        reward = abs(exit_price - entry)
        rr = reward / risk if risk > 0 else 0.0

        if risk > 0:
            r_multiple = _signed_r_multiple(record.direction, entry, exit_price, reward / risk)
            outcome = _outcome_from_r(r_multiple)

    rule_breaks = count_rule_breaks(record)

    return replace(
        record,
        pnl=pnl,
        outcome=outcome,
        rr=rr,
        r_multiple=r_multiple,
        rule_break_count=float(rule_breaks),
        trade_quality=classify_trade_quality(rule_breaks, outcome),
    )


def _outcome_from_pnl(pnl: float) -> str:
    if pnl > 0:
        return "win"
    if pnl < 0:
        return "loss"
    return "breakeven"


def _signed_r_multiple(direction: Optional[str], entry: float, exit_price: float, r: float) -> float:
    """Positive when the exit is on the profitable side of entry."""
    if direction == "long":
        return r if exit_price > entry else -r
    return r if exit_price < entry else -r


def _outcome_from_r(r_multiple: float) -> str:
    if abs(r_multiple) < BREAKEVEN_R:
        return "breakeven"
    if r_multiple > 0:
        return "win"
    return "loss"


def count_rule_breaks(record: TradeRecord) -> int:
    """
    Count failed rule checks.

    An unanswered check counts as followed.
    """
    checks = (
        record.followed_htf_bias,
        record.correct_session,
        record.valid_pd_array,
        record.risk_respected,
        record.no_early_exit,
    )
    return sum(1 for check in checks if check is False)


def classify_trade_quality(rule_breaks: int, outcome: Optional[str]) -> str:
    if rule_breaks == 0 and outcome == "win":
        return A_PLUS
    if rule_breaks >= 2:
        return RULE_BREAK
    return STANDARD
