"""
Calendar label normalization.

Renames a handful of high-impact TradingEconomics labels to the names
ForexFactory uses, so events from either feed read the same.
Unknown labels pass through unchanged.
"""

from typing import Optional, Tuple

EXACT_EVENT_MAP = {
    "NON FARM PAYROLLS": "Non-Farm Employment Change",
    "INFLATION RATE MOM": "CPI m/m",
    "INFLATION RATE YOY": "CPI y/y",
    "CORE INFLATION RATE MOM": "Core CPI m/m",
    "CORE INFLATION RATE YOY": "Core CPI y/y",
    "RETAIL SALES EX FOOD": "Core Retail Sales m/m",
    "RETAIL SALES MOM": "Retail Sales m/m",
    "FED INTEREST RATE DECISION": "FOMC Statement",
    "FOMC STATEMENT": "FOMC Statement",
    "MANUFACTURING PMI": "Flash Manufacturing PMI",
    "SERVICES PMI": "Flash Services PMI",
    "S&P GLOBAL MANUFACTURING PMI": "Flash Manufacturing PMI",
    "S&P GLOBAL SERVICES PMI": "Flash Services PMI",
}


def _upper(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def normalize_calendar_labels(
    category: Optional[str], event: Optional[str]
) -> Tuple[Optional[str], Optional[str]]:
    """
    Map an event label to its ForexFactory name.

    The event name is looked up first. Some feeds put the headline in
    the category instead, so when the event is missing the category is
    looked up too.

    Returns:
        Tuple of (category, event)
    """
    mapped = EXACT_EVENT_MAP.get(_upper(event))
    if mapped:
        return category, mapped

    mapped_from_category = EXACT_EVENT_MAP.get(_upper(category))
    if mapped_from_category and not event:
        return category, mapped_from_category

    return category, event
