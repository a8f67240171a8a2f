"""
Unit tests for the ForexFactory calendar paste parser.

Tests the line scanner and time conversion:
- Time / currency / title / values line handling
- IST -> UTC conversion with day rollover
- Noise lines and dangling titles
"""

import pytest
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from unittest.mock import patch

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ictjournal.core.timeutils import (
    format_iso_utc,
    iso_from_ist_day,
    parse_time_label_to_minutes,
    today_in_zone,
)
from ictjournal.ingest.calendar_labels import normalize_calendar_labels
from ictjournal.ingest.forexfactory import (
    group_by_time,
    normalize_pair,
    parse_forexfactory_text,
    split_columns,
)

TODAY = date(2025, 6, 10)
NOW = datetime(2025, 6, 10, 7, 15, 0, tzinfo=timezone.utc)


def parse(text: str):
    return parse_forexfactory_text(text, today=TODAY, now=NOW)


SAMPLE_PASTE = (
    "9:30am\n"
    "USD\n"
    "Core CPI m/m\n"
    "0.3%\t0.2%\t0.4%\n"
    "CPI y/y\n"
    "2.9%  2.8%  2.7%\n"
    "11:00am\n"
    "EUR\n"
    "ECB President Lagarde Speaks\n"
)


class TestTimeConversion:
    """Test time label parsing and IST -> UTC conversion."""

    def test_morning_label(self):
        """9:30am IST on 2025-06-10 is 04:00 UTC the same day."""
        assert iso_from_ist_day("9:30am", today=TODAY) == "2025-06-10T04:00:00.000Z"

    def test_early_morning_rolls_back_a_day(self):
        """1:00am IST is 19:30 UTC on the previous day."""
        assert iso_from_ist_day("1:00am", today=TODAY) == "2025-06-09T19:30:00.000Z"

    def test_midnight_hour(self):
        """12:15am counts as 00:15."""
        assert parse_time_label_to_minutes("12:15am") == 15
        assert iso_from_ist_day("12:15am", today=TODAY) == "2025-06-09T18:45:00.000Z"

    def test_noon_hour(self):
        """12:00pm counts as 12:00."""
        assert parse_time_label_to_minutes("12:00pm") == 720
        assert iso_from_ist_day("12:00pm", today=TODAY) == "2025-06-10T06:30:00.000Z"

    def test_late_evening(self):
        """11:45pm IST stays on the same UTC day."""
        assert iso_from_ist_day("11:45pm", today=TODAY) == "2025-06-10T18:15:00.000Z"

    def test_hour_only_label(self):
        """Labels without minutes parse as whole hours."""
        assert parse_time_label_to_minutes("3pm") == 900
        assert parse_time_label_to_minutes(" 3 PM ") == 900

    def test_unparseable_label_uses_fallback(self):
        """Garbage labels fall back to the supplied instant."""
        assert parse_time_label_to_minutes("All Day") is None
        assert iso_from_ist_day("All Day", today=TODAY, now=NOW) == "2025-06-10T07:15:00.000Z"

    def test_today_in_zone_crosses_midnight(self):
        """20:00 UTC is already the next day in IST."""
        now = datetime(2025, 6, 10, 20, 0, tzinfo=timezone.utc)
        assert today_in_zone("Asia/Kolkata", now) == date(2025, 6, 11)

    def test_iso_format_has_milliseconds(self):
        """Timestamps carry milliseconds and a Z suffix."""
        value = datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        assert format_iso_utc(value) == "2025-01-02T03:04:05.678Z"

    def test_today_resolved_in_ist_regardless_of_display_setting(self):
        """Without an explicit day, the IST date is taken from the clock."""
        late_utc = datetime(2025, 6, 10, 20, 0, tzinfo=timezone.utc)
        with patch.dict("os.environ", {"DISPLAY_TIMEZONE": "America/New_York"}):
            events = parse_forexfactory_text("9:30am\nUSD\nCore CPI m/m\n1\t2\t3\n", now=late_utc)

        assert events[0].date == "2025-06-11T04:00:00.000Z"


class TestParser:
    """Test the line scanner."""

    def test_sample_paste(self):
        """Titles pair with the next values line, trailing title kept."""
        events = parse(SAMPLE_PASTE)

        assert len(events) == 3

        first = events[0]
        assert first.id == 1
        assert first.time_label == "9:30am"
        assert first.date == "2025-06-10T04:00:00.000Z"
        assert first.currency == "USD"
        assert first.event == "Core CPI m/m"
        assert (first.actual, first.forecast, first.previous) == ("0.3%", "0.2%", "0.4%")

        second = events[1]
        assert second.event == "CPI y/y"
        assert (second.actual, second.forecast, second.previous) == ("2.9%", "2.8%", "2.7%")

        last = events[2]
        assert last.time_label == "11:00am"
        assert last.currency == "EUR"
        assert last.event == "ECB President Lagarde Speaks"
        assert last.date == "2025-06-10T05:30:00.000Z"

    def test_ids_are_sequential(self):
        """Ids run 1..n in emission order."""
        text = SAMPLE_PASTE + "2:00pm\nGBP\nGDP m/m\n0.1%\t0.2%\t-0.3%\nCPI q/q\n1\t2\t3\n"
        events = parse(text)
        assert [e.id for e in events] == list(range(1, len(events) + 1))
        assert len(events) == 4

    def test_dangling_title(self):
        """A last title without values still becomes an event."""
        events = parse("10:00am\nEUR\nGerman ZEW Economic Sentiment")

        assert len(events) == 1
        event = events[0]
        assert event.event == "German ZEW Economic Sentiment"
        assert event.actual is None
        assert event.forecast is None
        assert event.previous is None

    @pytest.mark.parametrize("noise", ["—", "Actual", "FORECAST", "previous"])
    def test_noise_between_title_and_values(self, noise):
        """Header/placeholder lines don't break the title -> values pairing."""
        events = parse(f"9:30am\nUSD\nRetail Sales m/m\n{noise}\n0.5%\t0.3%\t0.1%\n")

        assert len(events) == 1
        assert events[0].event == "Retail Sales m/m"
        assert events[0].actual == "0.5%"

    def test_continuation_line_ignored(self):
        """Non-3-column lines under a pending title are skipped."""
        events = parse("9:30am\nUSD\nUnemployment Claims\nsee notes\n230K\t225K\t229K\n")

        assert len(events) == 1
        assert events[0].event == "Unemployment Claims"
        assert events[0].previous == "229K"

    def test_second_title_is_treated_as_continuation(self):
        """A title-like line while one is pending doesn't replace it."""
        events = parse("9:30am\nUSD\nFirst Title\nSecond Title\n1\t2\t3\n")

        assert len(events) == 1
        assert events[0].event == "First Title"

    def test_pending_title_dropped_by_currency_line(self):
        """A new currency block discards an unanswered title."""
        events = parse("9:30am\nUSD\nLost Title\nCAD\nKept Title\n1\t2\t3\n")

        assert len(events) == 1
        assert events[0].event == "Kept Title"
        assert events[0].currency == "CAD"

    def test_time_line_resets_currency(self):
        """Events after a new time have no currency until one is seen."""
        events = parse("9:30am\nUSD\n10:00am\nBank Holiday\n")

        assert len(events) == 1
        assert events[0].currency is None
        assert events[0].time_label == "10:00am"

    def test_lines_before_any_time_are_ignored(self):
        """Titles need a time to attach to."""
        assert parse("USD\nSome Event\n1\t2\t3\n") == []

    def test_lowercase_currency_is_uppercased(self):
        """Three-letter lines are currencies regardless of case."""
        events = parse("9:30am\njpy\nBOJ Policy Rate\n-0.10%\t-0.10%\t-0.10%\n")
        assert events[0].currency == "JPY"

    def test_time_token_normalized(self):
        """Spaces and case are removed from time labels."""
        events = parse("9:30 AM\nUSD\nEvent\n1\t2\t3\n")
        assert events[0].time_label == "9:30am"

    def test_crlf_and_nbsp(self):
        """Windows line endings and non-breaking spaces are handled."""
        events = parse("9:30am\r\nUSD\r\n\u00a0Core PCE\u00a0\r\n\r\n0.2%\t0.2%\t0.1%\r\n")

        assert len(events) == 1
        assert events[0].event == "Core PCE"

    def test_empty_and_garbage_input(self):
        """Nothing parseable yields an empty list, not an error."""
        assert parse("") == []
        assert parse("\n\n   \n") == []
        assert parse("hello\nworld") == []

    def test_to_dict_wire_shape(self):
        """to_dict uses the camelCase API shape and omits absent values."""
        event = parse("10:00am\nEUR\nECB Speech")[0]
        assert event.to_dict() == {
            "id": 1,
            "date": "2025-06-10T04:30:00.000Z",
            "timeLabel": "10:00am",
            "currency": "EUR",
            "event": "ECB Speech",
        }


class TestSplitColumns:
    """Test actual/forecast/previous splitting."""

    def test_tabs_preferred(self):
        assert split_columns("1.2%\t\t1.0%\t0.9%") == ["1.2%", "1.0%", "0.9%"]

    def test_wide_spaces(self):
        assert split_columns("1.2%   1.0%  0.9%") == ["1.2%", "1.0%", "0.9%"]

    def test_extra_columns_truncated(self):
        assert split_columns("a\tb\tc\td") == ["a", "b", "c"]

    def test_single_spaces_do_not_split(self):
        assert split_columns("Core CPI m/m") == []


class TestHelpers:
    """Test grouping, pair and label helpers."""

    def test_group_by_time(self):
        """Consecutive events with the same label share a group."""
        events = parse(SAMPLE_PASTE)
        groups = group_by_time(events)

        assert [g.time_label for g in groups] == ["9:30am", "11:00am"]
        assert [len(g.items) for g in groups] == [2, 1]

    def test_normalize_pair(self):
        assert normalize_pair("eur/usd") == "EURUSD"
        assert normalize_pair("GBP JPY") == "GBPJPY"
        assert normalize_pair("XAU") == ""

    def test_label_normalization_by_event(self):
        assert normalize_calendar_labels("Labour", "Non Farm Payrolls") == (
            "Labour",
            "Non-Farm Employment Change",
        )

    def test_label_normalization_by_category(self):
        """Category is only used when the event name is missing."""
        assert normalize_calendar_labels("Inflation Rate MoM", None) == (
            "Inflation Rate MoM",
            "CPI m/m",
        )
        assert normalize_calendar_labels("Inflation Rate MoM", "Something") == (
            "Inflation Rate MoM",
            "Something",
        )
