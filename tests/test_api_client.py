"""
Unit tests for the remote journal API client.

HTTP is mocked; tests cover payload shape, result parsing and errors.
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import MagicMock

import requests

# Add parent to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ictjournal.api.client import ApiError, JournalApiClient
from ictjournal.core.config import Config
from ictjournal.core.records import TradeRecord


def make_response(status_code=200, data=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = data if data is not None else {}
    return response


@pytest.fixture
def session():
    mock = MagicMock()
    mock.headers = {}
    return mock


@pytest.fixture
def client(session):
    config = Config(api_base_url="https://journal.example.com/api/", api_token="secret")
    return JournalApiClient(config, session=session)


class TestImport:
    """Test POST /trades/import."""

    def test_payload_and_result(self, client, session):
        session.request.return_value = make_response(data={
            "success": True,
            "created": 1,
            "failed": [{"index": 1, "reason": "direction: Required"}],
        })
        records = [
            TradeRecord(date="2025-12-17T12:33:00.000Z", instrument="EURUSD", direction="long",
                        entry_price=1.17145, pd_arrays=("FVG",), is_premium_discount=False),
            TradeRecord(instrument="GBPUSD"),
        ]

        result = client.import_trades(records)

        method, url = session.request.call_args.args
        payload = session.request.call_args.kwargs["json"]
        assert method == "POST"
        assert url == "https://journal.example.com/api/trades/import"
        assert payload["trades"][0] == {
            "date": "2025-12-17T12:33:00.000Z",
            "instrument": "EURUSD",
            "direction": "long",
            "entryPrice": 1.17145,
            "pdArrays": ["FVG"],
            "isPremiumDiscount": False,
        }
        assert payload["trades"][1] == {"instrument": "GBPUSD"}

        assert result.created == 1
        assert result.failed[0].index == 1
        assert "Row 3: direction: Required" in result.summary()

    def test_bearer_token(self, client, session):
        assert session.headers["Authorization"] == "Bearer secret"

    def test_http_error(self, client, session):
        session.request.return_value = make_response(400, {"error": "No trades provided"})

        with pytest.raises(ApiError, match="No trades provided") as exc:
            client.import_trades([])
        assert exc.value.status_code == 400

    def test_connection_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(ApiError):
            client.import_trades([TradeRecord(instrument="EURUSD")])


class TestCalendar:
    """Test GET /calendar/today."""

    def test_events_parsed_and_normalized(self, client, session):
        session.request.return_value = make_response(data={"events": [
            {"id": 1, "date": "2025-06-10T12:30:00.000Z", "timeLabel": "6:00pm",
             "currency": "USD", "event": "Non Farm Payrolls", "actual": "150K"},
            {"id": 2, "date": "2025-06-10T14:00:00.000Z", "currency": "USD",
             "category": "Inflation Rate MoM"},
        ]})

        events = client.calendar_today(currency="usd")

        assert session.request.call_args.kwargs["params"] == {"currency": "USD"}
        assert events[0].event == "Non-Farm Employment Change"
        assert events[0].time_label == "6:00pm"
        assert events[0].actual == "150K"
        assert events[1].event == "CPI m/m"
        assert events[1].time_label == ""

    def test_missing_base_url(self):
        with pytest.raises(ApiError):
            JournalApiClient(Config())
