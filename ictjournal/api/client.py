"""
Remote journal API client.

Thin wrapper over the journal backend's trade import and calendar
endpoints. Validation and persistence happen on the server; this side
only ships payloads and reads the results back.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from ictjournal.core.config import Config
from ictjournal.core.records import CalendarEvent, ImportResult, TradeRecord
from ictjournal.ingest.calendar_labels import normalize_calendar_labels

logger = logging.getLogger(__name__)


class ApiError(RuntimeError):
    """The journal API could not be reached or returned an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class JournalApiClient:
    """
    Client for the journal backend.

    Sends a bearer token when one is configured.
    """

    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        if not config.api_base_url:
            raise ApiError("ICTJOURNAL_API_URL is not configured")

        self.base_url = config.api_base_url.rstrip("/")
        self.timeout = config.api_timeout_seconds
        self.session = session or requests.Session()
        if config.api_token:
            self.session.headers["Authorization"] = f"Bearer {config.api_token}"

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error(f"[API] {method} {path} failed: {e}")
            raise ApiError(f"Request to {path} failed: {e}") from e

        if response.status_code >= 400:
            try:
                detail = response.json().get("error")
            except ValueError:
                detail = None
            message = detail if isinstance(detail, str) else f"HTTP {response.status_code}"
            logger.warning(f"[API] {method} {path} -> {response.status_code}: {message}")
            raise ApiError(message, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ApiError(f"Invalid JSON from {path}") from e

    def import_trades(self, records: Sequence[TradeRecord]) -> ImportResult:
        """
        POST /trades/import.

        Returns:
            ImportResult built from {created, failed}
        """
        payload = {"trades": [record.to_payload() for record in records]}
        data = self._request("POST", "/trades/import", json=payload)
        result = ImportResult.from_response(data)
        logger.info(f"[API] Import: created={result.created} failed={len(result.failed)}")
        return result

    def calendar_today(
        self,
        currency: Optional[str] = None,
        importance: Optional[int] = None,
    ) -> List[CalendarEvent]:
        """
        GET /calendar/today.

        Event labels are normalized to ForexFactory names so fetched and
        pasted events read the same.
        """
        params: Dict[str, Any] = {}
        if currency:
            params["currency"] = currency.strip().upper()
        if importance is not None:
            params["importance"] = importance

        data = self._request("GET", "/calendar/today", params=params)

        events = []
        for item in data.get("events") or []:
            _, label = normalize_calendar_labels(item.get("category"), item.get("event"))
            event = CalendarEvent.from_dict({**item, "event": label})
            events.append(event)
        return events
