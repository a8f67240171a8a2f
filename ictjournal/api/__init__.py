"""
Remote API module for ICT Journal.

Talks to the journal backend's trade import and calendar endpoints.
"""

from ictjournal.api.client import ApiError, JournalApiClient

__all__ = ["ApiError", "JournalApiClient"]
