"""
Configuration management for ICT Journal.

Loads settings from environment variables.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Config:
    """Application configuration."""

    # Database
    database_path: str = "data/ictjournal.db"

    # Remote journal API
    api_base_url: Optional[str] = None
    api_token: Optional[str] = None
    api_timeout_seconds: float = 15.0

    # Timezones
    display_timezone: str = "Asia/Kolkata"
    broker_timezone: str = "UTC"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            database_path=os.getenv("ICTJOURNAL_DB_PATH", "data/ictjournal.db"),
            api_base_url=os.getenv("ICTJOURNAL_API_URL"),
            api_token=os.getenv("ICTJOURNAL_API_TOKEN"),
            api_timeout_seconds=float(os.getenv("ICTJOURNAL_API_TIMEOUT", "15")),
            display_timezone=os.getenv("DISPLAY_TIMEZONE", "Asia/Kolkata"),
            broker_timezone=os.getenv("BROKER_TIMEZONE", "UTC"),
        )

    @property
    def has_remote_api(self) -> bool:
        """True when a remote journal API is configured."""
        return bool(self.api_base_url)

    def get_summary(self) -> str:
        """Get a summary of current settings."""
        return f"""Database: {self.database_path}
Remote API: {self.api_base_url or "Not configured"}
Display timezone: {self.display_timezone}
Broker timezone: {self.broker_timezone}
"""
