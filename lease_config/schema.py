"""
Configuration schema (``lease_config.schema``).

Frozen dataclasses describing the engine's runtime settings.  Each section
validates itself in ``__post_init__`` so an invalid YAML value or
environment override fails at load time, not in the middle of a dispatch
run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection settings for the contracts store."""

    url: str = "postgresql+psycopg2://localhost/lease"
    echo: bool = False
    pool_size: int = 5

    def __post_init__(self):
        if not self.url:
            raise ValueError("database.url must not be empty")
        if self.pool_size <= 0:
            raise ValueError("database.pool_size must be positive")


@dataclass(frozen=True)
class NotificationSettings:
    """Expiry scan settings."""

    # Days between today and the expiry date being reminded about
    horizon_days: int = 7
    # Zone in which "today" is computed
    timezone: str = "UTC"
    internal_recipient: str | None = None
    sender_name: str = "Lease Reminders"
    sender_address: str = "noreply@localhost"

    def __post_init__(self):
        if self.horizon_days < 0:
            raise ValueError("notification.horizon_days cannot be negative")
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {self.timezone!r}") from exc
        if not self.sender_address:
            raise ValueError("notification.sender_address must not be empty")

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@dataclass(frozen=True)
class SmtpSettings:
    """Outgoing mail server."""

    host: str = "localhost"
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_ssl: bool = False
    starttls: bool = True
    timeout_seconds: float = 10.0

    def __post_init__(self):
        if not 0 < self.port < 65536:
            raise ValueError(f"smtp.port out of range: {self.port}")
        if self.timeout_seconds <= 0:
            raise ValueError("smtp.timeout_seconds must be positive")


@dataclass(frozen=True)
class LeaseEngineConfig:
    """Complete runtime configuration."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    notification: NotificationSettings = field(default_factory=NotificationSettings)
    smtp: SmtpSettings = field(default_factory=SmtpSettings)
