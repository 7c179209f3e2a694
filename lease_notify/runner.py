"""
Configuration-driven entry point for one expiry dispatch run.

Whatever triggers the run (scheduler, HTTP endpoint, the ``lease-dispatch``
CLI) calls ``run_expiry_dispatch`` and reports the returned counters.
"""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from lease_config import LeaseEngineConfig, get_active_config
from lease_kernel.db.engine import get_session_factory, init_engine_from_url
from lease_kernel.domain.clock import Clock, SystemClock
from lease_notify.channels.base import ReminderChannel
from lease_notify.channels.email import SmtpReminderChannel
from lease_notify.domain.types import DispatchRunResult
from lease_notify.services.dispatcher import NotificationDispatcher


def build_dispatcher(
    config: LeaseEngineConfig,
    session_factory: sessionmaker[Session],
    channel: ReminderChannel | None = None,
    clock: Clock | None = None,
) -> NotificationDispatcher:
    """Dispatcher wired from settings; SMTP channel unless one is given."""
    return NotificationDispatcher(
        session_factory=session_factory,
        channel=channel or SmtpReminderChannel.from_settings(config.smtp, config.notification),
        clock=clock or SystemClock(),
        horizon_days=config.notification.horizon_days,
        timezone=config.notification.timezone,
    )


def run_expiry_dispatch(
    config: LeaseEngineConfig | None = None,
    session_factory: sessionmaker[Session] | None = None,
    channel: ReminderChannel | None = None,
    clock: Clock | None = None,
) -> DispatchRunResult:
    """
    Run one expiry dispatch.

    Missing collaborators are built from ``config`` (the active
    configuration when None); the database engine is initialised from
    ``config.database`` only when no session factory is supplied.

    Raises:
        DispatchAbortedError: If the store became unreachable mid-run.
    """
    config = config or get_active_config()
    if session_factory is None:
        init_engine_from_url(
            config.database.url,
            echo=config.database.echo,
            pool_size=config.database.pool_size,
        )
        session_factory = get_session_factory()
    return build_dispatcher(config, session_factory, channel, clock).run()
