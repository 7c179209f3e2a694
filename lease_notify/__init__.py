"""
lease_notify -- expiry-reminder dispatch.

Finds contracts and annuities expiring after the configured horizon and
notifies each obligation at most once through a ReminderChannel.
"""

from lease_notify.channels import ReminderChannel, SmtpReminderChannel
from lease_notify.domain import (
    DispatchRunResult,
    DispatchStats,
    Obligation,
    ObligationOutcome,
    ObligationStatus,
)
from lease_notify.runner import build_dispatcher, run_expiry_dispatch
from lease_notify.services import NotificationDispatcher

__all__ = [
    "DispatchRunResult",
    "DispatchStats",
    "NotificationDispatcher",
    "Obligation",
    "ObligationOutcome",
    "ObligationStatus",
    "ReminderChannel",
    "SmtpReminderChannel",
    "build_dispatcher",
    "run_expiry_dispatch",
]
