"""Reminder delivery channels."""

from lease_notify.channels.base import ReminderChannel
from lease_notify.channels.email import SmtpReminderChannel, build_reminder_message

__all__ = ["ReminderChannel", "SmtpReminderChannel", "build_reminder_message"]
