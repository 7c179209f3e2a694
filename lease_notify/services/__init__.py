"""Dispatch services."""

from lease_notify.services.dispatcher import NotificationDispatcher

__all__ = ["NotificationDispatcher"]
