"""Caller-facing services that own transaction boundaries."""

from lease_services.annuity_lifecycle import AnnuityLifecycleService

__all__ = ["AnnuityLifecycleService"]
