"""Pure domain layer: clock, DTOs and the annuity schedule."""

from lease_kernel.domain.annuity_schedule import (
    due_date_for_year,
    generate_annuity_drafts,
    intermediate_years,
    is_year_paid,
)
from lease_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from lease_kernel.domain.dtos import (
    AnnuityDraft,
    AnnuityInfo,
    ContractInfo,
    ContractSnapshot,
    ExpiringItem,
    NotificationKind,
    NotificationRecord,
    PartyContact,
    PartyRole,
)

__all__ = [
    "AnnuityDraft",
    "AnnuityInfo",
    "Clock",
    "ContractInfo",
    "ContractSnapshot",
    "DeterministicClock",
    "ExpiringItem",
    "NotificationKind",
    "NotificationRecord",
    "PartyContact",
    "PartyRole",
    "SystemClock",
    "due_date_for_year",
    "generate_annuity_drafts",
    "intermediate_years",
    "is_year_paid",
]
