"""
Annuity schedule -- pure year arithmetic and annuity generation.

Responsibility:
    Derives the intermediate-year annuity timeline of a long lease from its
    start/end dates, fiscal regime and payment watermark.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  The "now" used for
    ``paid_at`` is passed in by the caller (taken from an injected Clock).

Invariants enforced:
    - The year set is exactly ``start.year+1 .. end.year-1``; empty when the
      contract is flat-rate or spans fewer than two year boundaries.
    - Due dates keep the start date's month and day.  A Feb-29 start date
      is clamped to Feb-28 in non-leap years.
    - Years at or below ``last_annuity_paid_year`` are generated as paid.

Examples:
    2025-01-15 .. 2028-01-15 -> [2026, 2027]
    2025-06-01 .. 2026-06-01 -> []
    2025-03-10 .. 2030-03-10 -> [2026, 2027, 2028, 2029]
"""

from __future__ import annotations

import calendar
from datetime import date, datetime

from lease_kernel.domain.dtos import AnnuityDraft, ContractInfo


def intermediate_years(start_date: date, end_date: date) -> tuple[int, ...]:
    """Calendar years strictly between the start and end years, ascending."""
    return tuple(range(start_date.year + 1, end_date.year))


def due_date_for_year(start_date: date, year: int) -> date:
    """Same month/day as ``start_date`` in ``year`` (Feb-29 -> Feb-28)."""
    if start_date.month == 2 and start_date.day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return start_date.replace(year=year)


def is_year_paid(year: int, last_annuity_paid_year: int | None) -> bool:
    """Whether ``year`` is covered by the payment watermark."""
    return last_annuity_paid_year is not None and year <= last_annuity_paid_year


def generate_annuity_drafts(
    contract: ContractInfo,
    as_of: datetime,
) -> tuple[AnnuityDraft, ...]:
    """
    Build the full annuity set for a contract.

    Args:
        contract: Current contract terms.
        as_of: Timestamp recorded as ``paid_at`` for years already covered
            by the watermark.

    Returns:
        Drafts ordered by year; empty for flat-rate contracts.
    """
    if contract.flat_rate_regime:
        return ()

    drafts = []
    for year in intermediate_years(contract.start_date, contract.end_date):
        paid = is_year_paid(year, contract.last_annuity_paid_year)
        drafts.append(
            AnnuityDraft(
                year=year,
                due_date=due_date_for_year(contract.start_date, year),
                is_paid=paid,
                paid_at=as_of if paid else None,
            )
        )
    return tuple(drafts)
