"""
Module: lease_kernel.selectors.expiry_selector
Responsibility: Finds contracts and unpaid annuities whose relevant date
    falls on a given day (the dispatcher's scan) or within a calendar month
    (the expiry listing shown to operators).
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Exact date match: ``end_date == target`` / ``due_date == target``.
      A target date missed by a run is not caught up by later runs.
    - Paid annuities are never reported.
    - Same database snapshot and same target date -> same result.
"""

from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import select

from lease_kernel.domain.dtos import (
    AnnuityInfo,
    ContractInfo,
    ExpiringItem,
    NotificationKind,
)
from lease_kernel.models.annuity import AnnuityModel
from lease_kernel.models.contract import ContractModel
from lease_kernel.selectors.base import BaseSelector


def target_date_for(today: date, horizon_days: int) -> date:
    """The date obligations must expire on to be reminded about today."""
    return today + timedelta(days=horizon_days)


def _month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    first = date(year, month, 1)
    following = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return first, following


class ExpirySelector(BaseSelector[ContractModel]):
    """Expiry queries over contracts and annuities."""

    def find_due_contracts(self, target_date: date) -> tuple[ContractInfo, ...]:
        stmt = (
            select(ContractModel)
            .where(ContractModel.end_date == target_date)
            .order_by(ContractModel.created_at, ContractModel.id)
        )
        return tuple(c.to_dto() for c in self.session.execute(stmt).scalars())

    def find_due_annuities(self, target_date: date) -> tuple[AnnuityInfo, ...]:
        stmt = (
            select(AnnuityModel)
            .where(
                AnnuityModel.due_date == target_date,
                AnnuityModel.is_paid.is_(False),
            )
            .order_by(AnnuityModel.contract_id, AnnuityModel.year)
        )
        return tuple(a.to_dto() for a in self.session.execute(stmt).scalars())

    def expiring_in_month(self, year: int, month: int) -> tuple[ExpiringItem, ...]:
        """
        Contract expiries and unpaid annuities falling in a calendar month.

        Annuities of flat-rate contracts are excluded.  Items are ordered by
        date, contract expiries before annuities on the same day.

        Raises:
            ValueError: If ``month`` is not in 1..12.
        """
        first, following = _month_bounds(year, month)

        contracts = self.session.execute(
            select(ContractModel.id, ContractModel.end_date).where(
                ContractModel.end_date >= first,
                ContractModel.end_date < following,
            )
        ).all()

        annuities = self.session.execute(
            select(AnnuityModel.contract_id, AnnuityModel.year, AnnuityModel.due_date)
            .join(ContractModel, ContractModel.id == AnnuityModel.contract_id)
            .where(
                AnnuityModel.due_date >= first,
                AnnuityModel.due_date < following,
                AnnuityModel.is_paid.is_(False),
                ContractModel.flat_rate_regime.is_(False),
            )
        ).all()

        items = [
            ExpiringItem(
                contract_id=row.id,
                kind=NotificationKind.CONTRACT_EXPIRY,
                expiry_date=row.end_date,
            )
            for row in contracts
        ]
        items.extend(
            ExpiringItem(
                contract_id=row.contract_id,
                kind=NotificationKind.ANNUITY_EXPIRY,
                expiry_date=row.due_date,
                annuity_year=row.year,
            )
            for row in annuities
        )
        items.sort(
            key=lambda item: (
                item.expiry_date,
                item.kind != NotificationKind.CONTRACT_EXPIRY,
                str(item.contract_id),
            )
        )
        return tuple(items)
