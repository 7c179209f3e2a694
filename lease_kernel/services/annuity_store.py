"""
AnnuityStore -- repository over contracts and their annuities.

Responsibility:
    Read/write access to persisted annuity rows scoped to one contract,
    plus the two contract reads/writes the lifecycle needs (load with an
    optional row lock, advance the payment watermark).  Every method works
    inside the caller's transaction and returns DTOs.

Architecture position:
    Kernel > Services -- imperative shell.  Used by AnnuityRecalculator and
    PaymentTracker; never commits.

Invariants enforced:
    - ``for_update=True`` issues ``SELECT ... FOR UPDATE`` (PostgreSQL) so
      concurrent recalculations/payments on one contract serialise.
    - ``list_annuities`` is always ordered by year ascending.

Failure modes:
    - IntegrityError from ``insert_annuities`` when a year already exists
      for the contract (UNIQUE contract_id, year).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from uuid import UUID

from sqlalchemy import delete, select

from lease_kernel.domain.dtos import AnnuityDraft, AnnuityInfo, ContractInfo
from lease_kernel.logging_config import get_logger
from lease_kernel.models.annuity import AnnuityModel
from lease_kernel.models.contract import ContractModel
from lease_kernel.services.base import BaseService

logger = get_logger("services.annuity_store")


class AnnuityStore(BaseService[AnnuityModel]):
    """Explicit store handle passed to the lifecycle services."""

    def _contract_model(self, contract_id: UUID, for_update: bool = False) -> ContractModel | None:
        stmt = select(ContractModel).where(ContractModel.id == contract_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def _annuity_model(
        self, contract_id: UUID, year: int, for_update: bool = False,
    ) -> AnnuityModel | None:
        stmt = select(AnnuityModel).where(
            AnnuityModel.contract_id == contract_id,
            AnnuityModel.year == year,
        )
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def get_contract(self, contract_id: UUID, for_update: bool = False) -> ContractInfo | None:
        """Load a contract, or None if it does not exist."""
        contract = self._contract_model(contract_id, for_update)
        return contract.to_dto() if contract else None

    def list_annuities(self, contract_id: UUID) -> tuple[AnnuityInfo, ...]:
        stmt = (
            select(AnnuityModel)
            .where(AnnuityModel.contract_id == contract_id)
            .order_by(AnnuityModel.year)
        )
        return tuple(a.to_dto() for a in self.session.execute(stmt).scalars())

    def get_annuity(
        self, contract_id: UUID, year: int, for_update: bool = False,
    ) -> AnnuityInfo | None:
        annuity = self._annuity_model(contract_id, year, for_update)
        return annuity.to_dto() if annuity else None

    def insert_annuities(
        self, contract_id: UUID, drafts: Sequence[AnnuityDraft],
    ) -> tuple[AnnuityInfo, ...]:
        """Persist drafts as new annuity rows of ``contract_id``."""
        models = [
            AnnuityModel(
                contract_id=contract_id,
                year=draft.year,
                due_date=draft.due_date,
                is_paid=draft.is_paid,
                paid_at=draft.paid_at,
            )
            for draft in drafts
        ]
        self.session.add_all(models)
        self.session.flush()
        return tuple(m.to_dto() for m in sorted(models, key=lambda m: m.year))

    def delete_annuities(self, annuity_ids: Iterable[UUID]) -> int:
        """Delete annuity rows by id. Returns the number of ids requested."""
        ids = list(annuity_ids)
        if not ids:
            return 0
        self.session.execute(
            delete(AnnuityModel).where(AnnuityModel.id.in_(ids))
        )
        self.session.flush()
        return len(ids)

    def reschedule_annuity(self, annuity_id: UUID, due_date: date) -> None:
        """Move an annuity's due date, leaving its paid status alone."""
        annuity = self.session.get(AnnuityModel, annuity_id)
        if annuity is not None and annuity.due_date != due_date:
            annuity.due_date = due_date
            self.session.flush()

    def set_annuity_paid(
        self, contract_id: UUID, year: int, paid_at: datetime,
    ) -> AnnuityInfo | None:
        """Flag one annuity as paid. Returns None if the row does not exist."""
        annuity = self._annuity_model(contract_id, year, for_update=True)
        if annuity is None:
            return None
        annuity.is_paid = True
        annuity.paid_at = paid_at
        self.session.flush()
        return annuity.to_dto()

    def update_contract_watermark(self, contract_id: UUID, year: int) -> None:
        """Set ``last_annuity_paid_year``. Monotonicity is the caller's job."""
        contract = self._contract_model(contract_id)
        if contract is None:
            return
        previous = contract.last_annuity_paid_year
        contract.last_annuity_paid_year = year
        self.session.flush()
        logger.debug(
            "contract_watermark_updated",
            extra={
                "contract_id": str(contract_id),
                "previous_year": previous,
                "year": year,
            },
        )
