"""
Module: lease_kernel.models.annuity
Responsibility: ORM persistence for intermediate-year annuity obligations.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - UNIQUE (contract_id, year)  -- one annuity per contract year.
    - CHECK is_paid == (paid_at IS NOT NULL).

Failure modes:
    - IntegrityError on a duplicate year or an inconsistent paid pair.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lease_kernel.db.base import TrackedBase, UUIDString
from lease_kernel.domain.dtos import AnnuityInfo

if TYPE_CHECKING:
    from lease_kernel.models.contract import ContractModel


class AnnuityModel(TrackedBase):
    """One intermediate-year payment obligation of a contract."""

    __tablename__ = "annuities"

    __table_args__ = (
        UniqueConstraint("contract_id", "year", name="uq_annuities_contract_year"),
        CheckConstraint(
            "(paid_at IS NOT NULL) = is_paid",
            name="ck_annuities_paid_consistency",
        ),
        Index("ix_annuities_due_date", "due_date"),
        Index("ix_annuities_contract_paid", "contract_id", "is_paid"),
    )

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id", ondelete="CASCADE"),
        nullable=False,
    )
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[date] = mapped_column(nullable=False)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    contract: Mapped["ContractModel"] = relationship(
        "ContractModel", back_populates="annuities",
    )

    def to_dto(self) -> AnnuityInfo:
        return AnnuityInfo(
            annuity_id=self.id,
            contract_id=self.contract_id,
            year=self.year,
            due_date=self.due_date,
            is_paid=self.is_paid,
            paid_at=self.paid_at,
        )

    def __repr__(self) -> str:
        return f"<Annuity {self.contract_id}:{self.year} paid={self.is_paid}>"
