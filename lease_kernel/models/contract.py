"""
Module: lease_kernel.models.contract
Responsibility: ORM persistence for rental contracts -- the terms that drive
    annuity generation (dates, flat-rate regime) and the payment watermark.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - end_date > start_date (CHECK constraint ck_contracts_dates).
    - last_annuity_paid_year never decreases (enforced by PaymentTracker and
      ContractService, not by the ORM).
    - Annuities and notifications are deleted with their contract (FK
      ON DELETE CASCADE plus ORM cascade for backends without FK enforcement).

Failure modes:
    - IntegrityError on a date pair violating ck_contracts_dates.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lease_kernel.db.base import TrackedBase, UUIDString
from lease_kernel.domain.dtos import ContractInfo

if TYPE_CHECKING:
    from lease_kernel.models.annuity import AnnuityModel
    from lease_kernel.models.notification import NotificationModel
    from lease_kernel.models.party import PartyModel


class ContractModel(TrackedBase):
    """Multi-year rental contract."""

    __tablename__ = "contracts"

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_contracts_dates"),
        Index("ix_contracts_end_date", "end_date"),
        Index("ix_contracts_owner_end_date", "owner_id", "end_date"),
    )

    owner_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("parties.id", ondelete="CASCADE"),
        nullable=False,
    )
    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("parties.id", ondelete="CASCADE"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(nullable=False)
    end_date: Mapped[date] = mapped_column(nullable=False)
    flat_rate_regime: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False,
    )
    last_annuity_paid_year: Mapped[int | None] = mapped_column(
        Integer, nullable=True,
    )
    monthly_rent: Mapped[Decimal] = mapped_column(nullable=False)
    address: Mapped[str | None] = mapped_column(String(255), nullable=True)

    owner: Mapped["PartyModel"] = relationship(
        "PartyModel", foreign_keys=[owner_id],
    )
    tenant: Mapped["PartyModel"] = relationship(
        "PartyModel", foreign_keys=[tenant_id],
    )
    annuities: Mapped[list["AnnuityModel"]] = relationship(
        "AnnuityModel",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="AnnuityModel.year",
    )
    notifications: Mapped[list["NotificationModel"]] = relationship(
        "NotificationModel",
        back_populates="contract",
        cascade="all, delete-orphan",
    )

    def to_dto(self) -> ContractInfo:
        return ContractInfo(
            contract_id=self.id,
            owner_id=self.owner_id,
            tenant_id=self.tenant_id,
            start_date=self.start_date,
            end_date=self.end_date,
            flat_rate_regime=self.flat_rate_regime,
            last_annuity_paid_year=self.last_annuity_paid_year,
            monthly_rent=self.monthly_rent,
            address=self.address,
        )

    def __repr__(self) -> str:
        return f"<Contract {self.id} {self.start_date}..{self.end_date}>"
