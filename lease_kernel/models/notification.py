"""
Module: lease_kernel.models.notification
Responsibility: ORM persistence for the notify-once ledger.  A row's
    existence means "do not notify this obligation again", whichever
    channels actually succeeded.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.

Invariants enforced:
    - UNIQUE (contract_id, kind, year_key) -- the sole deduplication mechanism.
      ``year_key`` mirrors ``year`` with 0 for contract expiries, because
      NULLs never collide in a SQL unique constraint.
    - CHECK at least one channel succeeded.
    - CHECK year IS NULL iff kind = 'contract_expiry'.
    - Rows are never updated or deleted by the engine.

Failure modes:
    - IntegrityError on a duplicate obligation (expected under concurrent
      dispatch runs; absorbed by NotificationLedger.record).
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lease_kernel.db.base import Base, UUIDString
from lease_kernel.domain.dtos import NotificationKind, NotificationRecord

if TYPE_CHECKING:
    from lease_kernel.models.contract import ContractModel

CONTRACT_EXPIRY_YEAR_KEY = 0


def year_key_for(year: int | None) -> int:
    """Non-null value used in the uniqueness constraint."""
    return CONTRACT_EXPIRY_YEAR_KEY if year is None else year


class NotificationModel(Base):
    """Ledger row recording that an obligation's reminder went out."""

    __tablename__ = "notifications"

    __table_args__ = (
        UniqueConstraint(
            "contract_id", "kind", "year_key",
            name="uq_notifications_obligation",
        ),
        CheckConstraint(
            "sent_to_subject OR sent_to_internal",
            name="ck_notifications_delivered",
        ),
        CheckConstraint(
            "(kind = 'contract_expiry' AND year IS NULL) "
            "OR (kind = 'annuity_expiry' AND year IS NOT NULL)",
            name="ck_notifications_kind_year",
        ),
        Index("ix_notifications_contract", "contract_id"),
        Index("ix_notifications_kind_sent_at", "kind", "sent_at"),
    )

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id", ondelete="CASCADE"),
        nullable=False,
    )
    kind: Mapped[str] = mapped_column(String(30), nullable=False)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    year_key: Mapped[int] = mapped_column(Integer, nullable=False)
    sent_to_subject: Mapped[bool] = mapped_column(Boolean, nullable=False)
    sent_to_internal: Mapped[bool] = mapped_column(Boolean, nullable=False)
    sent_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )

    contract: Mapped["ContractModel"] = relationship(
        "ContractModel", back_populates="notifications",
    )

    def to_dto(self) -> NotificationRecord:
        return NotificationRecord(
            notification_id=self.id,
            contract_id=self.contract_id,
            kind=NotificationKind(self.kind),
            year=self.year,
            sent_to_subject=self.sent_to_subject,
            sent_to_internal=self.sent_to_internal,
            sent_at=self.sent_at,
        )
