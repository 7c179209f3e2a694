"""
NotificationLedger -- at-most-once bookkeeping for expiry reminders.

Responsibility:
    Answers "was this obligation already notified?" and records that a
    reminder went out.  An obligation is identified by
    ``(contract_id, kind, year)`` with ``year`` None for contract expiries.

Architecture position:
    Kernel > Services -- flush-only, used by the expiry dispatcher inside
    short per-obligation transactions.

Invariants enforced:
    - Deduplication rests solely on the UNIQUE constraint of the
      notifications table.  Two overlapping dispatch runs may both deliver;
      only one ledger row survives and the other insert is absorbed.
    - A row is only written when at least one channel succeeded.
    - Rows are never updated or deleted here.

Failure modes:
    - ValueError when both channel flags are False or kind/year disagree.
    - A uniqueness conflict is NOT an error: ``record`` returns False.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from lease_kernel.domain.clock import Clock
from lease_kernel.domain.dtos import (
    NotificationKind,
    NotificationRecord,
    check_kind_year,
)
from lease_kernel.logging_config import get_logger
from lease_kernel.models.notification import NotificationModel, year_key_for
from lease_kernel.services.base import BaseService

logger = get_logger("services.notification_ledger")


class NotificationLedger(BaseService[NotificationModel]):
    """Reads and appends notification ledger rows."""

    def __init__(self, session, clock: Clock):
        super().__init__(session)
        self._clock = clock

    def was_sent(
        self,
        contract_id: UUID,
        kind: NotificationKind,
        year: int | None = None,
    ) -> bool:
        """True if a ledger row exists for the obligation."""
        check_kind_year(kind, year)
        stmt = select(NotificationModel.id).where(
            NotificationModel.contract_id == contract_id,
            NotificationModel.kind == kind.value,
            NotificationModel.year_key == year_key_for(year),
        )
        return self.session.execute(stmt).first() is not None

    def record(
        self,
        contract_id: UUID,
        kind: NotificationKind,
        year: int | None,
        sent_to_subject: bool,
        sent_to_internal: bool,
    ) -> bool:
        """
        Append a ledger row for a delivered obligation.

        The insert runs in a SAVEPOINT so a concurrent writer's row only
        rolls back this insert, not the caller's transaction.

        Returns:
            True if the row was inserted, False if another writer recorded
            the same obligation first.

        Raises:
            ValueError: If no channel succeeded or kind/year disagree.
        """
        check_kind_year(kind, year)
        if not (sent_to_subject or sent_to_internal):
            raise ValueError(
                "Cannot record a notification with no successful channel"
            )

        savepoint = self.session.begin_nested()
        try:
            self.session.add(
                NotificationModel(
                    contract_id=contract_id,
                    kind=kind.value,
                    year=year,
                    year_key=year_key_for(year),
                    sent_to_subject=sent_to_subject,
                    sent_to_internal=sent_to_internal,
                    sent_at=self._clock.now(),
                )
            )
            self.session.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
            logger.warning(
                "notification_ledger_conflict",
                extra={
                    "contract_id": str(contract_id),
                    "kind": kind.value,
                    "year": year,
                },
            )
            return False

        logger.info(
            "notification_recorded",
            extra={
                "contract_id": str(contract_id),
                "kind": kind.value,
                "year": year,
                "sent_to_subject": sent_to_subject,
                "sent_to_internal": sent_to_internal,
            },
        )
        return True

    def list_for_contract(self, contract_id: UUID) -> tuple[NotificationRecord, ...]:
        """All ledger rows of a contract, oldest first."""
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.contract_id == contract_id)
            .order_by(NotificationModel.sent_at, NotificationModel.year_key)
        )
        return tuple(n.to_dto() for n in self.session.execute(stmt).scalars())
