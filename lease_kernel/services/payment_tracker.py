"""
PaymentTracker -- marks annuities paid and advances the payment watermark.

Responsibility:
    Records the payment of one intermediate-year annuity and keeps the
    contract's ``last_annuity_paid_year`` in step.

Architecture position:
    Kernel > Services -- runs inside one caller-owned transaction.

Invariants enforced:
    - The watermark is strictly monotonic: it moves to ``year`` only when
      ``year > (watermark or 0)``.  Paying an older year out of order marks
      that annuity paid and leaves the watermark alone.
    - Paying an already-paid annuity is rejected; nothing is modified.
    - The contract row is locked before the annuity row so concurrent
      payments on one contract cannot regress the watermark.

Failure modes:
    - ContractNotFoundError / AnnuityNotFoundError.
    - AnnuityAlreadyPaidError (InvalidState).
"""

from __future__ import annotations

from uuid import UUID

from lease_kernel.domain.clock import Clock
from lease_kernel.domain.dtos import AnnuityInfo
from lease_kernel.exceptions import (
    AnnuityAlreadyPaidError,
    AnnuityNotFoundError,
    ContractNotFoundError,
)
from lease_kernel.logging_config import get_logger
from lease_kernel.services.annuity_store import AnnuityStore

logger = get_logger("services.payment_tracker")


class PaymentTracker:
    """Marks annuities paid."""

    def __init__(self, store: AnnuityStore, clock: Clock):
        self._store = store
        self._clock = clock

    def mark_paid(self, contract_id: UUID, year: int) -> AnnuityInfo:
        """
        Mark the annuity of ``year`` paid.

        Args:
            contract_id: Contract owning the annuity.
            year: Calendar year of the annuity.

        Returns:
            The updated annuity.

        Raises:
            ContractNotFoundError: If the contract does not exist.
            AnnuityNotFoundError: If the contract has no annuity for ``year``.
            AnnuityAlreadyPaidError: If the annuity is already paid.
        """
        contract = self._store.get_contract(contract_id, for_update=True)
        if contract is None:
            raise ContractNotFoundError(str(contract_id))

        annuity = self._store.get_annuity(contract_id, year, for_update=True)
        if annuity is None:
            raise AnnuityNotFoundError(str(contract_id), year)
        if annuity.is_paid:
            logger.warning(
                "annuity_already_paid",
                extra={"contract_id": str(contract_id), "year": year},
            )
            raise AnnuityAlreadyPaidError(str(contract_id), year)

        paid = self._store.set_annuity_paid(contract_id, year, self._clock.now())

        watermark = contract.last_annuity_paid_year
        advanced = year > (watermark or 0)
        if advanced:
            self._store.update_contract_watermark(contract_id, year)

        logger.info(
            "annuity_marked_paid",
            extra={
                "contract_id": str(contract_id),
                "year": year,
                "previous_watermark": watermark,
                "watermark_advanced": advanced,
            },
        )
        return paid
