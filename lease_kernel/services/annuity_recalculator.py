"""
AnnuityRecalculator -- initial generation and reconciliation of annuities.

Responsibility:
    Turns a contract's current terms into persisted annuity rows.
    ``generate`` performs the one-time bulk creation; ``recalculate`` diffs
    the persisted rows against a freshly generated set after the contract's
    dates or fiscal regime changed.

Architecture position:
    Kernel > Services -- imperative shell around the pure
    ``generate_annuity_drafts`` core.  Runs inside one caller-owned
    transaction; never commits.

Invariants enforced:
    - Payment history is preserved: a year present both before and after
      recalculation keeps its persisted ``is_paid`` / ``paid_at`` even when
      the fresh draft disagrees.
    - After ``recalculate`` the persisted year set equals the generated
      year set exactly (empty for flat-rate contracts).
    - Recalculation is idempotent.

Failure modes:
    - ContractNotFoundError: contract id does not exist.
    - AnnuitiesAlreadyGeneratedError: ``generate`` called on a contract
      that already has annuities.
"""

from __future__ import annotations

from uuid import UUID

from lease_kernel.domain.annuity_schedule import generate_annuity_drafts
from lease_kernel.domain.clock import Clock
from lease_kernel.domain.dtos import AnnuityInfo, ContractInfo
from lease_kernel.exceptions import (
    AnnuitiesAlreadyGeneratedError,
    ContractNotFoundError,
)
from lease_kernel.logging_config import get_logger
from lease_kernel.services.annuity_store import AnnuityStore

logger = get_logger("services.annuity_recalculator")


class AnnuityRecalculator:
    """Generates and reconciles the annuity timeline of one contract."""

    def __init__(self, store: AnnuityStore, clock: Clock):
        self._store = store
        self._clock = clock

    def _load_contract(self, contract_id: UUID) -> ContractInfo:
        contract = self._store.get_contract(contract_id, for_update=True)
        if contract is None:
            raise ContractNotFoundError(str(contract_id))
        return contract

    def generate(self, contract_id: UUID) -> tuple[AnnuityInfo, ...]:
        """
        Create the initial annuity rows of a contract.

        Returns:
            The created annuities ordered by year (empty for flat-rate).

        Raises:
            ContractNotFoundError: If the contract does not exist.
            AnnuitiesAlreadyGeneratedError: If annuities already exist.
        """
        contract = self._load_contract(contract_id)
        existing = self._store.list_annuities(contract_id)
        if existing:
            raise AnnuitiesAlreadyGeneratedError(str(contract_id), len(existing))

        drafts = generate_annuity_drafts(contract, self._clock.now())
        created = self._store.insert_annuities(contract_id, drafts) if drafts else ()

        logger.info(
            "annuities_generated",
            extra={
                "contract_id": str(contract_id),
                "years": [a.year for a in created],
                "paid_count": sum(1 for a in created if a.is_paid),
            },
        )
        return created

    def recalculate(self, contract_id: UUID) -> tuple[AnnuityInfo, ...]:
        """
        Reconcile persisted annuities with the contract's current terms.

        Retained years keep their paid status; their due date follows the
        contract start date.  Out-of-range years are deleted and missing
        years are inserted with the generated paid status.

        Returns:
            The final annuity set ordered by year ascending.

        Raises:
            ContractNotFoundError: If the contract does not exist.
        """
        contract = self._load_contract(contract_id)
        drafts = generate_annuity_drafts(contract, self._clock.now())
        target = {draft.year: draft for draft in drafts}
        persisted = self._store.list_annuities(contract_id)
        persisted_years = {a.year for a in persisted}

        stale = [a for a in persisted if a.year not in target]
        missing = [d for d in drafts if d.year not in persisted_years]

        for annuity in persisted:
            draft = target.get(annuity.year)
            if draft is not None and draft.due_date != annuity.due_date:
                self._store.reschedule_annuity(annuity.annuity_id, draft.due_date)

        self._store.delete_annuities(a.annuity_id for a in stale)
        if missing:
            self._store.insert_annuities(contract_id, missing)

        result = self._store.list_annuities(contract_id)

        logger.info(
            "annuities_recalculated",
            extra={
                "contract_id": str(contract_id),
                "deleted_years": [a.year for a in stale],
                "inserted_years": [d.year for d in missing],
                "retained_count": len(persisted) - len(stale),
                "total_count": len(result),
            },
        )
        return result
