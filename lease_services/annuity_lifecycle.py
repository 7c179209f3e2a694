"""
Annuity Lifecycle Service (``lease_services.annuity_lifecycle``).

Responsibility
--------------
The entry point controllers and jobs call to manage contracts and their
annuity timelines: generation, recalculation, payments, listings, and the
contract writes that trigger them.

Architecture position
---------------------
**Services layer** -- thin glue over ``lease_kernel`` services.  Each public
method opens its own session from the injected factory and owns the
transaction boundary.

Invariants enforced
-------------------
* Each public method runs in exactly one transaction: commit on success,
  rollback on any exception.  A failed recalculation leaves the previous
  annuity set intact.
* Store connectivity failures surface as ``StoreUnavailableError``; domain
  errors (NotFound, InvalidState) propagate unchanged.
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from lease_kernel.db.engine import transaction_scope
from lease_kernel.domain.clock import Clock, SystemClock
from lease_kernel.domain.dtos import (
    AnnuityInfo,
    ContractSnapshot,
    ExpiringItem,
    NotificationRecord,
    PartyContact,
    PartyRole,
)
from lease_kernel.exceptions import ContractNotFoundError, StoreUnavailableError
from lease_kernel.logging_config import LogContext, get_logger
from lease_kernel.selectors.contract_selector import ContractSelector
from lease_kernel.selectors.expiry_selector import ExpirySelector
from lease_kernel.services.annuity_recalculator import AnnuityRecalculator
from lease_kernel.services.annuity_store import AnnuityStore
from lease_kernel.services.contract_service import ContractService, ContractWriteResult
from lease_kernel.services.notification_ledger import NotificationLedger
from lease_kernel.services.payment_tracker import PaymentTracker

logger = get_logger("services.annuity_lifecycle")


class AnnuityLifecycleService:
    """Transaction-owning facade over contracts and annuities."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    @contextmanager
    def _transaction(self, operation: str) -> Generator[Session, None, None]:
        try:
            with transaction_scope(self._session_factory) as session:
                yield session
        except (OperationalError, InterfaceError) as exc:
            logger.error(
                "store_unavailable",
                extra={"operation": operation, "reason": str(exc)},
            )
            raise StoreUnavailableError(operation, str(exc)) from exc

    # =========================================================================
    # Annuities
    # =========================================================================

    def generate_annuities(self, contract_id: UUID) -> tuple[AnnuityInfo, ...]:
        """Initial bulk generation for a contract without annuities."""
        with LogContext.bind(contract_id=str(contract_id)):
            with self._transaction("generate_annuities") as session:
                return AnnuityRecalculator(AnnuityStore(session), self._clock).generate(
                    contract_id,
                )

    def recalculate_annuities(self, contract_id: UUID) -> tuple[AnnuityInfo, ...]:
        """Reconcile annuities with the contract's current terms."""
        with LogContext.bind(contract_id=str(contract_id)):
            with self._transaction("recalculate_annuities") as session:
                return AnnuityRecalculator(AnnuityStore(session), self._clock).recalculate(
                    contract_id,
                )

    def mark_annuity_paid(self, contract_id: UUID, year: int) -> AnnuityInfo:
        with LogContext.bind(contract_id=str(contract_id)):
            with self._transaction("mark_annuity_paid") as session:
                return PaymentTracker(AnnuityStore(session), self._clock).mark_paid(
                    contract_id, year,
                )

    def list_annuities(self, contract_id: UUID) -> tuple[AnnuityInfo, ...]:
        with self._transaction("list_annuities") as session:
            return ContractSelector(session).list_annuities(contract_id)

    # =========================================================================
    # Contracts and parties
    # =========================================================================

    def register_party(
        self,
        role: PartyRole,
        name: str,
        surname: str,
        email: str | None = None,
        phone: str | None = None,
    ) -> PartyContact:
        with self._transaction("register_party") as session:
            return ContractService(session, self._clock).register_party(
                role, name, surname, email=email, phone=phone,
            )

    def create_contract(
        self,
        owner_id: UUID,
        tenant_id: UUID,
        start_date: date,
        end_date: date,
        monthly_rent: Decimal,
        flat_rate_regime: bool = False,
        last_annuity_paid_year: int | None = None,
        address: str | None = None,
    ) -> ContractWriteResult:
        """Create a contract; its annuities are generated in the same transaction."""
        with self._transaction("create_contract") as session:
            return ContractService(session, self._clock).create_contract(
                owner_id=owner_id,
                tenant_id=tenant_id,
                start_date=start_date,
                end_date=end_date,
                monthly_rent=monthly_rent,
                flat_rate_regime=flat_rate_regime,
                last_annuity_paid_year=last_annuity_paid_year,
                address=address,
            )

    def update_contract(self, contract_id: UUID, **changes) -> ContractWriteResult:
        """
        Partial update.  Accepts the keyword arguments of
        ``ContractService.update_contract``.
        """
        with LogContext.bind(contract_id=str(contract_id)):
            with self._transaction("update_contract") as session:
                return ContractService(session, self._clock).update_contract(
                    contract_id, **changes,
                )

    def delete_contract(self, contract_id: UUID) -> None:
        with LogContext.bind(contract_id=str(contract_id)):
            with self._transaction("delete_contract") as session:
                ContractService(session, self._clock).delete_contract(contract_id)

    def get_contract(self, contract_id: UUID) -> ContractSnapshot:
        """
        Contract with owner, tenant and annuities.

        Raises:
            ContractNotFoundError: If the contract or one of its parties is missing.
        """
        with self._transaction("get_contract") as session:
            snapshot = ContractSelector(session).get_snapshot(contract_id)
        if snapshot is None:
            raise ContractNotFoundError(str(contract_id))
        return snapshot

    # =========================================================================
    # Read models
    # =========================================================================

    def expiring_in_month(self, year: int, month: int) -> tuple[ExpiringItem, ...]:
        with self._transaction("expiring_in_month") as session:
            return ExpirySelector(session).expiring_in_month(year, month)

    def list_notifications(self, contract_id: UUID) -> tuple[NotificationRecord, ...]:
        with self._transaction("list_notifications") as session:
            return NotificationLedger(session, self._clock).list_for_contract(contract_id)
