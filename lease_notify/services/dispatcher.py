"""
NotificationDispatcher -- daily expiry-reminder run.

Responsibility:
    Scans contracts and unpaid annuities expiring exactly ``horizon_days``
    after today, and notifies each obligation at most once: check the
    ledger, deliver to both channels independently, record the outcome.

Architecture position:
    Notify > Services.  Orchestrates kernel selectors and the
    NotificationLedger; owns its transactions through a session factory.

Invariants enforced:
    - Per obligation the order is check -> deliver -> record.  A ledger row
      is only written after a delivery attempt with at least one success.
    - No database transaction is open while a channel is called.  Each
      obligation's ledger check and ledger write run in their own short
      transactions, so an abort between obligations loses nothing.
    - Per-obligation failures never raise; they are counted as ``failed``
      and retried by the next run.
    - Counters only grow during a run.

Failure modes:
    - DispatchAbortedError when the store becomes unreachable
      (OperationalError / InterfaceError).  It carries the partial stats;
      ledger rows committed before the failure remain.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import tzinfo
from uuid import uuid4
from zoneinfo import ZoneInfo

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from lease_kernel.db.engine import transaction_scope
from lease_kernel.domain.clock import Clock
from lease_kernel.domain.dtos import ContractSnapshot, NotificationKind
from lease_kernel.exceptions import DispatchAbortedError
from lease_kernel.logging_config import LogContext, get_logger
from lease_kernel.selectors.contract_selector import ContractSelector
from lease_kernel.selectors.expiry_selector import ExpirySelector, target_date_for
from lease_kernel.services.notification_ledger import NotificationLedger
from lease_notify.channels.base import ReminderChannel
from lease_notify.domain.types import (
    DispatchRunResult,
    DispatchStats,
    Obligation,
    ObligationOutcome,
    ObligationStatus,
)

logger = get_logger("notify.dispatcher")

_STORE_FAILURES = (OperationalError, InterfaceError)


class NotificationDispatcher:
    """Runs one expiry scan and notifies due obligations."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        channel: ReminderChannel,
        clock: Clock,
        horizon_days: int = 7,
        timezone: tzinfo | str = "UTC",
    ):
        if horizon_days < 0:
            raise ValueError("horizon_days cannot be negative")
        self._session_factory = session_factory
        self._channel = channel
        self._clock = clock
        self._horizon_days = horizon_days
        self._zone = ZoneInfo(timezone) if isinstance(timezone, str) else timezone

    def run(self) -> DispatchRunResult:
        """
        Execute one scan.

        Returns:
            Counters and per-obligation outcomes.

        Raises:
            DispatchAbortedError: If the store became unreachable.
        """
        run_id = uuid4()
        started_at = self._clock.now()
        target = target_date_for(self._clock.today(self._zone), self._horizon_days)
        stats = DispatchStats()
        outcomes: list[ObligationOutcome] = []

        with LogContext.bind(run_id=str(run_id)):
            logger.info(
                "expiry_dispatch_started",
                extra={"target_date": target, "horizon_days": self._horizon_days},
            )
            try:
                for obligation in self._scan(target):
                    outcomes.append(self._process(obligation, stats))
            except _STORE_FAILURES as exc:
                logger.error(
                    "expiry_dispatch_aborted",
                    extra={
                        "target_date": target,
                        "reason": str(exc),
                        **stats.as_dict(),
                    },
                )
                raise DispatchAbortedError(
                    str(target), stats.as_dict(), str(exc),
                ) from exc

            logger.info(
                "expiry_dispatch_completed",
                extra={"target_date": target, **stats.as_dict()},
            )

        return DispatchRunResult(
            run_id=run_id,
            target_date=target,
            processed=stats.processed,
            sent=stats.sent,
            skipped=stats.skipped,
            failed=stats.failed,
            outcomes=tuple(outcomes),
            started_at=started_at,
            completed_at=self._clock.now(),
        )

    def _scan(self, target) -> list[Obligation]:
        with transaction_scope(self._session_factory) as session:
            selector = ExpirySelector(session)
            obligations = [
                Obligation(
                    contract_id=contract.contract_id,
                    kind=NotificationKind.CONTRACT_EXPIRY,
                    expiry_date=contract.end_date,
                )
                for contract in selector.find_due_contracts(target)
            ]
            obligations.extend(
                Obligation(
                    contract_id=annuity.contract_id,
                    kind=NotificationKind.ANNUITY_EXPIRY,
                    expiry_date=annuity.due_date,
                    year=annuity.year,
                )
                for annuity in selector.find_due_annuities(target)
            )
        logger.info(
            "expiry_scan_completed",
            extra={
                "target_date": target,
                "obligation_count": len(obligations),
            },
        )
        return obligations

    def _process(self, obligation: Obligation, stats: DispatchStats) -> ObligationOutcome:
        stats.processed += 1
        with LogContext.bind(contract_id=str(obligation.contract_id)):
            try:
                outcome = self._notify(obligation)
            except _STORE_FAILURES:
                raise
            except Exception as exc:
                logger.exception(
                    "obligation_processing_failed",
                    extra={"obligation": obligation.key},
                )
                outcome = ObligationOutcome(
                    obligation=obligation,
                    status=ObligationStatus.FAILED,
                    error_message=str(exc),
                )
        stats.count(outcome.status)
        return outcome

    def _notify(self, obligation: Obligation) -> ObligationOutcome:
        with transaction_scope(self._session_factory) as session:
            already_sent = NotificationLedger(session, self._clock).was_sent(
                obligation.contract_id, obligation.kind, obligation.year,
            )
            snapshot = None
            if not already_sent:
                snapshot = ContractSelector(session).get_snapshot(obligation.contract_id)

        if already_sent:
            logger.debug("obligation_already_notified", extra={"obligation": obligation.key})
            return ObligationOutcome(obligation=obligation, status=ObligationStatus.SKIPPED)

        if snapshot is None:
            logger.warning("obligation_contract_incomplete", extra={"obligation": obligation.key})
            return ObligationOutcome(
                obligation=obligation,
                status=ObligationStatus.FAILED,
                error_message="contract, owner or tenant not found",
            )

        to_internal = self._deliver(
            self._channel.send_internal_reminder, snapshot, obligation, "internal",
        )
        to_subject = self._deliver(
            self._channel.send_subject_reminder, snapshot, obligation, "subject",
        )

        if not (to_internal or to_subject):
            logger.warning("obligation_delivery_failed", extra={"obligation": obligation.key})
            return ObligationOutcome(obligation=obligation, status=ObligationStatus.FAILED)

        with transaction_scope(self._session_factory) as session:
            recorded = NotificationLedger(session, self._clock).record(
                obligation.contract_id,
                obligation.kind,
                obligation.year,
                sent_to_subject=to_subject,
                sent_to_internal=to_internal,
            )

        logger.info(
            "obligation_notified",
            extra={
                "obligation": obligation.key,
                "sent_to_subject": to_subject,
                "sent_to_internal": to_internal,
                "recorded": recorded,
            },
        )
        return ObligationOutcome(
            obligation=obligation,
            status=ObligationStatus.SENT,
            sent_to_subject=to_subject,
            sent_to_internal=to_internal,
            recorded=recorded,
        )

    def _deliver(
        self,
        send: Callable[..., bool],
        snapshot: ContractSnapshot,
        obligation: Obligation,
        audience: str,
    ) -> bool:
        """Call one channel method; an exception counts as a failed delivery."""
        try:
            return bool(send(snapshot, obligation.kind, obligation.year))
        except Exception:
            logger.exception(
                "reminder_channel_raised",
                extra={"obligation": obligation.key, "audience": audience},
            )
            return False
