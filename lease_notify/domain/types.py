"""
lease_notify.domain.types -- Pure dataclasses for expiry dispatch runs.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections; ``DispatchStats`` is the only mutable type and is
owned by a single run.

Invariants enforced:
    - An obligation ends in exactly one of SKIPPED, SENT, FAILED.
    - ``processed == sent + skipped + failed`` once a run completes.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from enum import Enum
from uuid import UUID

from lease_kernel.domain.dtos import NotificationKind


class ObligationStatus(str, Enum):
    """Per-obligation outcome within a dispatch run."""

    PENDING = "pending"  # Scanned, not yet decided
    SKIPPED = "skipped"  # Already in the ledger
    SENT = "sent"  # At least one channel succeeded; ledger recorded
    FAILED = "failed"  # No channel succeeded; retried next run


@dataclass(frozen=True)
class Obligation:
    """Something a reminder is owed for: a contract end or an annuity due date."""

    contract_id: UUID
    kind: NotificationKind
    expiry_date: date
    year: int | None = None

    @property
    def key(self) -> str:
        suffix = "" if self.year is None else f":{self.year}"
        return f"{self.contract_id}:{self.kind.value}{suffix}"


@dataclass(frozen=True)
class ObligationOutcome:
    """How one obligation was handled."""

    obligation: Obligation
    status: ObligationStatus
    sent_to_subject: bool = False
    sent_to_internal: bool = False
    # False when a concurrent run recorded the obligation first
    recorded: bool = False
    error_message: str | None = None


@dataclass
class DispatchStats:
    """Monotonic counters of a single run."""

    processed: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0

    def count(self, status: ObligationStatus) -> None:
        if status == ObligationStatus.SENT:
            self.sent += 1
        elif status == ObligationStatus.SKIPPED:
            self.skipped += 1
        elif status == ObligationStatus.FAILED:
            self.failed += 1

    def as_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class DispatchRunResult:
    """Result of ``NotificationDispatcher.run()``."""

    run_id: UUID
    target_date: date
    processed: int
    sent: int
    skipped: int
    failed: int
    outcomes: tuple[ObligationOutcome, ...] = ()
    started_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def stats(self) -> dict[str, int]:
        return {
            "processed": self.processed,
            "sent": self.sent,
            "skipped": self.skipped,
            "failed": self.failed,
        }
