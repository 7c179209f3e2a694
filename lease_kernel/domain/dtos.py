"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures that flow between the annuity
    generator, the kernel services, the selectors and the expiry dispatcher:
    ContractInfo (contract terms), AnnuityDraft (generator output),
    AnnuityInfo / NotificationRecord (persistence boundary), PartyContact and
    ContractSnapshot (what delivery channels receive), ExpiringItem
    (monthly expiry listing).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ORM models convert themselves with ``to_dto()``; nothing here imports
    SQLAlchemy.

Invariants enforced:
    - AnnuityDraft / AnnuityInfo: ``is_paid == (paid_at is not None)``.
    - NotificationRecord: ``year`` is None iff kind is CONTRACT_EXPIRY.

Failure modes:
    - ValueError on construction when an invariant above is violated.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class NotificationKind(str, Enum):
    """The two obligation kinds a reminder can be sent for."""

    CONTRACT_EXPIRY = "contract_expiry"  # Natural end of the contract
    ANNUITY_EXPIRY = "annuity_expiry"  # Intermediate-year annuity due date


class PartyRole(str, Enum):
    """Role a party plays on a contract."""

    OWNER = "owner"
    TENANT = "tenant"


def check_kind_year(kind: NotificationKind, year: int | None) -> None:
    """Raise ValueError when ``year`` does not match the notification kind."""
    if kind == NotificationKind.CONTRACT_EXPIRY and year is not None:
        raise ValueError("contract_expiry notifications carry no year")
    if kind == NotificationKind.ANNUITY_EXPIRY and year is None:
        raise ValueError("annuity_expiry notifications require a year")


@dataclass(frozen=True)
class ContractInfo:
    """Immutable view of a contract's terms."""

    contract_id: UUID
    owner_id: UUID
    tenant_id: UUID
    start_date: date
    end_date: date
    flat_rate_regime: bool
    last_annuity_paid_year: int | None = None
    monthly_rent: Decimal = Decimal("0")
    address: str | None = None


@dataclass(frozen=True)
class AnnuityDraft:
    """One annuity as produced by the generator, before persistence."""

    year: int
    due_date: date
    is_paid: bool = False
    paid_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.is_paid != (self.paid_at is not None):
            raise ValueError(
                f"Annuity {self.year}: is_paid must match presence of paid_at"
            )


@dataclass(frozen=True)
class AnnuityInfo:
    """Persisted annuity."""

    annuity_id: UUID
    contract_id: UUID
    year: int
    due_date: date
    is_paid: bool
    paid_at: datetime | None = None


@dataclass(frozen=True)
class NotificationRecord:
    """Ledger row proving an obligation has been notified."""

    notification_id: UUID
    contract_id: UUID
    kind: NotificationKind
    year: int | None
    sent_to_subject: bool
    sent_to_internal: bool
    sent_at: datetime

    def __post_init__(self) -> None:
        check_kind_year(self.kind, self.year)


@dataclass(frozen=True)
class PartyContact:
    """Owner or tenant contact details."""

    party_id: UUID
    role: PartyRole
    name: str
    surname: str
    email: str | None = None
    phone: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}"


@dataclass(frozen=True)
class ContractSnapshot:
    """Contract with its parties and annuity timeline.

    This is what delivery channels receive; it is read in a short
    transaction that is closed before any channel is called.
    """

    contract: ContractInfo
    owner: PartyContact
    tenant: PartyContact
    annuities: tuple[AnnuityInfo, ...] = ()

    @property
    def contract_id(self) -> UUID:
        return self.contract.contract_id

    def expiry_date_for(self, kind: NotificationKind, year: int | None = None) -> date | None:
        """Date the reminder is about: end date, or the annuity's due date."""
        if kind == NotificationKind.CONTRACT_EXPIRY:
            return self.contract.end_date
        for annuity in self.annuities:
            if annuity.year == year:
                return annuity.due_date
        return None


@dataclass(frozen=True)
class ExpiringItem:
    """One entry of the monthly expiry listing."""

    contract_id: UUID
    kind: NotificationKind
    expiry_date: date
    annuity_year: int | None = None
