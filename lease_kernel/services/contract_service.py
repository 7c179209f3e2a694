"""
ContractService -- contract and party writes that drive the annuity timeline.

Responsibility:
    Creates, updates and deletes contracts (and registers the parties they
    reference), keeping the annuity timeline consistent in the same
    transaction: creation generates annuities, a change of start date, end
    date or fiscal regime recalculates them, deletion cascades to
    annuities and notifications.

Architecture position:
    Kernel > Services -- flush-only; the lifecycle facade owns commit.

Invariants enforced:
    - ``end_date > start_date`` is validated before any row is written.
    - ``last_annuity_paid_year`` never decreases through an update.

Failure modes:
    - InvalidContractDatesError, WatermarkRegressionError (InvalidState).
    - ContractNotFoundError, PartyNotFoundError.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from lease_kernel.domain.clock import Clock
from lease_kernel.domain.dtos import AnnuityInfo, ContractInfo, PartyContact, PartyRole
from lease_kernel.exceptions import (
    ContractNotFoundError,
    InvalidContractDatesError,
    PartyNotFoundError,
    WatermarkRegressionError,
)
from lease_kernel.logging_config import get_logger
from lease_kernel.models.contract import ContractModel
from lease_kernel.models.party import PartyModel
from lease_kernel.services.annuity_recalculator import AnnuityRecalculator
from lease_kernel.services.annuity_store import AnnuityStore
from lease_kernel.services.base import BaseService

logger = get_logger("services.contract_service")

# Sentinel distinguishing "not supplied" from an explicit None.
_UNSET = object()


@dataclass(frozen=True)
class ContractWriteResult:
    """A contract together with its annuity timeline after a write."""

    contract: ContractInfo
    annuities: tuple[AnnuityInfo, ...]
    annuities_recalculated: bool = False


def validate_contract_dates(start_date: date, end_date: date) -> None:
    """Raise InvalidContractDatesError unless ``end_date > start_date``."""
    if end_date <= start_date:
        raise InvalidContractDatesError(str(start_date), str(end_date))


class ContractService(BaseService[ContractModel]):
    """Contract CRUD with annuity maintenance."""

    def __init__(self, session, clock: Clock):
        super().__init__(session)
        self._clock = clock
        self._store = AnnuityStore(session)
        self._recalculator = AnnuityRecalculator(self._store, clock)

    def _get_party(self, party_id: UUID, role: PartyRole) -> PartyModel:
        party = self.session.get(PartyModel, party_id)
        if party is None or party.role != role.value:
            raise PartyNotFoundError(str(party_id))
        return party

    def _get_contract(self, contract_id: UUID) -> ContractModel:
        contract = self.session.get(ContractModel, contract_id, with_for_update=True)
        if contract is None:
            raise ContractNotFoundError(str(contract_id))
        return contract

    def register_party(
        self,
        role: PartyRole,
        name: str,
        surname: str,
        email: str | None = None,
        phone: str | None = None,
    ) -> PartyContact:
        """Create an owner or tenant record."""
        party = PartyModel(
            role=PartyRole(role).value,
            name=name,
            surname=surname,
            email=email,
            phone=phone,
        )
        self.session.add(party)
        self.session.flush()
        logger.info(
            "party_registered",
            extra={"party_id": str(party.id), "role": party.role},
        )
        return party.to_dto()

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
        """
        Create a contract and generate its annuities.

        Raises:
            InvalidContractDatesError: If end_date <= start_date.
            PartyNotFoundError: If the owner or tenant does not exist.
        """
        validate_contract_dates(start_date, end_date)
        self._get_party(owner_id, PartyRole.OWNER)
        self._get_party(tenant_id, PartyRole.TENANT)

        contract = ContractModel(
            owner_id=owner_id,
            tenant_id=tenant_id,
            start_date=start_date,
            end_date=end_date,
            monthly_rent=monthly_rent,
            flat_rate_regime=flat_rate_regime,
            last_annuity_paid_year=last_annuity_paid_year,
            address=address,
        )
        self.session.add(contract)
        self.session.flush()

        annuities = self._recalculator.generate(contract.id)

        logger.info(
            "contract_created",
            extra={
                "contract_id": str(contract.id),
                "start_date": start_date,
                "end_date": end_date,
                "flat_rate_regime": flat_rate_regime,
                "annuity_count": len(annuities),
            },
        )
        return ContractWriteResult(contract=contract.to_dto(), annuities=annuities)

    def update_contract(
        self,
        contract_id: UUID,
        *,
        start_date: date | None = None,
        end_date: date | None = None,
        flat_rate_regime: bool | None = None,
        monthly_rent: Decimal | None = None,
        address=_UNSET,
        last_annuity_paid_year=_UNSET,
    ) -> ContractWriteResult:
        """
        Apply a partial update; recalculate annuities when the schedule changed.

        ``address`` and ``last_annuity_paid_year`` accept an explicit None;
        the watermark may not be lowered, including to None.

        Raises:
            ContractNotFoundError: If the contract does not exist.
            InvalidContractDatesError: If the resulting dates are invalid.
            WatermarkRegressionError: If the watermark would decrease.
        """
        contract = self._get_contract(contract_id)

        new_start = start_date if start_date is not None else contract.start_date
        new_end = end_date if end_date is not None else contract.end_date
        validate_contract_dates(new_start, new_end)

        if last_annuity_paid_year is not _UNSET:
            current = contract.last_annuity_paid_year
            if current is not None and (
                last_annuity_paid_year is None or last_annuity_paid_year < current
            ):
                raise WatermarkRegressionError(
                    str(contract_id), current, last_annuity_paid_year,
                )

        schedule_changed = (
            new_start != contract.start_date
            or new_end != contract.end_date
            or (
                flat_rate_regime is not None
                and flat_rate_regime != contract.flat_rate_regime
            )
        )

        contract.start_date = new_start
        contract.end_date = new_end
        if flat_rate_regime is not None:
            contract.flat_rate_regime = flat_rate_regime
        if monthly_rent is not None:
            contract.monthly_rent = monthly_rent
        if address is not _UNSET:
            contract.address = address
        if last_annuity_paid_year is not _UNSET:
            contract.last_annuity_paid_year = last_annuity_paid_year
        self.session.flush()

        if schedule_changed:
            annuities = self._recalculator.recalculate(contract_id)
        else:
            annuities = self._store.list_annuities(contract_id)

        logger.info(
            "contract_updated",
            extra={
                "contract_id": str(contract_id),
                "annuities_recalculated": schedule_changed,
            },
        )
        return ContractWriteResult(
            contract=contract.to_dto(),
            annuities=annuities,
            annuities_recalculated=schedule_changed,
        )

    def delete_contract(self, contract_id: UUID) -> None:
        """Delete a contract with its annuities and notification ledger."""
        contract = self._get_contract(contract_id)
        self.session.delete(contract)
        self.session.flush()
        logger.info("contract_deleted", extra={"contract_id": str(contract_id)})
