"""
Module: lease_kernel.selectors.contract_selector
Responsibility: Read-only access to a contract with its parties and annuity
    timeline, as handed to delivery channels and API callers.
Architecture position: Kernel > Selectors.  Read-only.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select

from lease_kernel.domain.dtos import AnnuityInfo, ContractSnapshot
from lease_kernel.exceptions import ContractNotFoundError
from lease_kernel.models.annuity import AnnuityModel
from lease_kernel.models.contract import ContractModel
from lease_kernel.models.party import PartyModel
from lease_kernel.selectors.base import BaseSelector


class ContractSelector(BaseSelector[ContractModel]):
    """Contract snapshots and annuity listings."""

    def _annuities(self, contract_id: UUID) -> tuple[AnnuityInfo, ...]:
        stmt = (
            select(AnnuityModel)
            .where(AnnuityModel.contract_id == contract_id)
            .order_by(AnnuityModel.year)
        )
        return tuple(a.to_dto() for a in self.session.execute(stmt).scalars())

    def get_snapshot(self, contract_id: UUID) -> ContractSnapshot | None:
        """
        Contract, owner, tenant and annuities in one DTO.

        Returns None when the contract, its owner or its tenant is missing.
        """
        contract = self.session.get(ContractModel, contract_id)
        if contract is None:
            return None
        owner = self.session.get(PartyModel, contract.owner_id)
        tenant = self.session.get(PartyModel, contract.tenant_id)
        if owner is None or tenant is None:
            return None
        return ContractSnapshot(
            contract=contract.to_dto(),
            owner=owner.to_dto(),
            tenant=tenant.to_dto(),
            annuities=self._annuities(contract_id),
        )

    def list_annuities(self, contract_id: UUID) -> tuple[AnnuityInfo, ...]:
        """
        Annuities of a contract ordered by year.

        Raises:
            ContractNotFoundError: If the contract does not exist.
        """
        if self.session.get(ContractModel, contract_id) is None:
            raise ContractNotFoundError(str(contract_id))
        return self._annuities(contract_id)
