"""
Typed Exception Hierarchy for the Lease Kernel.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from LeaseKernelError:

    LeaseKernelError (base)
    |
    +-- NotFoundError
    |   +-- ContractNotFoundError
    |   +-- AnnuityNotFoundError
    |   +-- PartyNotFoundError
    |
    +-- InvalidStateError
    |   +-- AnnuityAlreadyPaidError
    |   +-- AnnuitiesAlreadyGeneratedError
    |   +-- WatermarkRegressionError
    |   +-- InvalidContractDatesError
    |
    +-- InfrastructureError
        +-- StoreUnavailableError
        +-- DispatchAbortedError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                         | When Raised
----------------|------------------------------|-----------------------------------
Not found       | CONTRACT_NOT_FOUND           | Contract ID doesn't exist
                | ANNUITY_NOT_FOUND            | No annuity for (contract, year)
                | PARTY_NOT_FOUND              | Owner/tenant ID doesn't exist
----------------|------------------------------|-----------------------------------
Invalid state   | ANNUITY_ALREADY_PAID         | Re-marking a paid annuity
                | ANNUITIES_ALREADY_GENERATED  | Initial generation on a contract
                |                              | that already has annuities
                | WATERMARK_REGRESSION         | last_annuity_paid_year decreased
                | INVALID_CONTRACT_DATES       | end_date <= start_date
----------------|------------------------------|-----------------------------------
Infrastructure  | STORE_UNAVAILABLE            | Database unreachable
                | DISPATCH_ABORTED             | Expiry run stopped mid-way

Callers map the three categories to 404 / 400 / 500 responses.  Delivery
channel failures are NOT exceptions: channels return booleans so a single
unhealthy channel never interrupts a dispatch run.

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        service.mark_annuity_paid(contract_id, 2027)
    except AnnuityAlreadyPaidError as e:
        return {"error": e.code, "year": e.year}
    except NotFoundError as e:
        return {"error": e.code}

    try:
        result = dispatcher.run()
    except DispatchAbortedError as e:
        log.error("partial run", extra=e.stats)
"""

from typing import Any


class LeaseKernelError(Exception):
    """
    Base exception for all lease kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEASE_KERNEL_ERROR"


# Not found


class NotFoundError(LeaseKernelError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class ContractNotFoundError(NotFoundError):
    """Contract with given ID was not found."""

    code: str = "CONTRACT_NOT_FOUND"

    def __init__(self, contract_id: str):
        self.contract_id = contract_id
        super().__init__(f"Contract not found: {contract_id}")


class AnnuityNotFoundError(NotFoundError):
    """No annuity exists for the contract/year pair."""

    code: str = "ANNUITY_NOT_FOUND"

    def __init__(self, contract_id: str, year: int):
        self.contract_id = contract_id
        self.year = year
        super().__init__(f"Annuity {year} not found for contract {contract_id}")


class PartyNotFoundError(NotFoundError):
    """Owner or tenant with given ID was not found."""

    code: str = "PARTY_NOT_FOUND"

    def __init__(self, party_id: str):
        self.party_id = party_id
        super().__init__(f"Party not found: {party_id}")


# Invalid state


class InvalidStateError(LeaseKernelError):
    """Base exception for operations rejected by the record's current state."""

    code: str = "INVALID_STATE"


class AnnuityAlreadyPaidError(InvalidStateError):
    """
    Annuity is already marked as paid.

    Retries are rejected rather than silently accepted; the contract
    watermark is left untouched.
    """

    code: str = "ANNUITY_ALREADY_PAID"

    def __init__(self, contract_id: str, year: int):
        self.contract_id = contract_id
        self.year = year
        super().__init__(
            f"Annuity {year} for contract {contract_id} is already paid"
        )


class AnnuitiesAlreadyGeneratedError(InvalidStateError):
    """Initial generation requested for a contract that already has annuities."""

    code: str = "ANNUITIES_ALREADY_GENERATED"

    def __init__(self, contract_id: str, existing_count: int):
        self.contract_id = contract_id
        self.existing_count = existing_count
        super().__init__(
            f"Contract {contract_id} already has {existing_count} annuities; "
            f"use recalculation instead"
        )


class WatermarkRegressionError(InvalidStateError):
    """last_annuity_paid_year may only move forward."""

    code: str = "WATERMARK_REGRESSION"

    def __init__(self, contract_id: str, current_year: int, requested_year: int | None):
        self.contract_id = contract_id
        self.current_year = current_year
        self.requested_year = requested_year
        super().__init__(
            f"Cannot lower last_annuity_paid_year of contract {contract_id} "
            f"from {current_year} to {requested_year}"
        )


class InvalidContractDatesError(InvalidStateError):
    """Contract end date must be strictly after its start date."""

    code: str = "INVALID_CONTRACT_DATES"

    def __init__(self, start_date: str, end_date: str):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"End date {end_date} must be after start date {start_date}"
        )


# Infrastructure


class InfrastructureError(LeaseKernelError):
    """Base exception for failures outside the domain (store, network)."""

    code: str = "INFRASTRUCTURE_FAILURE"


class StoreUnavailableError(InfrastructureError):
    """The contracts/annuities/notifications store could not be reached."""

    code: str = "STORE_UNAVAILABLE"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Store unavailable during {operation}: {reason}")


class DispatchAbortedError(InfrastructureError):
    """
    An expiry dispatch run stopped before scanning every obligation.

    Carries the counters accumulated before the failure.  Ledger rows
    committed earlier in the run are kept.
    """

    code: str = "DISPATCH_ABORTED"

    def __init__(self, target_date: str, stats: dict[str, Any], reason: str):
        self.target_date = target_date
        self.stats = stats
        self.reason = reason
        super().__init__(
            f"Expiry dispatch for {target_date} aborted: {reason} "
            f"(partial stats: {stats})"
        )
