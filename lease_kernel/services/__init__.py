"""Kernel services - flush-only writers over a caller-owned session."""

from lease_kernel.services.annuity_recalculator import AnnuityRecalculator
from lease_kernel.services.annuity_store import AnnuityStore
from lease_kernel.services.base import BaseService
from lease_kernel.services.contract_service import (
    ContractService,
    ContractWriteResult,
    validate_contract_dates,
)
from lease_kernel.services.notification_ledger import NotificationLedger
from lease_kernel.services.payment_tracker import PaymentTracker

__all__ = [
    "AnnuityRecalculator",
    "AnnuityStore",
    "BaseService",
    "ContractService",
    "ContractWriteResult",
    "NotificationLedger",
    "PaymentTracker",
    "validate_contract_dates",
]
