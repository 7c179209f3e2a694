"""Read-only selectors returning DTOs."""

from lease_kernel.selectors.base import BaseSelector
from lease_kernel.selectors.contract_selector import ContractSelector
from lease_kernel.selectors.expiry_selector import ExpirySelector, target_date_for

__all__ = [
    "BaseSelector",
    "ContractSelector",
    "ExpirySelector",
    "target_date_for",
]
