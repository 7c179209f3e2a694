"""ORM models. Importing this package registers every table on Base.metadata."""

from lease_kernel.models.annuity import AnnuityModel
from lease_kernel.models.contract import ContractModel
from lease_kernel.models.notification import NotificationModel, year_key_for
from lease_kernel.models.party import PartyModel

__all__ = [
    "AnnuityModel",
    "ContractModel",
    "NotificationModel",
    "PartyModel",
    "year_key_for",
]
