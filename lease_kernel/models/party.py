"""
Module: lease_kernel.models.party
Responsibility: ORM persistence for the owners and tenants referenced by
    contracts.  The kernel only reads their contact details to address
    expiry reminders; party management belongs to the surrounding
    application.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/dtos.py only.
"""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from lease_kernel.db.base import TrackedBase
from lease_kernel.domain.dtos import PartyContact, PartyRole


class PartyModel(TrackedBase):
    """Owner or tenant contact record."""

    __tablename__ = "parties"

    __table_args__ = (
        Index("ix_parties_role", "role"),
    )

    role: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    surname: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    def to_dto(self) -> PartyContact:
        return PartyContact(
            party_id=self.id,
            role=PartyRole(self.role),
            name=self.name,
            surname=self.surname,
            email=self.email,
            phone=self.phone,
        )

    def __repr__(self) -> str:
        return f"<Party {self.role} {self.name} {self.surname}>"
