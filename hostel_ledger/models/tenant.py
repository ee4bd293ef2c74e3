"""
Module: hostel_ledger.models.tenant
Responsibility: ORM persistence for hostel residents.
Architecture position: Models.  May import from db/ only.

Invariants enforced:
    - gender is one of Gender; it drives shared-room matching in
      OccupancySelector.candidate_rooms().
    - Tenants persist across billing cycles; a tenant's stay in a given cycle
      is an OccupancyContract, never a tenant field.
"""

from enum import Enum

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hostel_ledger.db.base import RecordBase


class Gender(str, Enum):
    """Resident gender as recorded at registration."""

    MALE = "male"
    FEMALE = "female"


class Tenant(RecordBase):
    """A resident of the hostel."""

    __tablename__ = "tenants"

    __table_args__ = (
        Index("idx_tenant_name", "name"),
        Index("idx_tenant_gender", "gender"),
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)

    gender: Mapped[Gender] = mapped_column(String(10), nullable=False)

    age: Mapped[int | None] = mapped_column(Integer, nullable=True)

    course: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Phone number used for payment receipts
    contact: Mapped[str | None] = mapped_column(String(30), nullable=True)

    next_of_kin: Mapped[str | None] = mapped_column(String(200), nullable=True)

    kin_contact: Mapped[str | None] = mapped_column(String(30), nullable=True)

    def __repr__(self) -> str:
        return f"<Tenant {self.name} ({self.gender})>"
