"""
Module: hostel_ledger.models.payment
Responsibility: ORM persistence for money received against a contract.
Architecture position: Models.  May import from db/ and sibling models.

Invariants enforced:
    - amount is a positive integer in the smallest currency unit.
    - Append-only: payments are never edited, only logically deleted.
    - No upper bound against agreed_price; overpayment is legal.
"""

from datetime import date
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import BigInteger, Date, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_ledger.db.base import RecordBase, UUIDString

if TYPE_CHECKING:
    from hostel_ledger.models.contract import OccupancyContract


class Payment(RecordBase):
    """A receipt of money against one occupancy contract."""

    __tablename__ = "payments"

    __table_args__ = (Index("idx_payment_contract_date", "contract_id", "paid_on"),)

    contract_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("occupancy_contracts.id"),
        nullable=False,
    )

    paid_on: Mapped[date] = mapped_column(Date, nullable=False)

    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)

    contract: Mapped["OccupancyContract"] = relationship(back_populates="payments")

    def __repr__(self) -> str:
        return f"<Payment {self.amount} on {self.paid_on}>"
