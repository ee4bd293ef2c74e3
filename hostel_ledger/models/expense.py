"""
Module: hostel_ledger.models.expense
Responsibility: ORM persistence for miscellaneous (non-tenant) costs scoped
    to a billing cycle.  Expenses feed cycle-level spend reporting only; they
    never touch tenant balances.
Architecture position: Models.  May import from db/ only.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import BigInteger, Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hostel_ledger.db.base import RecordBase, UUIDString


class Expense(RecordBase):
    """A cost line: quantity x unit_amount."""

    __tablename__ = "expenses"

    __table_args__ = (Index("idx_expense_cycle", "cycle_id"),)

    description: Mapped[str] = mapped_column(String(1000), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    unit_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)

    cycle_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("billing_cycles.id"),
        nullable=False,
    )

    # Operator who recorded the expense
    recorded_by_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    spent_on: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"<Expense {self.description}: {self.quantity} x {self.unit_amount}>"

    @property
    def total(self) -> int:
        return self.quantity * self.unit_amount
