"""
Module: hostel_ledger.models.billing_cycle
Responsibility: ORM persistence for named billing periods (e.g. a semester)
    that contracts and expenses are scoped to.
Architecture position: Models.  May import from db/ only.

Invariants enforced:
    - start_date <= end_date (enforced by the writer, not the ORM).
    - single_price / double_price are the default agreed prices used when a
      contract is opened without an explicit price.
"""

from datetime import date

from sqlalchemy import BigInteger, Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from hostel_ledger.db.base import RecordBase


class BillingCycle(RecordBase):
    """A named, dated billing period."""

    __tablename__ = "billing_cycles"

    __table_args__ = (Index("idx_cycle_dates", "start_date", "end_date"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Cycle boundaries (inclusive)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    single_price: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    double_price: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    def __repr__(self) -> str:
        return f"<BillingCycle {self.name}: {self.start_date}..{self.end_date}>"

    def contains_date(self, check_date: date) -> bool:
        """Check if a date falls within this cycle."""
        return self.start_date <= check_date <= self.end_date
