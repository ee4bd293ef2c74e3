"""
Module: hostel_ledger.models.contract
Responsibility: ORM persistence for occupancy contracts -- the binding of one
    tenant to one room for one billing cycle at an agreed price.  This is the
    central ledger unit: payments are recorded against it and balances,
    occupancy and lapse state are all derived from it.
Architecture position: Models.  May import from db/ and sibling models.

Invariants enforced:
    - contract_type is SINGLE (takes both room slots) or DOUBLE (takes one).
    - rolling_start / rolling_end are both set (rolling/monthly contract) or
      both NULL (cycle-bound contract).  Checked by RecordService.
    - The active window is the rolling dates when present, otherwise the
      owning cycle's dates (see active_window()).

Non-goals:
    - One active contract per (tenant, cycle) is expected but NOT enforced
      here; callers must not open overlapping contracts.
"""

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import BigInteger, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hostel_ledger.db.base import RecordBase, UUIDString

if TYPE_CHECKING:
    from hostel_ledger.models.billing_cycle import BillingCycle
    from hostel_ledger.models.payment import Payment
    from hostel_ledger.models.room import Room
    from hostel_ledger.models.tenant import Tenant


class ContractType(str, Enum):
    """Room-sharing arrangement of a contract."""

    SINGLE = "single"
    DOUBLE = "double"

    @property
    def slots(self) -> int:
        """Occupant slots consumed in a two-slot room."""
        return 2 if self is ContractType.SINGLE else 1


class OccupancyContract(RecordBase):
    """A tenant's stay in a room for one billing cycle."""

    __tablename__ = "occupancy_contracts"

    __table_args__ = (
        Index("idx_contract_cycle_room", "cycle_id", "room_id"),
        Index("idx_contract_tenant", "tenant_id"),
        Index("idx_contract_rolling_end", "rolling_end"),
    )

    cycle_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("billing_cycles.id"),
        nullable=False,
    )

    tenant_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("tenants.id"),
        nullable=False,
    )

    room_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("rooms.id"),
        nullable=False,
    )

    agreed_price: Mapped[int] = mapped_column(BigInteger, nullable=False)

    contract_type: Mapped[ContractType] = mapped_column(String(10), nullable=False)

    # Explicit window for rolling/monthly tenants
    rolling_start: Mapped[date | None] = mapped_column(Date, nullable=True)

    rolling_end: Mapped[date | None] = mapped_column(Date, nullable=True)

    demand_notice_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    cycle: Mapped["BillingCycle"] = relationship()

    tenant: Mapped["Tenant"] = relationship()

    room: Mapped["Room"] = relationship()

    payments: Mapped[list["Payment"]] = relationship(
        back_populates="contract",
        order_by="Payment.paid_on",
    )

    def __repr__(self) -> str:
        return (
            f"<OccupancyContract tenant={self.tenant_id} room={self.room_id} "
            f"cycle={self.cycle_id} {self.contract_type}>"
        )

    @property
    def is_rolling(self) -> bool:
        """Monthly payers carry their own end date."""
        return self.rolling_end is not None

    def active_window(self) -> tuple[date, date]:
        """Rolling dates when present, otherwise the owning cycle's dates."""
        if self.rolling_start is not None and self.rolling_end is not None:
            return self.rolling_start, self.rolling_end
        return self.cycle.start_date, self.cycle.end_date
