"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable result types returned by selectors and services:
    balances, payment ledgers, occupancy, lapse classification, rollover and
    dashboard results, tenant profiles and notification outcomes.

Architecture position:
    Domain -- pure, zero I/O.  Free of ORM dependencies; selectors convert
    rows into these types at the boundary.

Invariants enforced:
    - Money fields are ``int`` (smallest currency unit), never float.
    - OccupancyLevel.OVERBOOKED is a first-class member: consumers that
      switch on the level must handle it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum, IntEnum
from uuid import UUID


class OccupancyLevel(IntEnum):
    """Fill level of a two-slot room, as a percentage.

    OVERBOOKED (101) means more than two active contracts were recorded
    for one room in one cycle.  It signals an upstream write defect and is
    reported, never clamped.
    """

    EMPTY = 0
    HALF = 50
    FULL = 100
    OVERBOOKED = 101

    @property
    def is_anomaly(self) -> bool:
        return self is OccupancyLevel.OVERBOOKED


class LapseReason(str, Enum):
    """Why a tenant is classified as lapsed for a reference cycle."""

    # Seen in an earlier cycle, absent from the reference cycle
    NOT_RENEWED = "not_renewed"
    # Rolling contract in the reference cycle whose end date has passed
    ROLLING_EXPIRED = "rolling_expired"


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaymentRecord:
    """One active payment on a contract."""

    payment_id: UUID
    contract_id: UUID
    paid_on: date
    amount: int


@dataclass(frozen=True)
class ContractBalance:
    """Outstanding balance of one contract.

    owing_amount may be negative (overpayment); that is a legal state.
    """

    contract_id: UUID
    tenant_id: UUID
    cycle_id: UUID
    agreed_price: int
    total_paid: int
    payment_count: int

    @property
    def owing_amount(self) -> int:
        return self.agreed_price - self.total_paid


@dataclass(frozen=True)
class PaymentLedgerRow:
    """A payment with the contract's balance right after it was received."""

    payment_id: UUID
    contract_id: UUID
    paid_on: date
    amount: int
    tenant_id: UUID
    tenant_name: str
    contact: str | None
    room_name: str
    cycle_name: str
    owing_amount: int


@dataclass(frozen=True)
class TenantBalance:
    """A tenant's contract in a cycle with its current balance."""

    tenant_id: UUID
    tenant_name: str
    gender: str
    contract_id: UUID
    room_name: str
    agreed_price: int
    owing_amount: int


@dataclass(frozen=True)
class OwingTenant:
    """A tenant who still owes money on a contract in the cycle."""

    tenant_id: UUID
    tenant_name: str
    contact: str | None
    contract_id: UUID
    room_name: str
    agreed_price: int
    owing_amount: int
    last_payment_date: date | None
    demand_notice_date: date | None
    pays_monthly: bool


# ---------------------------------------------------------------------------
# Occupancy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RoomOccupancy:
    """Fill state of one room in one cycle."""

    room_id: UUID
    room_name: str
    level: int
    occupant_count: int
    occupancy: OccupancyLevel

    @property
    def rate(self) -> int:
        return int(self.occupancy)


@dataclass(frozen=True)
class CandidateRoom:
    """A room that can take a new tenant of the requested gender."""

    room_id: UUID
    room_name: str
    level: int
    occupant_count: int


# ---------------------------------------------------------------------------
# Period transitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LapsedTenant:
    """A tenant without a current stay, with the contract that lapsed."""

    tenant_id: UUID
    tenant_name: str
    contact: str | None
    contract_id: UUID
    room_name: str
    last_cycle_name: str
    owing_amount: int
    pays_monthly: bool
    reason: LapseReason


@dataclass(frozen=True)
class TenantClassification:
    """Partition of tenants with contract history for one reference cycle."""

    cycle_id: UUID
    active: frozenset[UUID]
    lapsed: frozenset[UUID]

    @property
    def all_tenants(self) -> frozenset[UUID]:
        return self.active | self.lapsed


@dataclass(frozen=True)
class RolloverResult:
    """Outcome of moving rolling contracts into a target cycle."""

    target_cycle_id: UUID
    as_of: date
    affected_count: int
    contract_ids: tuple[UUID, ...]


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DashboardSummary:
    """Fixed-shape snapshot of one billing cycle."""

    cycle_id: UUID
    active_tenant_count: int
    free_slots: int
    total_payments: int
    total_outstanding: int
    total_expenses: int
    lapsed_tenant_count: int


# ---------------------------------------------------------------------------
# Tenant read side and records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TenantInfo:
    tenant_id: UUID
    name: str
    gender: str
    age: int | None
    course: str | None
    contact: str | None
    next_of_kin: str | None
    kin_contact: str | None


@dataclass(frozen=True)
class ContractInfo:
    """A contract with its room, cycle and resolved active window."""

    contract_id: UUID
    tenant_id: UUID
    cycle_id: UUID
    cycle_name: str
    room_id: UUID
    room_name: str
    room_level: int
    contract_type: str
    agreed_price: int
    rolling_start: date | None
    rolling_end: date | None
    demand_notice_date: date | None
    window_start: date
    window_end: date

    @property
    def pays_monthly(self) -> bool:
        return self.rolling_end is not None


@dataclass(frozen=True)
class TenantPlacement:
    """One name-search hit: the tenant and one of their contracts."""

    tenant: TenantInfo
    contract: ContractInfo


@dataclass(frozen=True)
class ContractStatement:
    contract: ContractInfo
    payments: tuple[PaymentRecord, ...]
    owing_amount: int


@dataclass(frozen=True)
class TenantProfile:
    tenant: TenantInfo
    contracts: tuple[ContractStatement, ...]


@dataclass(frozen=True)
class RetireResult:
    """Outcome of a logical deletion; affected_count is 0 or 1."""

    kind: str
    record_id: UUID
    affected_count: int


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Receipt:
    payment_id: UUID
    tenant_name: str
    recipient: str | None
    message: str


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one receipt delivery attempt.  Failures are data."""

    payment_id: UUID
    delivered: bool
    detail: str
