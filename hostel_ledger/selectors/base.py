"""
Module: hostel_ledger.selectors.base
Responsibility: Abstract base class for all read-only query selectors, plus the
    shared row-visibility predicates every ledger query is built from.
Architecture position: Selectors.  May import from db/, models/ and domain/.
    MUST NOT import from services/ or outer layers.  Selectors NEVER create,
    modify, or delete data.

Invariants enforced:
    - Read-only access: selectors accept a Session from the caller but MUST NOT
      call session.add(), session.delete(), session.commit(), or session.flush().
    - DTO return convention: selectors return frozen dataclasses, not ORM
      instances.
    - Logical deletion is applied at every join point.  A contract is visible
      only when it and its tenant, room and cycle are all ACTIVE; queries use
      contract_scope() rather than re-stating the filter.
    - Activity: a visible contract is active on ``today`` when its rolling end
      date is NULL or >= today (see active_on()).

Failure modes:
    - Store errors propagate unchanged.
"""

from abc import ABC
from datetime import date

from sqlalchemy import ColumnElement, Select, and_, func, or_, select
from sqlalchemy.orm import Session

from hostel_ledger.db.base import RecordStatus
from hostel_ledger.domain.clock import Clock, SystemClock
from hostel_ledger.models import BillingCycle, OccupancyContract, Payment, Room, Tenant

ACTIVE = RecordStatus.ACTIVE.value
DELETED = RecordStatus.DELETED.value


def is_live(*models) -> ColumnElement[bool]:
    """Every given model's row is not logically deleted."""
    return and_(*(model.status == ACTIVE for model in models))


def active_on(today: date) -> ColumnElement[bool]:
    """Contract has no rolling end date, or it has not passed yet."""
    return or_(
        OccupancyContract.rolling_end.is_(None),
        OccupancyContract.rolling_end >= today,
    )


def contract_scope(*columns) -> Select:
    """
    SELECT ``columns`` over visible contracts joined to tenant, room and cycle.

    Callers add cycle/room/tenant filters and, where the activity rule
    applies, ``.where(active_on(today))``.
    """
    return (
        select(*columns)
        .select_from(OccupancyContract)
        .join(Tenant, Tenant.id == OccupancyContract.tenant_id)
        .join(Room, Room.id == OccupancyContract.room_id)
        .join(BillingCycle, BillingCycle.id == OccupancyContract.cycle_id)
        .where(is_live(OccupancyContract, Tenant, Room, BillingCycle))
    )


def paid_totals():
    """
    Per-contract aggregate of active payments, as a subquery.

    Columns: contract_id, total_paid, payment_count, last_paid_on.  Outer
    join it so contracts without payments keep a row.
    """
    return (
        select(
            Payment.contract_id.label("contract_id"),
            func.sum(Payment.amount).label("total_paid"),
            func.count(Payment.id).label("payment_count"),
            func.max(Payment.paid_on).label("last_paid_on"),
        )
        .where(Payment.status == ACTIVE)
        .group_by(Payment.contract_id)
        .subquery("paid_totals")
    )


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs.  They MUST NOT mutate any data.

    Guarantees:
        - session is stored as a public attribute for subclass query use.
        - clock decides "today" for the activity rule; it defaults to the
          system clock in UTC.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        """
        Args:
            session: SQLAlchemy session for database operations.
            clock: Source of the current date.
        """
        self.session = session
        self.clock = clock or SystemClock()

    def _today(self) -> date:
        return self.clock.today()

    def _live_cycle(self, cycle_id) -> BillingCycle | None:
        return self.session.scalars(
            select(BillingCycle).where(
                BillingCycle.id == cycle_id, BillingCycle.status == ACTIVE
            )
        ).one_or_none()
