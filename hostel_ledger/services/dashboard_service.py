"""
DashboardService -- cycle-scoped summary figures.

Responsibility:
    Produces the fixed-shape DashboardSummary for one billing cycle:
    active tenants, free slots, payments, outstanding balance, expenses
    and lapsed tenants.

Architecture position:
    Services -- composes selectors.base predicates, the occupancy rules
    and PeriodTransitionService.

Invariants enforced:
    - All figures come from one session.  The command runner calls
      summary() inside snapshot_scope(), so on PostgreSQL every sub-query
      reads the same REPEATABLE READ snapshot.
    - total_payments and total_outstanding cover every visible contract in
      the cycle, active or not; total_outstanding is not clamped.
    - free_slots is negative when rooms are overbooked.

Failure modes:
    - BillingCycleNotFoundError: cycle unknown or deleted.
"""

from uuid import UUID

from sqlalchemy import func, select

from hostel_ledger.domain.dtos import DashboardSummary
from hostel_ledger.domain.occupancy import free_slots
from hostel_ledger.exceptions import BillingCycleNotFoundError
from hostel_ledger.logging_config import get_logger
from hostel_ledger.models import BillingCycle, ContractType, Expense, OccupancyContract, Payment, Room
from hostel_ledger.selectors.base import ACTIVE, active_on, contract_scope
from hostel_ledger.services.base import BaseService
from hostel_ledger.services.period_transition_service import PeriodTransitionService

logger = get_logger("services.dashboard")


class DashboardService(BaseService):
    """Read-only service; never adds or flushes."""

    def summary(self, cycle_id: UUID) -> DashboardSummary:
        """
        Summary figures for one billing cycle.

        Raises:
            BillingCycleNotFoundError: cycle unknown or deleted.
        """
        cycle = self.session.scalars(
            select(BillingCycle).where(
                BillingCycle.id == cycle_id, BillingCycle.status == ACTIVE
            )
        ).one_or_none()
        if cycle is None:
            raise BillingCycleNotFoundError(str(cycle_id))

        today = self.clock.today()
        in_cycle = OccupancyContract.cycle_id == cycle.id
        active = self.session.execute(
            contract_scope(OccupancyContract.tenant_id, OccupancyContract.contract_type)
            .where(in_cycle, active_on(today))
        ).all()

        room_count = self.session.scalar(
            select(func.count(Room.id)).where(Room.status == ACTIVE)
        )

        # Both money sums run over every visible contract in the cycle,
        # expired rolling ones included
        total_agreed = self.session.scalar(
            contract_scope(func.coalesce(func.sum(OccupancyContract.agreed_price), 0))
            .where(in_cycle)
        )
        total_payments = self.session.scalar(
            contract_scope(func.coalesce(func.sum(Payment.amount), 0))
            .join(Payment, Payment.contract_id == OccupancyContract.id)
            .where(in_cycle, Payment.status == ACTIVE)
        )

        total_expenses = self.session.scalar(
            select(
                func.coalesce(func.sum(Expense.quantity * Expense.unit_amount), 0)
            ).where(Expense.cycle_id == cycle.id, Expense.status == ACTIVE)
        )

        lapsed = PeriodTransitionService(self.session, self.clock).lapsed_tenants(cycle.id)

        summary = DashboardSummary(
            cycle_id=cycle.id,
            active_tenant_count=len({row.tenant_id for row in active}),
            free_slots=free_slots(
                int(room_count or 0),
                (ContractType(row.contract_type).slots for row in active),
            ),
            total_payments=int(total_payments),
            total_outstanding=int(total_agreed) - int(total_payments),
            total_expenses=int(total_expenses),
            lapsed_tenant_count=len(lapsed),
        )

        logger.debug(
            "dashboard_summary_computed",
            extra={
                "cycle_id": str(cycle.id),
                "active_tenant_count": summary.active_tenant_count,
                "free_slots": summary.free_slots,
            },
        )
        return summary
