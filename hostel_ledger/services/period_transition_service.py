"""
PeriodTransitionService -- lapsed-tenant classification and rollover.

Responsibility:
    Classifies tenants as active or lapsed relative to a reference billing
    cycle, and carries rolling (monthly) contracts forward into a new cycle.

Architecture position:
    Services -- imperative shell.  Loads contract history through the
    shared predicates in selectors.base and applies the pure rules in
    domain.lapse.

Invariants enforced:
    - The lapsed set never overlaps the active set: a tenant with an
      active contract in the reference cycle is never listed as lapsed.
    - classify_tenants() partitions every tenant with history up to the
      reference cycle; nobody is omitted.
    - Rollover touches only non-deleted contracts with a non-null rolling
      end on or after ``as_of``, and only their cycle_id.  Tenant, room
      and price are unchanged.
    - Flush-only: never commits.

Failure modes:
    - BillingCycleNotFoundError: rollover target unknown or deleted.
    - Queries on an unknown cycle or tenant return False / empty results.

Concurrency:
    Rollover locks the rows it moves with ``SELECT ... FOR UPDATE`` (no-op
    on SQLite) and then issues one bulk UPDATE.  Two concurrent rollovers
    to different targets serialize on the row locks; the later one wins.
"""

from collections import defaultdict
from datetime import date
from uuid import UUID

from sqlalchemy import select, update

from hostel_ledger.domain.dtos import (
    LapsedTenant,
    RolloverResult,
    TenantClassification,
)
from hostel_ledger.domain.lapse import Stay, has_active_stay, lapse_reason, lapsed_stay
from hostel_ledger.domain.ledger import sort_by_owing
from hostel_ledger.exceptions import BillingCycleNotFoundError
from hostel_ledger.logging_config import get_logger
from hostel_ledger.models import BillingCycle, OccupancyContract, Room, Tenant
from hostel_ledger.selectors.base import ACTIVE, contract_scope, is_live, paid_totals
from hostel_ledger.services.base import BaseService

logger = get_logger("services.period_transition")


class PeriodTransitionService(BaseService):
    """
    Service for tenant lifecycle transitions between billing cycles.

    Contract:
        ``today`` for the lapse rule comes from the injected clock.
        Rollover takes an explicit ``as_of`` date and falls back to today.
    """

    def _live_cycle(self, cycle_id: UUID) -> BillingCycle | None:
        return self.session.scalars(
            select(BillingCycle).where(
                BillingCycle.id == cycle_id, BillingCycle.status == ACTIVE
            )
        ).one_or_none()

    def _history(self, reference: BillingCycle, *criteria):
        """Visible contracts in the reference cycle or any cycle starting before it."""
        paid = paid_totals()
        return self.session.execute(
            contract_scope(
                OccupancyContract.id.label("contract_id"),
                OccupancyContract.tenant_id,
                OccupancyContract.cycle_id,
                OccupancyContract.agreed_price,
                OccupancyContract.rolling_end,
                Tenant.name.label("tenant_name"),
                Tenant.contact,
                Room.name.label("room_name"),
                BillingCycle.name.label("cycle_name"),
                BillingCycle.start_date.label("cycle_start"),
                paid.c.total_paid,
            )
            .outerjoin(paid, paid.c.contract_id == OccupancyContract.id)
            .where(
                (OccupancyContract.cycle_id == reference.id)
                | (BillingCycle.start_date < reference.start_date),
                *criteria,
            )
            .order_by(BillingCycle.start_date, OccupancyContract.created_at)
        ).all()

    def _stays_by_tenant(self, reference: BillingCycle, rows) -> dict[UUID, list[Stay]]:
        stays: dict[UUID, list[Stay]] = defaultdict(list)
        for row in rows:
            stays[row.tenant_id].append(
                Stay(
                    contract_id=row.contract_id,
                    in_reference=row.cycle_id == reference.id,
                    cycle_start=row.cycle_start,
                    rolling_end=row.rolling_end,
                )
            )
        return stays

    def is_lapsed(self, tenant_id: UUID, reference_cycle_id: UUID) -> bool:
        """
        Whether the tenant satisfies the lapse rule for the reference cycle.

        Returns:
            False if the tenant or cycle is unknown or deleted.
        """
        reference = self._live_cycle(reference_cycle_id)
        if reference is None:
            return False
        rows = self._history(reference, OccupancyContract.tenant_id == tenant_id)
        stays = self._stays_by_tenant(reference, rows).get(tenant_id, [])
        return lapse_reason(stays, self.clock.today()) is not None

    def lapsed_tenants(self, reference_cycle_id: UUID) -> list[LapsedTenant]:
        """
        Tenants who lapsed relative to the reference cycle.

        Each row carries the contract that lapsed and its outstanding
        balance.  Ordered by owing amount descending, then tenant name.
        """
        reference = self._live_cycle(reference_cycle_id)
        if reference is None:
            return []

        today = self.clock.today()
        rows = self._history(reference)
        by_contract = {row.contract_id: row for row in rows}

        lapsed = []
        for tenant_id, stays in self._stays_by_tenant(reference, rows).items():
            if has_active_stay(stays, today):
                continue
            reason = lapse_reason(stays, today)
            if reason is None:
                continue
            row = by_contract[lapsed_stay(stays, reason).contract_id]
            lapsed.append(
                LapsedTenant(
                    tenant_id=tenant_id,
                    tenant_name=row.tenant_name,
                    contact=row.contact,
                    contract_id=row.contract_id,
                    room_name=row.room_name,
                    last_cycle_name=row.cycle_name,
                    owing_amount=int(row.agreed_price) - int(row.total_paid or 0),
                    pays_monthly=row.rolling_end is not None,
                    reason=reason,
                )
            )

        return sort_by_owing(lapsed)

    def classify_tenants(self, reference_cycle_id: UUID) -> TenantClassification:
        """
        Partition tenants with contract history into active and lapsed.

        History covers contracts in the reference cycle and in cycles that
        start before it.  An unknown cycle yields two empty sets.
        """
        reference = self._live_cycle(reference_cycle_id)
        if reference is None:
            return TenantClassification(
                cycle_id=reference_cycle_id, active=frozenset(), lapsed=frozenset()
            )

        today = self.clock.today()
        stays = self._stays_by_tenant(reference, self._history(reference))
        active = frozenset(t for t, s in stays.items() if has_active_stay(s, today))
        return TenantClassification(
            cycle_id=reference.id,
            active=active,
            lapsed=frozenset(stays) - active,
        )

    def rollover(self, target_cycle_id: UUID, as_of: date | None = None) -> RolloverResult:
        """
        Move every current rolling contract into the target cycle.

        Args:
            target_cycle_id: Cycle the contracts are reassigned to.
            as_of: Contracts whose rolling end is on or after this date
                move.  Defaults to today.

        Returns:
            RolloverResult with the moved contract ids.  A zero count is a
            valid outcome and is reported, not raised.

        Raises:
            BillingCycleNotFoundError: target cycle unknown or deleted.
        """
        target = self._live_cycle(target_cycle_id)
        if target is None:
            raise BillingCycleNotFoundError(str(target_cycle_id))

        as_of = as_of or self.clock.today()

        contract_ids = list(
            self.session.scalars(
                select(OccupancyContract.id)
                .where(
                    is_live(OccupancyContract),
                    OccupancyContract.rolling_end.is_not(None),
                    OccupancyContract.rolling_end >= as_of,
                )
                .order_by(OccupancyContract.id)
                .with_for_update()
            )
        )

        affected = 0
        if contract_ids:
            result = self.session.execute(
                update(OccupancyContract)
                .where(OccupancyContract.id.in_(contract_ids))
                .values(cycle_id=target.id)
                .execution_options(synchronize_session=False)
            )
            affected = result.rowcount
            moved = set(contract_ids)
            for obj in list(self.session.identity_map.values()):
                if isinstance(obj, OccupancyContract) and obj.id in moved:
                    self.session.expire(obj)

        logger.info(
            "rollover_completed",
            extra={
                "target_cycle_id": str(target.id),
                "as_of": as_of,
                "affected_count": affected,
            },
        )

        return RolloverResult(
            target_cycle_id=target.id,
            as_of=as_of,
            affected_count=affected,
            contract_ids=tuple(contract_ids),
        )
