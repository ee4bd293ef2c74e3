"""
Module: hostel_ledger.selectors.tenant_selector
Responsibility: Tenant-centred read side: full profile with contract and
    payment history, cycle-difference and per-level listings, name search,
    and contract lookups (rolling, or the cycle-priced one).
Architecture position: Selectors.  May import from models/, domain/ and
    selectors/base.py.
"""

from collections import defaultdict
from uuid import UUID

from sqlalchemy import select

from hostel_ledger.domain.dtos import (
    ContractInfo,
    ContractStatement,
    PaymentRecord,
    TenantInfo,
    TenantPlacement,
    TenantProfile,
)
from hostel_ledger.domain.ledger import outstanding
from hostel_ledger.models import BillingCycle, OccupancyContract, Payment, Room, Tenant
from hostel_ledger.selectors.base import ACTIVE, BaseSelector, contract_scope


def _tenant_info(tenant: Tenant) -> TenantInfo:
    return TenantInfo(
        tenant_id=tenant.id,
        name=tenant.name,
        gender=tenant.gender,
        age=tenant.age,
        course=tenant.course,
        contact=tenant.contact,
        next_of_kin=tenant.next_of_kin,
        kin_contact=tenant.kin_contact,
    )


def _contract_info(contract: OccupancyContract, cycle: BillingCycle, room: Room) -> ContractInfo:
    if contract.rolling_start is not None and contract.rolling_end is not None:
        window = (contract.rolling_start, contract.rolling_end)
    else:
        window = (cycle.start_date, cycle.end_date)
    return ContractInfo(
        contract_id=contract.id,
        tenant_id=contract.tenant_id,
        cycle_id=cycle.id,
        cycle_name=cycle.name,
        room_id=room.id,
        room_name=room.name,
        room_level=room.level,
        contract_type=contract.contract_type,
        agreed_price=contract.agreed_price,
        rolling_start=contract.rolling_start,
        rolling_end=contract.rolling_end,
        demand_notice_date=contract.demand_notice_date,
        window_start=window[0],
        window_end=window[1],
    )


class TenantSelector(BaseSelector):
    """Selector for tenant profiles and tenant listings."""

    def _live_tenant(self, tenant_id: UUID) -> Tenant | None:
        return self.session.scalars(
            select(Tenant).where(Tenant.id == tenant_id, Tenant.status == ACTIVE)
        ).one_or_none()

    def _contracts_of(self, tenant_id: UUID, *criteria) -> list[ContractInfo]:
        rows = self.session.execute(
            contract_scope(OccupancyContract, BillingCycle, Room)
            .where(OccupancyContract.tenant_id == tenant_id, *criteria)
            .order_by(BillingCycle.start_date, OccupancyContract.rolling_start)
        ).all()
        return [_contract_info(contract, cycle, room) for contract, cycle, room in rows]

    def tenant_profile(self, tenant_id: UUID) -> TenantProfile | None:
        """
        Tenant details plus every visible contract with its payments.

        Contracts are ordered by cycle start date; payments oldest first.

        Returns:
            TenantProfile, or None if the tenant is unknown or deleted.
        """
        tenant = self._live_tenant(tenant_id)
        if tenant is None:
            return None

        contracts = self._contracts_of(tenant_id)
        payments: dict[UUID, list[PaymentRecord]] = defaultdict(list)
        if contracts:
            for payment in self.session.scalars(
                select(Payment)
                .where(
                    Payment.contract_id.in_([c.contract_id for c in contracts]),
                    Payment.status == ACTIVE,
                )
                .order_by(Payment.paid_on, Payment.created_at)
            ):
                payments[payment.contract_id].append(
                    PaymentRecord(
                        payment_id=payment.id,
                        contract_id=payment.contract_id,
                        paid_on=payment.paid_on,
                        amount=payment.amount,
                    )
                )

        statements = tuple(
            ContractStatement(
                contract=info,
                payments=tuple(payments[info.contract_id]),
                owing_amount=outstanding(
                    info.agreed_price, (p.amount for p in payments[info.contract_id])
                ),
            )
            for info in contracts
        )
        return TenantProfile(tenant=_tenant_info(tenant), contracts=statements)

    def tenants_in_cycle_not_in(self, cycle_id: UUID, other_cycle_id: UUID) -> list[TenantInfo]:
        """Tenants with a contract in ``cycle_id`` and none in ``other_cycle_id``."""
        in_other = contract_scope(OccupancyContract.tenant_id).where(
            OccupancyContract.cycle_id == other_cycle_id
        )
        tenants = self.session.scalars(
            contract_scope(Tenant)
            .where(
                OccupancyContract.cycle_id == cycle_id,
                Tenant.id.not_in(in_other),
            )
            .distinct()
            .order_by(Tenant.name)
        ).all()
        return [_tenant_info(t) for t in tenants]

    def rolling_contracts_for(self, tenant_id: UUID) -> list[ContractInfo]:
        """The tenant's monthly contracts (both rolling dates set)."""
        return self._contracts_of(
            tenant_id,
            OccupancyContract.rolling_start.is_not(None),
            OccupancyContract.rolling_end.is_not(None),
        )

    def search_by_name(self, fragment: str) -> list[TenantPlacement]:
        """
        Tenants whose name contains ``fragment`` (any case), one row per
        visible contract, with room and cycle names.

        Tenants without a visible contract are not returned.
        """
        fragment = fragment.strip()
        if not fragment:
            return []
        rows = self.session.execute(
            contract_scope(Tenant, OccupancyContract, BillingCycle, Room)
            .where(Tenant.name.icontains(fragment, autoescape=True))
            .order_by(Tenant.name, BillingCycle.start_date, OccupancyContract.created_at)
        ).all()
        return [
            TenantPlacement(
                tenant=_tenant_info(tenant),
                contract=_contract_info(contract, cycle, room),
            )
            for tenant, contract, cycle, room in rows
        ]

    def tenants_on_level(self, level: int, cycle_id: UUID) -> list[TenantInfo]:
        """Distinct tenants with a contract in ``cycle_id`` on a room of ``level``."""
        tenants = self.session.scalars(
            contract_scope(Tenant)
            .where(OccupancyContract.cycle_id == cycle_id, Room.level == level)
            .distinct()
            .order_by(Tenant.name)
        ).all()
        return [_tenant_info(t) for t in tenants]

    def contract_being_paid_for(self, tenant_id: UUID, cycle_id: UUID) -> ContractInfo | None:
        """
        The tenant's cycle-priced contract in ``cycle_id``: no rolling end.

        Returns:
            The earliest such contract, or None.
        """
        row = self.session.execute(
            contract_scope(OccupancyContract, BillingCycle, Room)
            .where(
                OccupancyContract.tenant_id == tenant_id,
                OccupancyContract.cycle_id == cycle_id,
                OccupancyContract.rolling_end.is_(None),
            )
            .order_by(OccupancyContract.created_at, OccupancyContract.id)
            .limit(1)
        ).first()
        if row is None:
            return None
        contract, cycle, room = row
        return _contract_info(contract, cycle, room)
