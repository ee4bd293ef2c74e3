"""
Module: hostel_ledger.selectors.ledger_selector
Responsibility: Read-only balance and payment-history queries.  Balances are
    derived from active payments at query time; there are no stored balances.
Architecture position: Selectors.  May import from models/, domain/ and
    selectors/base.py.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - owing = agreed_price - sum(active payments).  Contracts without payments
      owe their full agreed price.  Overpayment is reported as a negative
      balance, never clamped.
    - Running balances accumulate oldest-first and are returned newest-first
      (see domain.ledger.running_balances).
    - Owing lists are ordered by owing amount descending, then tenant name.

Failure modes:
    - Unknown or deleted contracts yield None / empty lists, never an error.
"""

from uuid import UUID

from sqlalchemy import func

from hostel_ledger.domain.dtos import (
    ContractBalance,
    OwingTenant,
    PaymentLedgerRow,
    PaymentRecord,
    TenantBalance,
)
from hostel_ledger.domain.ledger import LedgerEntry, running_balances, sort_by_owing
from hostel_ledger.models import BillingCycle, OccupancyContract, Payment, Room, Tenant
from hostel_ledger.selectors.base import (
    ACTIVE,
    BaseSelector,
    active_on,
    contract_scope,
    paid_totals,
)


class LedgerSelector(BaseSelector):
    """
    Selector for contract balances and payment ledgers.

    Contract:
        Every query goes through contract_scope(), so deleted tenants, rooms,
        cycles and contracts are excluded at each join.  Payments are
        filtered by their own status as well.

    Non-goals:
        - No pagination; a cycle holds at most a few hundred contracts.
    """

    def outstanding_balance(self, contract_id: UUID) -> ContractBalance | None:
        """
        Balance of one contract.

        Returns:
            ContractBalance, or None if the contract is unknown or deleted.
        """
        paid = paid_totals()
        row = self.session.execute(
            contract_scope(
                OccupancyContract.id,
                OccupancyContract.tenant_id,
                OccupancyContract.cycle_id,
                OccupancyContract.agreed_price,
                paid.c.total_paid,
                paid.c.payment_count,
            )
            .outerjoin(paid, paid.c.contract_id == OccupancyContract.id)
            .where(OccupancyContract.id == contract_id)
        ).one_or_none()

        if row is None:
            return None

        return ContractBalance(
            contract_id=row.id,
            tenant_id=row.tenant_id,
            cycle_id=row.cycle_id,
            agreed_price=int(row.agreed_price),
            total_paid=int(row.total_paid or 0),
            payment_count=int(row.payment_count or 0),
        )

    def payment_history(self, contract_id: UUID) -> list[PaymentRecord]:
        """Active payments on a contract, newest first."""
        rows = self.session.execute(
            contract_scope(Payment.id, Payment.contract_id, Payment.paid_on, Payment.amount)
            .join(Payment, Payment.contract_id == OccupancyContract.id)
            .where(
                OccupancyContract.id == contract_id,
                Payment.status == ACTIVE,
            )
            .order_by(Payment.paid_on.desc(), Payment.created_at.desc())
        ).all()

        return [
            PaymentRecord(
                payment_id=row.id,
                contract_id=row.contract_id,
                paid_on=row.paid_on,
                amount=int(row.amount),
            )
            for row in rows
        ]

    def last_payment(self, contract_id: UUID) -> PaymentRecord | None:
        history = self.payment_history(contract_id)
        return history[0] if history else None

    def payments_with_running_balance(self, cycle_id: UUID) -> list[PaymentLedgerRow]:
        """
        Every active payment in a cycle with the balance left after it.

        The running balance is per contract.  Rows come back newest
        paid_on first; the first row of each contract carries its current
        balance.
        """
        rows = self.session.execute(
            contract_scope(
                Payment.id.label("payment_id"),
                Payment.contract_id,
                Payment.paid_on,
                Payment.amount,
                OccupancyContract.agreed_price,
                Tenant.id.label("tenant_id"),
                Tenant.name.label("tenant_name"),
                Tenant.contact,
                Room.name.label("room_name"),
                BillingCycle.name.label("cycle_name"),
            )
            .join(Payment, Payment.contract_id == OccupancyContract.id)
            .where(
                OccupancyContract.cycle_id == cycle_id,
                Payment.status == ACTIVE,
            )
            .order_by(Payment.paid_on, Payment.created_at, Payment.id)
        ).all()

        by_payment = {row.payment_id: row for row in rows}
        entries = [
            LedgerEntry(
                payment_id=row.payment_id,
                contract_id=row.contract_id,
                agreed_price=int(row.agreed_price),
                paid_on=row.paid_on,
                amount=int(row.amount),
            )
            for row in rows
        ]

        result = []
        for entry, owing in running_balances(entries):
            row = by_payment[entry.payment_id]
            result.append(
                PaymentLedgerRow(
                    payment_id=entry.payment_id,
                    contract_id=entry.contract_id,
                    paid_on=entry.paid_on,
                    amount=entry.amount,
                    tenant_id=row.tenant_id,
                    tenant_name=row.tenant_name,
                    contact=row.contact,
                    room_name=row.room_name,
                    cycle_name=row.cycle_name,
                    owing_amount=owing,
                )
            )
        return result

    def tenants_with_owing_balance(self, cycle_id: UUID) -> list[OwingTenant]:
        """
        One row per contract in the cycle that still owes money.

        Contracts with no payments are included at their full agreed price.
        """
        paid = paid_totals()
        owing = OccupancyContract.agreed_price - func.coalesce(paid.c.total_paid, 0)
        rows = self.session.execute(
            contract_scope(
                OccupancyContract.id.label("contract_id"),
                OccupancyContract.agreed_price,
                OccupancyContract.rolling_end,
                OccupancyContract.demand_notice_date,
                Tenant.id.label("tenant_id"),
                Tenant.name.label("tenant_name"),
                Tenant.contact,
                Room.name.label("room_name"),
                paid.c.total_paid,
                paid.c.last_paid_on,
            )
            .outerjoin(paid, paid.c.contract_id == OccupancyContract.id)
            .where(OccupancyContract.cycle_id == cycle_id, owing > 0)
        ).all()

        return sort_by_owing(
            OwingTenant(
                tenant_id=row.tenant_id,
                tenant_name=row.tenant_name,
                contact=row.contact,
                contract_id=row.contract_id,
                room_name=row.room_name,
                agreed_price=int(row.agreed_price),
                owing_amount=int(row.agreed_price) - int(row.total_paid or 0),
                last_payment_date=row.last_paid_on,
                demand_notice_date=row.demand_notice_date,
                pays_monthly=row.rolling_end is not None,
            )
            for row in rows
        )

    def tenant_balances(self, cycle_id: UUID) -> list[TenantBalance]:
        """Every active contract in the cycle with its balance."""
        return self._balances(OccupancyContract.cycle_id == cycle_id)

    def room_balances(self, room_id: UUID, cycle_id: UUID) -> list[TenantBalance]:
        """The active occupants of one room with their balances."""
        return self._balances(
            OccupancyContract.cycle_id == cycle_id,
            OccupancyContract.room_id == room_id,
        )

    def _balances(self, *criteria) -> list[TenantBalance]:
        paid = paid_totals()
        rows = self.session.execute(
            contract_scope(
                OccupancyContract.id.label("contract_id"),
                OccupancyContract.agreed_price,
                Tenant.id.label("tenant_id"),
                Tenant.name.label("tenant_name"),
                Tenant.gender,
                Room.name.label("room_name"),
                paid.c.total_paid,
            )
            .outerjoin(paid, paid.c.contract_id == OccupancyContract.id)
            .where(active_on(self._today()), *criteria)
        ).all()

        return sort_by_owing(
            TenantBalance(
                tenant_id=row.tenant_id,
                tenant_name=row.tenant_name,
                gender=row.gender,
                contract_id=row.contract_id,
                room_name=row.room_name,
                agreed_price=int(row.agreed_price),
                owing_amount=int(row.agreed_price) - int(row.total_paid or 0),
            )
            for row in rows
        )
