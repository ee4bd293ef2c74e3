"""
DashboardService tests: every summary figure on one scenario.
"""

from datetime import date
from uuid import uuid4

import pytest

from hostel_ledger.exceptions import BillingCycleNotFoundError
from hostel_ledger.models import ContractType
from hostel_ledger.services.dashboard_service import DashboardService
from hostel_ledger.services.record_service import RecordService


@pytest.fixture
def dashboard(session, deterministic_clock):
    return DashboardService(session, deterministic_clock)


@pytest.fixture
def scenario(
    session,
    deterministic_clock,
    semesters,
    create_room,
    create_tenant,
    create_contract,
    create_payment,
    create_expense,
):
    """
    Three rooms (six slots) in cycle B, seen on 2025-02-01:

    - Amina: double, 800, paid 300
    - Beth: single, 1600, paid 1800 (overpaid)
    - Cleo: rolling 800, expired 2025-01-10, paid 100 (inactive, lapsed)
    - Dina: cycle A only (lapsed)
    - Expenses in B: 2 x 150 active, 1000 deleted
    """
    cycle_a, cycle_b = semesters
    a1, a2, a3 = create_room("A1"), create_room("A2"), create_room("A3")

    amina = create_contract(create_tenant("Amina"), a1, cycle_b, agreed_price=800)
    create_payment(amina, 300, date(2025, 1, 5))

    beth = create_contract(
        create_tenant("Beth"), a2, cycle_b, agreed_price=1600, contract_type=ContractType.SINGLE
    )
    create_payment(beth, 1600, date(2025, 1, 6))
    create_payment(beth, 200, date(2025, 1, 7))

    cleo = create_contract(
        create_tenant("Cleo"),
        a3,
        cycle_b,
        rolling_start=date(2024, 12, 10),
        rolling_end=date(2025, 1, 10),
    )
    create_payment(cleo, 100, date(2024, 12, 10))

    create_contract(create_tenant("Dina"), a3, cycle_a)

    create_expense(cycle_b, unit_amount=150, quantity=2)
    wrong = create_expense(cycle_b, unit_amount=1000)
    create_expense(cycle_a, unit_amount=999)
    RecordService(session, deterministic_clock).retire("expense", wrong.id)
    return cycle_b


class TestSummary:

    def test_all_figures(self, dashboard, scenario):
        summary = dashboard.summary(scenario.id)

        assert summary.cycle_id == scenario.id
        assert summary.active_tenant_count == 2
        assert summary.free_slots == 3
        assert summary.total_payments == 2200
        assert summary.total_outstanding == 1000
        assert summary.total_expenses == 300
        assert summary.lapsed_tenant_count == 2

    def test_expired_rolling_debt_stays_outstanding(
        self, dashboard, semesters, create_room, create_tenant, create_contract, create_payment
    ):
        _, cycle_b = semesters
        expired = create_contract(
            create_tenant("Cleo"),
            create_room("A1"),
            cycle_b,
            agreed_price=1000,
            rolling_start=date(2024, 12, 10),
            rolling_end=date(2025, 1, 10),
        )
        create_payment(expired, 100, date(2024, 12, 10))

        summary = dashboard.summary(cycle_b.id)

        assert summary.active_tenant_count == 0
        assert summary.total_payments == 100
        assert summary.total_outstanding == 900

    def test_deleted_contract_and_payment_excluded(
        self,
        dashboard,
        session,
        deterministic_clock,
        semesters,
        create_room,
        create_tenant,
        create_contract,
        create_payment,
    ):
        _, cycle_b = semesters
        room = create_room("A1")
        kept = create_contract(create_tenant("Amina"), room, cycle_b, agreed_price=800)
        dropped = create_contract(create_tenant("Beth"), room, cycle_b, agreed_price=800)
        create_payment(dropped, 500, date(2025, 1, 5))
        wrong = create_payment(kept, 300, date(2025, 1, 5))
        records = RecordService(session, deterministic_clock)
        records.retire("contract", dropped.id)
        records.retire("payment", wrong.id)

        summary = dashboard.summary(cycle_b.id)

        assert summary.total_payments == 0
        assert summary.total_outstanding == 800

    def test_empty_cycle(self, dashboard, create_cycle, create_room):
        create_room("A1")
        cycle = create_cycle("Summer 2025", date(2025, 5, 1), date(2025, 8, 31))

        summary = dashboard.summary(cycle.id)

        assert summary.active_tenant_count == 0
        assert summary.free_slots == 2
        assert summary.total_payments == 0
        assert summary.total_outstanding == 0
        assert summary.total_expenses == 0

    def test_overbooking_gives_negative_free_slots(
        self, dashboard, semesters, create_room, create_tenant, create_contract
    ):
        _, cycle_b = semesters
        room = create_room("A1")
        for name in ("Amina", "Beth", "Cleo"):
            create_contract(create_tenant(name), room, cycle_b)

        assert dashboard.summary(cycle_b.id).free_slots == -1

    def test_unknown_cycle_raises(self, dashboard):
        with pytest.raises(BillingCycleNotFoundError):
            dashboard.summary(uuid4())
