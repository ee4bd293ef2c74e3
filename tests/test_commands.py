"""
Command table tests: registration, argument coercion and dispatch.

Commands run against the per-test session by handing run_command scopes
that yield it instead of opening their own transactions.
"""

from contextlib import contextmanager
from datetime import date
from uuid import UUID, uuid4

import pytest

from hostel_ledger.commands import (
    Command,
    CommandParam,
    CommandRegistry,
    build_default_registry,
    coerce_value,
    run_command,
)
from hostel_ledger.domain.dtos import ContractBalance, DashboardSummary, RolloverResult
from hostel_ledger.exceptions import (
    ContractNotFoundError,
    InvalidCommandArgumentsError,
    UnknownCommandError,
)
from hostel_ledger.models import ContractType, Expense, Gender


@pytest.fixture
def registry():
    return build_default_registry()


@pytest.fixture
def run(session, registry, deterministic_clock):
    """Run a command by name inside the test session."""

    @contextmanager
    def _scope():
        yield session

    def _run(name, *args):
        return run_command(
            registry,
            name,
            [str(a) for a in args],
            clock=deterministic_clock,
            read_scope=_scope,
            write_scope=_scope,
        )

    return _run


class TestRegistry:

    def test_default_table(self, registry):
        expected = {
            "outstanding_balance",
            "payment_history",
            "last_payment",
            "payments_with_running_balance",
            "tenants_with_owing_balance",
            "tenant_balances",
            "room_balances",
            "occupancy_rate",
            "rooms_by_level",
            "overbooked_rooms",
            "candidate_rooms",
            "levels",
            "is_lapsed",
            "lapsed_tenants",
            "classify_tenants",
            "rollover",
            "dashboard_summary",
            "tenant_profile",
            "tenants_in_cycle_not_in",
            "rolling_contracts_for",
            "search_by_name",
            "tenants_on_level",
            "contract_being_paid_for",
            "register_tenant",
            "add_room",
            "open_cycle",
            "open_contract",
            "record_payment",
            "record_expense",
            "retire",
            "build_receipt",
            "send_receipt",
        }
        assert set(registry.names()) == expected
        assert len(registry) == len(expected)

    def test_only_write_commands_write(self, registry):
        writers = {c.name for c in registry if c.writes}

        assert writers == {
            "register_tenant",
            "add_room",
            "open_cycle",
            "open_contract",
            "record_payment",
            "record_expense",
            "retire",
            "rollover",
        }

    def test_duplicate_rejected(self):
        registry = CommandRegistry()
        registry.register(Command(name="levels", handler=lambda ctx: []))

        with pytest.raises(ValueError):
            registry.register(Command(name="levels", handler=lambda ctx: []))

    def test_unknown_command(self, registry):
        with pytest.raises(UnknownCommandError):
            registry.get("drop_everything")

    def test_usage(self, registry):
        assert registry.get("rollover").usage() == "rollover target_cycle_id [as_of]"


class TestCoercion:

    def test_values(self):
        assert coerce_value(CommandParam("n", int), "42") == 42
        assert coerce_value(CommandParam("d", date), "2025-02-01") == date(2025, 2, 1)
        assert coerce_value(CommandParam("g", Gender), "Female") is Gender.FEMALE
        assert coerce_value(CommandParam("t", ContractType), "single") is ContractType.SINGLE
        identifier = uuid4()
        assert coerce_value(CommandParam("id", UUID), str(identifier)) == identifier

    def test_skipped_optional(self):
        assert coerce_value(CommandParam("d", date, optional=True), "-") is None
        assert coerce_value(CommandParam("d", date, optional=True), "") is None

    def test_bool_is_not_an_int(self):
        with pytest.raises(TypeError):
            coerce_value(CommandParam("n", int), True)

    @pytest.mark.parametrize(
        "name, args",
        [
            ("outstanding_balance", []),
            ("outstanding_balance", [str(uuid4()), str(uuid4())]),
            ("outstanding_balance", ["not-a-uuid"]),
            ("rooms_by_level", ["one", str(uuid4())]),
            ("candidate_rooms", ["other", "1", str(uuid4())]),
            ("record_payment", [str(uuid4()), "20/01/2025", "300"]),
        ],
    )
    def test_rejected_before_dispatch(self, registry, name, args):
        with pytest.raises(InvalidCommandArgumentsError):
            registry.coerce(name, args)


class TestRunCommand:

    def test_full_write_then_read_flow(self, run):
        cycle = run("open_cycle", "Jan-Apr 2025", "2025-01-01", "2025-04-30", "1600", "800")["id"]
        tenant = run("register_tenant", "Amina", "female", "19", "-", "0712345678")["id"]
        room = run("add_room", "1", "A1")["id"]
        contract = run("open_contract", cycle, tenant, room, "double")["id"]
        run("record_payment", contract, "2025-01-05", "300")

        balance = run("outstanding_balance", contract)

        assert isinstance(balance, ContractBalance)
        assert balance.agreed_price == 800
        assert balance.owing_amount == 500
        assert run("occupancy_rate", room, cycle).rate == 50
        assert [r.room_name for r in run("candidate_rooms", "female", "1", cycle)] == ["A1"]

    def test_omitted_optional_uses_callee_default(self, run, semesters, session, create_account):
        _, cycle_b = semesters
        account = create_account()

        expense_id = run("record_expense", cycle_b.id, account.id, "Gas", "2500", "2025-01-09")["id"]

        assert session.get(Expense, expense_id).quantity == 1

    def test_rollover_defaults_to_today(self, run, semesters):
        _, cycle_b = semesters

        result = run("rollover", cycle_b.id)

        assert isinstance(result, RolloverResult)
        assert result.as_of == date(2025, 2, 1)

    def test_dashboard_summary(self, run, semesters):
        _, cycle_b = semesters

        assert isinstance(run("dashboard_summary", cycle_b.id), DashboardSummary)

    def test_tenant_lookups(self, run):
        cycle = run("open_cycle", "Jan-Apr 2025", "2025-01-01", "2025-04-30", "1600", "800")["id"]
        tenant = run("register_tenant", "Amina Wanjiru", "female")["id"]
        room = run("add_room", "2", "B1")["id"]
        contract = run("open_contract", cycle, tenant, room, "double")["id"]

        hits = run("search_by_name", "wanj")
        on_level = run("tenants_on_level", "2", cycle)

        assert [h.contract.room_name for h in hits] == ["B1"]
        assert [t.tenant_id for t in on_level] == [tenant]
        assert run("contract_being_paid_for", tenant, cycle).contract_id == contract

    def test_handler_errors_propagate(self, run):
        with pytest.raises(ContractNotFoundError):
            run("record_payment", uuid4(), "2025-01-05", "300")

    def test_logs_carry_command_name(self, run, captured_logs):
        run("levels")

        logs = [r for r in captured_logs() if r["message"] in ("command_dispatched", "command_completed")]
        assert [r["message"] for r in logs] == ["command_dispatched", "command_completed"]
        assert all(r["command"] == "levels" for r in logs)
        assert logs[0]["correlation_id"] == logs[1]["correlation_id"]
