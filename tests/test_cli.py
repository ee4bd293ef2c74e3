"""
CLI tests against a throwaway SQLite file.

Each ``main()`` call initializes the module-level engine from --db-url.  The
``cli`` fixture parks the suite's engine while a test runs and puts it back
afterwards, disposing only the engine the CLI created.
"""

import json
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select

from hostel_ledger.cli import main, to_json
from hostel_ledger.db import engine as engine_module
from hostel_ledger.db.engine import get_engine, reset_engine
from hostel_ledger.domain.dtos import OccupancyLevel, RoomOccupancy, TenantClassification
from hostel_ledger.models import Room


@pytest.fixture
def cli(tmp_path, monkeypatch, capsys):
    """Invoke the CLI against a fresh database; returns (exit code, stdout, stderr)."""
    monkeypatch.delenv("HOSTEL_LEDGER_CONFIG", raising=False)
    monkeypatch.setattr(engine_module, "_engine", None)
    monkeypatch.setattr(engine_module, "_SessionFactory", None)
    db_url = f"sqlite:///{tmp_path / 'ledger.db'}"

    def _cli(*argv):
        code = main(["--db-url", db_url, *argv])
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    yield _cli
    reset_engine()


class TestCommandListing:

    def test_lists_every_command(self, cli):
        code, out, _ = cli("commands")

        assert code == 0
        assert "rollover target_cycle_id [as_of]" in out
        assert "dashboard_summary cycle_id" in out


class TestCall:

    def test_record_and_query(self, cli):
        assert cli("init-db")[0] == 0

        _, out, _ = cli("call", "open_cycle", "Jan-Apr 2025", "2025-01-01", "2025-04-30", "1600", "800")
        cycle = json.loads(out)["id"]
        _, out, _ = cli("call", "register_tenant", "Amina", "female")
        tenant = json.loads(out)["id"]
        _, out, _ = cli("call", "add_room", "1", "A1")
        room = json.loads(out)["id"]
        _, out, _ = cli("call", "open_contract", cycle, tenant, room, "double", "-", "2025-01-18", "2025-02-18")
        contract = json.loads(out)["id"]
        cli("call", "record_payment", contract, "2025-01-18", "300")

        code, out, _ = cli("call", "tenants_with_owing_balance", cycle)

        assert code == 0
        owing = json.loads(out)
        assert owing[0]["tenant_name"] == "Amina"
        assert owing[0]["owing_amount"] == 500
        assert owing[0]["pays_monthly"] is True

    def test_ledger_error_exit_code(self, cli):
        cli("init-db")

        code, out, err = cli("call", "rollover", "00000000-0000-0000-0000-000000000000", "2025-02-01")

        assert code == 1
        assert out == ""
        assert '"error": "BILLING_CYCLE_NOT_FOUND"' in err

    def test_bad_arguments(self, cli):
        code, _, err = cli("call", "outstanding_balance", "not-a-uuid")

        assert code == 1
        assert '"error": "INVALID_COMMAND_ARGUMENTS"' in err

    def test_unknown_command(self, cli):
        code, _, err = cli("call", "drop_everything")

        assert code == 1
        assert '"error": "UNKNOWN_COMMAND"' in err

    def test_usage_error(self, cli):
        with pytest.raises(SystemExit) as exc_info:
            cli("frobnicate")

        assert exc_info.value.code == 2


class TestResultEncoding:

    def test_dataclass_with_enum(self):
        room_id = uuid4()
        encoded = json.loads(
            to_json(RoomOccupancy(room_id, "A1", 1, 3, OccupancyLevel.OVERBOOKED))
        )

        assert encoded == {
            "room_id": str(room_id),
            "room_name": "A1",
            "level": 1,
            "occupant_count": 3,
            "occupancy": 101,
        }

    def test_id_sets_are_sorted_lists(self):
        low = UUID(int=1)
        high = UUID(int=2)
        encoded = json.loads(
            to_json(TenantClassification(cycle_id=low, active=frozenset({high, low}), lapsed=frozenset()))
        )

        assert encoded["active"] == [str(low), str(high)]
        assert encoded["lapsed"] == []


class TestSuiteEngineUntouched:

    def test_engine_restored_after_usage_error(self, db_engine, cli):
        with pytest.raises(SystemExit):
            cli("frobnicate")

    def test_module_engine_is_the_suite_engine(self, db_engine):
        assert get_engine() is db_engine

    def test_suite_database_still_has_its_tables(self, session, create_room):
        create_room("A1")

        assert session.scalar(select(func.count(Room.id))) == 1
