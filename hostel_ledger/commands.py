"""
Command table -- the named, typed invocation surface of the ledger.

Responsibility:
    Maps operation names to handlers with a fixed positional parameter
    schema.  Raw arguments (usually strings from the CLI or an RPC layer)
    are checked for arity and coerced to their declared types before the
    handler runs.  Only registered names can be invoked.

Architecture position:
    Outer layer.  May import from every inner layer.  Owns transaction
    boundaries: read commands run in snapshot_scope(), write commands in
    session_scope().

Invariants enforced:
    - One command per name; re-registration raises ValueError.
    - Coercion happens before any session is opened, so a bad argument
      never touches the database.

Failure modes:
    - UnknownCommandError: name not registered.
    - InvalidCommandArgumentsError: wrong arity or an uncoercible value.
    - Handler exceptions propagate unchanged after the scope rolls back.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy.orm import Session

from hostel_ledger.config import LedgerSettings
from hostel_ledger.db.engine import session_scope, snapshot_scope
from hostel_ledger.domain.clock import Clock, SystemClock
from hostel_ledger.exceptions import InvalidCommandArgumentsError, UnknownCommandError
from hostel_ledger.logging_config import LogContext, get_logger
from hostel_ledger.models import ContractType, Gender
from hostel_ledger.selectors import LedgerSelector, OccupancySelector, TenantSelector
from hostel_ledger.services import (
    DashboardService,
    PeriodTransitionService,
    ReceiptNotifier,
    RecordService,
    SmsGateway,
)

logger = get_logger("commands")

# Placeholders that mean "not given" for optional positional arguments
_EMPTY_MARKERS = frozenset({"", "-"})


@dataclass(frozen=True)
class CommandParam:
    """One positional parameter: its name, target type and optionality."""

    name: str
    kind: type
    optional: bool = False


@dataclass(frozen=True)
class CommandContext:
    """What a handler receives besides its arguments."""

    session: Session
    clock: Clock
    settings: LedgerSettings = field(default_factory=LedgerSettings)
    gateway: SmsGateway | None = None


@dataclass(frozen=True)
class Command:
    name: str
    handler: Callable[..., Any]
    params: tuple[CommandParam, ...] = ()
    writes: bool = False
    description: str = ""

    @property
    def required_count(self) -> int:
        return sum(1 for p in self.params if not p.optional)

    def usage(self) -> str:
        parts = [f"[{p.name}]" if p.optional else p.name for p in self.params]
        return " ".join([self.name, *parts])


def coerce_value(param: CommandParam, raw: Any) -> Any:
    """
    Convert one raw argument to ``param.kind``.

    Values that already have the target type pass through unchanged.

    Raises:
        ValueError / TypeError: the value cannot be converted.
    """
    if param.optional and (raw is None or (isinstance(raw, str) and raw in _EMPTY_MARKERS)):
        return None
    kind = param.kind
    if kind is int:
        if isinstance(raw, bool):
            raise TypeError("booleans are not integers")
        return raw if isinstance(raw, int) else int(str(raw), 10)
    if isinstance(raw, kind):
        return raw
    if kind is date:
        return date.fromisoformat(str(raw))
    if kind is UUID:
        return UUID(str(raw))
    if isinstance(kind, type) and issubclass(kind, Enum):
        return kind(str(raw).lower())
    if kind is str:
        return str(raw)
    raise TypeError(f"unsupported parameter type {kind.__name__}")


class CommandRegistry:
    """Registry mapping command names to Command definitions.

    Contract:
        - ``register()`` adds a command; raises ValueError on duplicate.
        - ``get()`` retrieves by name; raises UnknownCommandError if missing.
        - ``names()`` returns all registered names, sorted.
    """

    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}

    def register(self, command: Command) -> None:
        if command.name in self._commands:
            raise ValueError(f"Command '{command.name}' is already registered")
        self._commands[command.name] = command

    def get(self, name: str) -> Command:
        try:
            return self._commands[name]
        except KeyError:
            raise UnknownCommandError(name) from None

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._commands))

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands[name] for name in self.names())

    def coerce(self, name: str, args: Sequence[Any]) -> tuple[Any, ...]:
        """
        Validate arity and convert every argument of ``name``.

        Raises:
            UnknownCommandError, InvalidCommandArgumentsError.
        """
        command = self.get(name)
        if not command.required_count <= len(args) <= len(command.params):
            expected = (
                str(len(command.params))
                if command.required_count == len(command.params)
                else f"{command.required_count} to {len(command.params)}"
            )
            raise InvalidCommandArgumentsError(
                name, f"expected {expected} argument(s), got {len(args)}"
            )

        coerced = []
        for param, raw in zip(command.params, args):
            try:
                coerced.append(coerce_value(param, raw))
            except (TypeError, ValueError) as exc:
                raise InvalidCommandArgumentsError(
                    name, f"{param.name}={raw!r} is not a valid {param.kind.__name__}"
                ) from exc
        return tuple(coerced)

    def dispatch(self, name: str, args: Sequence[Any], context: CommandContext) -> Any:
        """Coerce ``args`` and invoke the handler inside the caller's session."""
        coerced = self.coerce(name, args)
        return self._commands[name].handler(context, *coerced)


def run_command(
    registry: CommandRegistry,
    name: str,
    args: Sequence[Any] = (),
    *,
    clock: Clock | None = None,
    settings: LedgerSettings | None = None,
    gateway: SmsGateway | None = None,
    read_scope: Callable[[], AbstractContextManager[Session]] = snapshot_scope,
    write_scope: Callable[[], AbstractContextManager[Session]] = session_scope,
) -> Any:
    """
    Run one command in its own transaction.

    Read commands run in ``read_scope`` (a read-only snapshot by default),
    write commands in ``write_scope`` (commit on success, rollback on
    error).  Arguments are validated before the scope opens.
    """
    command = registry.get(name)
    coerced = registry.coerce(name, args)
    settings = settings or LedgerSettings()
    clock = clock or SystemClock(settings.zone)
    scope = write_scope if command.writes else read_scope

    with LogContext.bind(command=name, correlation_id=str(uuid4())):
        logger.info(
            "command_dispatched",
            extra={"writes": command.writes, "arg_count": len(coerced)},
        )
        with scope() as session:
            context = CommandContext(
                session=session, clock=clock, settings=settings, gateway=gateway
            )
            result = command.handler(context, *coerced)
        logger.info("command_completed")
    return result


# ---------------------------------------------------------------------------
# Default command table
# ---------------------------------------------------------------------------


def _ledger(ctx: CommandContext) -> LedgerSelector:
    return LedgerSelector(ctx.session, ctx.clock)


def _occupancy(ctx: CommandContext) -> OccupancySelector:
    return OccupancySelector(ctx.session, ctx.clock)


def _tenants(ctx: CommandContext) -> TenantSelector:
    return TenantSelector(ctx.session, ctx.clock)


def _transitions(ctx: CommandContext) -> PeriodTransitionService:
    return PeriodTransitionService(ctx.session, ctx.clock)


def _dashboard(ctx: CommandContext) -> DashboardService:
    return DashboardService(ctx.session, ctx.clock)


def _records(ctx: CommandContext) -> RecordService:
    return RecordService(ctx.session, ctx.clock)


def _notifier(ctx: CommandContext) -> ReceiptNotifier:
    return ReceiptNotifier(
        ctx.session,
        gateway=ctx.gateway,
        currency_code=ctx.settings.currency_code,
        sender=ctx.settings.sms_sender,
    )


def _trim(args: tuple[Any, ...]) -> tuple[Any, ...]:
    """Drop trailing omitted optionals so the callee's defaults apply."""
    end = len(args)
    while end and args[end - 1] is None:
        end -= 1
    return args[:end]


def _call(factory: Callable[[CommandContext], Any], method: str) -> Callable[..., Any]:
    def handler(ctx: CommandContext, *args: Any) -> Any:
        return getattr(factory(ctx), method)(*_trim(args))

    handler.__name__ = method
    return handler


def _create(method: str) -> Callable[..., Any]:
    """Write handler returning the new record's id."""

    def handler(ctx: CommandContext, *args: Any) -> dict[str, UUID]:
        record = getattr(_records(ctx), method)(*_trim(args))
        return {"id": record.id}

    handler.__name__ = method
    return handler


def _p(name: str, kind: type = UUID, optional: bool = False) -> CommandParam:
    return CommandParam(name=name, kind=kind, optional=optional)


def build_default_registry() -> CommandRegistry:
    """The full command table of the ledger engine."""
    registry = CommandRegistry()

    reads: list[tuple[str, Callable[[CommandContext], Any], tuple[CommandParam, ...], str]] = [
        ("outstanding_balance", _ledger, (_p("contract_id"),),
         "Agreed price minus active payments for one contract"),
        ("payment_history", _ledger, (_p("contract_id"),),
         "Active payments on a contract, newest first"),
        ("last_payment", _ledger, (_p("contract_id"),),
         "Most recent payment on a contract"),
        ("payments_with_running_balance", _ledger, (_p("cycle_id"),),
         "Payments in a cycle with the balance after each"),
        ("tenants_with_owing_balance", _ledger, (_p("cycle_id"),),
         "Contracts in a cycle that still owe money"),
        ("tenant_balances", _ledger, (_p("cycle_id"),),
         "Active contracts in a cycle with balances"),
        ("room_balances", _ledger, (_p("room_id"), _p("cycle_id")),
         "Active occupants of a room with balances"),
        ("occupancy_rate", _occupancy, (_p("room_id"), _p("cycle_id")),
         "Fill level of one room"),
        ("rooms_by_level", _occupancy, (_p("level", int), _p("cycle_id")),
         "Fill level of every room on a level"),
        ("overbooked_rooms", _occupancy, (_p("cycle_id"),),
         "Rooms with more than two active contracts"),
        ("candidate_rooms", _occupancy, (_p("gender", Gender), _p("level", int), _p("cycle_id")),
         "Rooms that can take a tenant of a gender"),
        ("levels", _occupancy, (),
         "Distinct room levels"),
        ("is_lapsed", _transitions, (_p("tenant_id"), _p("cycle_id")),
         "Whether a tenant lapsed relative to a cycle"),
        ("lapsed_tenants", _transitions, (_p("cycle_id"),),
         "Tenants who lapsed relative to a cycle"),
        ("classify_tenants", _transitions, (_p("cycle_id"),),
         "Active and lapsed tenant ids for a cycle"),
        ("tenant_profile", _tenants, (_p("tenant_id"),),
         "Tenant details with contracts and payments"),
        ("tenants_in_cycle_not_in", _tenants, (_p("cycle_id"), _p("other_cycle_id")),
         "Tenants in one cycle but not another"),
        ("rolling_contracts_for", _tenants, (_p("tenant_id"),),
         "A tenant's monthly contracts"),
        ("search_by_name", _tenants, (_p("fragment", str),),
         "Tenants whose name contains a fragment, with room and cycle"),
        ("tenants_on_level", _tenants, (_p("level", int), _p("cycle_id")),
         "Tenants in a cycle on one room level"),
        ("contract_being_paid_for", _tenants, (_p("tenant_id"), _p("cycle_id")),
         "A tenant's cycle-priced contract in a cycle"),
        ("build_receipt", _notifier, (_p("payment_id"),),
         "Render the receipt text for a payment"),
        ("send_receipt", _notifier, (_p("payment_id"),),
         "Send a payment receipt by SMS"),
    ]
    for name, factory, params, description in reads:
        registry.register(
            Command(name=name, handler=_call(factory, name), params=params, description=description)
        )

    registry.register(
        Command(
            name="dashboard_summary",
            handler=_call(_dashboard, "summary"),
            params=(_p("cycle_id"),),
            description="Summary figures for a cycle",
        )
    )

    creates: list[tuple[str, tuple[CommandParam, ...], str]] = [
        ("register_tenant", (
            _p("name", str), _p("gender", Gender), _p("age", int, True),
            _p("course", str, True), _p("contact", str, True),
            _p("next_of_kin", str, True), _p("kin_contact", str, True),
        ), "Register a tenant"),
        ("add_room", (_p("level", int), _p("name", str)), "Add a room"),
        ("open_cycle", (
            _p("name", str), _p("start_date", date), _p("end_date", date),
            _p("single_price", int, True), _p("double_price", int, True),
        ), "Open a billing cycle"),
        ("open_contract", (
            _p("cycle_id"), _p("tenant_id"), _p("room_id"),
            _p("contract_type", ContractType), _p("agreed_price", int, True),
            _p("rolling_start", date, True), _p("rolling_end", date, True),
            _p("demand_notice_date", date, True),
        ), "Bind a tenant to a room for a cycle"),
        ("record_payment", (
            _p("contract_id"), _p("paid_on", date), _p("amount", int),
        ), "Record a payment against a contract"),
        ("record_expense", (
            _p("cycle_id"), _p("recorded_by_id"), _p("description", str),
            _p("unit_amount", int), _p("spent_on", date), _p("quantity", int, True),
        ), "Record a cycle expense"),
    ]
    for name, params, description in creates:
        registry.register(
            Command(
                name=name,
                handler=_create(name),
                params=params,
                writes=True,
                description=description,
            )
        )

    registry.register(
        Command(
            name="retire",
            handler=_call(_records, "retire"),
            params=(_p("kind", str), _p("record_id")),
            writes=True,
            description="Logically delete a record",
        )
    )
    registry.register(
        Command(
            name="rollover",
            handler=_call(_transitions, "rollover"),
            params=(_p("target_cycle_id"), _p("as_of", date, True)),
            writes=True,
            description="Move current rolling contracts into a cycle",
        )
    )
    return registry
