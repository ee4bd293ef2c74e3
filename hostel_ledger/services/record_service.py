"""
RecordService -- append-only writes and logical deletion.

Responsibility:
    Registers tenants, rooms and billing cycles, opens occupancy contracts,
    records payments and expenses, and retires (logically deletes) records.

Architecture position:
    Services -- imperative shell.  The only write path for ledger records
    apart from PeriodTransitionService.rollover().

Invariants enforced:
    - Money and quantities are positive ``int`` values; bool and float are
      rejected.
    - Rolling dates are both set or both empty, with start <= end.
    - A contract opened without a price takes the cycle's single or double
      price.
    - Nothing is physically deleted; retire() flips status to DELETED.
    - Flush-only: never commits.

Failure modes:
    - TenantNotFoundError / RoomNotFoundError / BillingCycleNotFoundError /
      ContractNotFoundError / AccountNotFoundError: referenced record
      unknown or deleted.
    - InvalidAmountError, InvalidRollingWindowError, InvalidRecordKindError.
    - ValueError: contract type or gender outside its enum.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select, update

from hostel_ledger.db.base import RecordBase
from hostel_ledger.domain.dtos import RetireResult
from hostel_ledger.exceptions import (
    AccountNotFoundError,
    BillingCycleNotFoundError,
    ContractNotFoundError,
    InvalidAmountError,
    InvalidRecordKindError,
    InvalidRollingWindowError,
    NotFoundError,
    RoomNotFoundError,
    TenantNotFoundError,
)
from hostel_ledger.logging_config import get_logger
from hostel_ledger.models import (
    Account,
    BillingCycle,
    ContractType,
    Expense,
    Gender,
    OccupancyContract,
    Payment,
    Room,
    Tenant,
)
from hostel_ledger.selectors.base import ACTIVE, DELETED
from hostel_ledger.services.base import BaseService

logger = get_logger("services.record")

RETIRABLE: dict[str, type[RecordBase]] = {
    "tenant": Tenant,
    "room": Room,
    "cycle": BillingCycle,
    "contract": OccupancyContract,
    "payment": Payment,
    "expense": Expense,
}


def _require_positive(field: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidAmountError(field, value)
    return value


class RecordService(BaseService):
    """Service for recording ledger facts."""

    def _get_live(self, model, record_id: UUID, error: type[NotFoundError]):
        record = self.session.scalars(
            select(model).where(model.id == record_id, model.status == ACTIVE)
        ).one_or_none()
        if record is None:
            raise error(str(record_id))
        return record

    def register_tenant(
        self,
        name: str,
        gender: Gender | str,
        age: int | None = None,
        course: str | None = None,
        contact: str | None = None,
        next_of_kin: str | None = None,
        kin_contact: str | None = None,
    ) -> Tenant:
        tenant = Tenant(
            name=name,
            gender=Gender(gender).value,
            age=age,
            course=course,
            contact=contact,
            next_of_kin=next_of_kin,
            kin_contact=kin_contact,
        )
        self.session.add(tenant)
        self.session.flush()
        logger.info("tenant_registered", extra={"tenant_id": str(tenant.id)})
        return tenant

    def add_room(self, level: int, name: str) -> Room:
        room = Room(level=level, name=name)
        self.session.add(room)
        self.session.flush()
        logger.info("room_added", extra={"room_id": str(room.id), "level": level})
        return room

    def open_cycle(
        self,
        name: str,
        start_date: date,
        end_date: date,
        single_price: int | None = None,
        double_price: int | None = None,
    ) -> BillingCycle:
        """
        Create a billing cycle.

        Raises:
            ValueError: end_date before start_date.
            InvalidAmountError: a default price is not a positive int.
        """
        if end_date < start_date:
            raise ValueError(f"Cycle ends before it starts: {start_date}..{end_date}")
        for field, price in (("single_price", single_price), ("double_price", double_price)):
            if price is not None:
                _require_positive(field, price)

        cycle = BillingCycle(
            name=name,
            start_date=start_date,
            end_date=end_date,
            single_price=single_price,
            double_price=double_price,
        )
        self.session.add(cycle)
        self.session.flush()
        logger.info("cycle_opened", extra={"cycle_id": str(cycle.id), "cycle_name": name})
        return cycle

    def open_contract(
        self,
        cycle_id: UUID,
        tenant_id: UUID,
        room_id: UUID,
        contract_type: ContractType | str,
        agreed_price: int | None = None,
        rolling_start: date | None = None,
        rolling_end: date | None = None,
        demand_notice_date: date | None = None,
    ) -> OccupancyContract:
        """
        Bind a tenant to a room for a billing cycle.

        Preconditions:
            The tenant has no other active contract in the cycle.  This is
            not checked; occupancy queries report overbooking instead.

        Raises:
            BillingCycleNotFoundError, TenantNotFoundError, RoomNotFoundError.
            InvalidRollingWindowError: only one rolling date, or start > end.
            InvalidAmountError: no usable price.
        """
        kind = ContractType(contract_type)

        if (rolling_start is None) != (rolling_end is None) or (
            rolling_start is not None and rolling_start > rolling_end
        ):
            raise InvalidRollingWindowError(rolling_start, rolling_end)

        cycle = self._get_live(BillingCycle, cycle_id, BillingCycleNotFoundError)
        self._get_live(Tenant, tenant_id, TenantNotFoundError)
        self._get_live(Room, room_id, RoomNotFoundError)

        if agreed_price is None:
            agreed_price = (
                cycle.single_price if kind is ContractType.SINGLE else cycle.double_price
            )
        _require_positive("agreed_price", agreed_price)

        contract = OccupancyContract(
            cycle_id=cycle.id,
            tenant_id=tenant_id,
            room_id=room_id,
            contract_type=kind.value,
            agreed_price=agreed_price,
            rolling_start=rolling_start,
            rolling_end=rolling_end,
            demand_notice_date=demand_notice_date,
        )
        self.session.add(contract)
        self.session.flush()

        logger.info(
            "contract_opened",
            extra={
                "contract_id": str(contract.id),
                "tenant_id": str(tenant_id),
                "room_id": str(room_id),
                "contract_type": kind.value,
                "agreed_price": agreed_price,
                "rolling": rolling_end is not None,
            },
        )
        return contract

    def record_payment(self, contract_id: UUID, paid_on: date, amount: int) -> Payment:
        """
        Append a payment.  Overpayment is allowed.

        Raises:
            InvalidAmountError: amount is not a positive int.
            ContractNotFoundError: contract unknown or deleted.
        """
        _require_positive("amount", amount)
        contract = self._get_live(OccupancyContract, contract_id, ContractNotFoundError)

        payment = Payment(contract_id=contract.id, paid_on=paid_on, amount=amount)
        self.session.add(payment)
        self.session.flush()

        logger.info(
            "payment_recorded",
            extra={
                "payment_id": str(payment.id),
                "contract_id": str(contract.id),
                "amount": amount,
                "paid_on": paid_on,
            },
        )
        return payment

    def record_expense(
        self,
        cycle_id: UUID,
        recorded_by_id: UUID,
        description: str,
        unit_amount: int,
        spent_on: date,
        quantity: int = 1,
    ) -> Expense:
        _require_positive("unit_amount", unit_amount)
        _require_positive("quantity", quantity)
        cycle = self._get_live(BillingCycle, cycle_id, BillingCycleNotFoundError)
        self._get_live(Account, recorded_by_id, AccountNotFoundError)

        expense = Expense(
            description=description,
            quantity=quantity,
            unit_amount=unit_amount,
            cycle_id=cycle.id,
            recorded_by_id=recorded_by_id,
            spent_on=spent_on,
        )
        self.session.add(expense)
        self.session.flush()

        logger.info(
            "expense_recorded",
            extra={
                "expense_id": str(expense.id),
                "cycle_id": str(cycle.id),
                "total": expense.total,
            },
        )
        return expense

    def retire(self, kind: str, record_id: UUID) -> RetireResult:
        """
        Logically delete one record.

        Returns:
            RetireResult with affected_count 1, or 0 when the id is unknown
            or the record is already deleted.

        Raises:
            InvalidRecordKindError: kind is not one of RETIRABLE.
        """
        model = RETIRABLE.get(kind)
        if model is None:
            raise InvalidRecordKindError(kind, tuple(RETIRABLE))

        result = self.session.execute(
            update(model)
            .where(model.id == record_id, model.status == ACTIVE)
            .values(status=DELETED)
            .execution_options(synchronize_session=False)
        )
        affected = result.rowcount

        if affected:
            for obj in list(self.session.identity_map.values()):
                if isinstance(obj, model) and obj.id == record_id:
                    self.session.expire(obj)
            logger.info(
                "record_retired",
                extra={"kind": kind, "record_id": str(record_id)},
            )
        return RetireResult(kind=kind, record_id=record_id, affected_count=affected)
