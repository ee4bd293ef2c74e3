"""
Typed exception hierarchy for the hostel ledger.

Every error has a typed class (catch by type, not message), a class-level
``code`` (machine-readable, API-safe), and carries its context as
attributes rather than only in the message string.

    HostelLedgerError (base)
    |
    +-- NotFoundError
    |   +-- TenantNotFoundError
    |   +-- RoomNotFoundError
    |   +-- BillingCycleNotFoundError
    |   +-- ContractNotFoundError
    |   +-- PaymentNotFoundError
    |   +-- AccountNotFoundError
    |
    +-- ValidationError
    |   +-- InvalidAmountError
    |   +-- InvalidRollingWindowError
    |   +-- InvalidRecordKindError
    |
    +-- CommandError
    |   +-- UnknownCommandError
    |   +-- InvalidCommandArgumentsError
    |
    +-- NotificationGatewayError

Handling rules:

1. Queries never raise NotFoundError; they return ``None`` or an empty
   list.  Mutations that need a referenced row raise the matching
   NotFoundError subclass.

2. An overbooked room is NOT an exception.  It is reported as
   ``OccupancyLevel.OVERBOOKED`` so callers are forced to handle it.

3. Store failures (``sqlalchemy.exc.SQLAlchemyError``) are never wrapped;
   they propagate to the caller unchanged.

4. NotificationGatewayError is raised by SMS gateways and converted into
   a failed ``DeliveryOutcome`` by ``ReceiptNotifier``:

    outcome = notifier.send_receipt(payment_id)
    if not outcome.delivered:
        log.warning(outcome.detail)
"""


class HostelLedgerError(Exception):
    """
    Base exception for all hostel ledger errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "HOSTEL_LEDGER_ERROR"


# Missing referenced records


class NotFoundError(HostelLedgerError):
    """Base for a referenced id with no matching non-deleted record."""

    code: str = "NOT_FOUND"
    entity: str = "record"

    def __init__(self, record_id: str):
        self.record_id = record_id
        super().__init__(f"{self.entity.capitalize()} not found: {record_id}")


class TenantNotFoundError(NotFoundError):
    code: str = "TENANT_NOT_FOUND"
    entity: str = "tenant"


class RoomNotFoundError(NotFoundError):
    code: str = "ROOM_NOT_FOUND"
    entity: str = "room"


class BillingCycleNotFoundError(NotFoundError):
    code: str = "BILLING_CYCLE_NOT_FOUND"
    entity: str = "billing cycle"


class ContractNotFoundError(NotFoundError):
    code: str = "CONTRACT_NOT_FOUND"
    entity: str = "contract"


class PaymentNotFoundError(NotFoundError):
    code: str = "PAYMENT_NOT_FOUND"
    entity: str = "payment"


class AccountNotFoundError(NotFoundError):
    code: str = "ACCOUNT_NOT_FOUND"
    entity: str = "account"


# Input validation


class ValidationError(HostelLedgerError):
    """Base exception for rejected write inputs."""

    code: str = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    """Money amounts and quantities must be positive integers."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(
            f"{field} must be a positive integer, got {value!r}"
        )


class InvalidRollingWindowError(ValidationError):
    """Rolling dates must be both set or both empty, with start <= end."""

    code: str = "INVALID_ROLLING_WINDOW"

    def __init__(self, rolling_start: object, rolling_end: object):
        self.rolling_start = rolling_start
        self.rolling_end = rolling_end
        super().__init__(
            f"Invalid rolling window: start={rolling_start}, end={rolling_end}"
        )


class InvalidRecordKindError(ValidationError):
    """Unknown record kind passed to a generic record operation."""

    code: str = "INVALID_RECORD_KIND"

    def __init__(self, kind: str, allowed: tuple[str, ...]):
        self.kind = kind
        self.allowed = allowed
        super().__init__(
            f"Unknown record kind {kind!r}; expected one of {', '.join(allowed)}"
        )


# Invocation surface


class CommandError(HostelLedgerError):
    """Base exception for command table dispatch errors."""

    code: str = "COMMAND_ERROR"


class UnknownCommandError(CommandError):
    """No command is registered under the requested name."""

    code: str = "UNKNOWN_COMMAND"

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown command: {name}")


class InvalidCommandArgumentsError(CommandError):
    """Positional arguments do not match the command's parameter schema."""

    code: str = "INVALID_COMMAND_ARGUMENTS"

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Invalid arguments for {name}: {reason}")


# Notification boundary


class NotificationGatewayError(HostelLedgerError):
    """An SMS gateway refused or failed to deliver a message."""

    code: str = "NOTIFICATION_GATEWAY_ERROR"

    def __init__(self, recipient: str, reason: str):
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"Delivery to {recipient} failed: {reason}")
