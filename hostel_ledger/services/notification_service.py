"""
ReceiptNotifier -- payment receipt rendering and delivery.

Responsibility:
    Renders a receipt message for a recorded payment and hands it to an
    SMS gateway.  Delivery problems are reported as DeliveryOutcome values
    so a batch of receipts never aborts on one bad record.

Architecture position:
    Services -- boundary to the external SMS provider.  The provider
    itself lives behind the SmsGateway protocol.

Failure modes (all returned as DeliveryOutcome(delivered=False)):
    - Payment unknown or deleted.
    - Tenant contact missing or malformed.
    - NotificationGatewayError raised by the gateway.
"""

import re
from collections.abc import Iterable
from typing import Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.orm import Session

from hostel_ledger.db.types import format_money
from hostel_ledger.domain.dtos import DeliveryOutcome, Receipt
from hostel_ledger.exceptions import NotificationGatewayError
from hostel_ledger.logging_config import get_logger
from hostel_ledger.models import BillingCycle, OccupancyContract, Payment, Room, Tenant
from hostel_ledger.selectors.base import ACTIVE, contract_scope
from hostel_ledger.selectors.ledger_selector import LedgerSelector

logger = get_logger("services.notification")

# Optional leading +, then 9 to 15 digits once separators are stripped
CONTACT_PATTERN = re.compile(r"^\+?\d{9,15}$")
_SEPARATORS = re.compile(r"[\s\-().]")


def normalize_contact(contact: str | None) -> str | None:
    """Strip separators; None if the result is not a plausible phone number."""
    if not contact:
        return None
    candidate = _SEPARATORS.sub("", contact)
    return candidate if CONTACT_PATTERN.match(candidate) else None


@runtime_checkable
class SmsGateway(Protocol):
    """Interface of an SMS provider.

    ``send`` raises NotificationGatewayError when the provider refuses or
    fails to accept the message.
    """

    def send(self, sender: str, recipient: str, message: str) -> None: ...


class LoggingSmsGateway:
    """Gateway that only logs messages.  Used when no provider is wired in."""

    def send(self, sender: str, recipient: str, message: str) -> None:
        logger.info(
            "sms_message_logged",
            extra={"sender": sender, "recipient": recipient, "sms_text": message},
        )


class ReceiptNotifier:
    """
    Builds and sends payment receipts.

    Contract:
        Read-only against the ledger.  Never raises for per-payment
        problems; see send_receipt().
    """

    def __init__(
        self,
        session: Session,
        gateway: SmsGateway | None = None,
        currency_code: str = "",
        sender: str = "HOSTEL",
    ):
        self.session = session
        self.gateway = gateway or LoggingSmsGateway()
        self.currency_code = currency_code
        self.sender = sender

    def build_receipt(self, payment_id: UUID) -> Receipt | None:
        """
        Render the receipt text for one payment.

        Returns:
            Receipt, or None if the payment is unknown or deleted.
        """
        row = self.session.execute(
            contract_scope(Payment, OccupancyContract, Tenant, Room, BillingCycle)
            .join(Payment, Payment.contract_id == OccupancyContract.id)
            .where(Payment.id == payment_id, Payment.status == ACTIVE)
        ).one_or_none()
        if row is None:
            return None
        payment, contract, tenant, room, cycle = row

        balance = LedgerSelector(self.session).outstanding_balance(contract.id)
        if contract.rolling_end is not None:
            period = f"stay until {contract.rolling_end.isoformat()}"
        else:
            period = cycle.name

        message = (
            f"Dear {tenant.name}, we have received "
            f"{format_money(payment.amount, self.currency_code)} on "
            f"{payment.paid_on.isoformat()} for room {room.name} ({period}). "
            f"Balance: {format_money(balance.owing_amount, self.currency_code)}."
        )
        return Receipt(
            payment_id=payment.id,
            tenant_name=tenant.name,
            recipient=tenant.contact,
            message=message,
        )

    def send_receipt(self, payment_id: UUID) -> DeliveryOutcome:
        """Build and deliver one receipt.  Failures come back as outcomes."""
        receipt = self.build_receipt(payment_id)
        if receipt is None:
            return self._failed(payment_id, f"Payment not found: {payment_id}")

        recipient = normalize_contact(receipt.recipient)
        if recipient is None:
            return self._failed(
                payment_id,
                f"Invalid contact {receipt.recipient!r} for {receipt.tenant_name}",
            )

        try:
            self.gateway.send(self.sender, recipient, receipt.message)
        except NotificationGatewayError as exc:
            return self._failed(payment_id, str(exc))

        logger.info(
            "receipt_delivered",
            extra={"payment_id": str(payment_id), "recipient": recipient},
        )
        return DeliveryOutcome(payment_id=payment_id, delivered=True, detail=f"Sent to {recipient}")

    def send_receipts(self, payment_ids: Iterable[UUID]) -> list[DeliveryOutcome]:
        """Deliver receipts one by one; one failure never stops the rest."""
        return [self.send_receipt(payment_id) for payment_id in payment_ids]

    def _failed(self, payment_id: UUID, detail: str) -> DeliveryOutcome:
        logger.warning(
            "receipt_delivery_failed",
            extra={"payment_id": str(payment_id), "detail": detail},
        )
        return DeliveryOutcome(payment_id=payment_id, delivered=False, detail=detail)
