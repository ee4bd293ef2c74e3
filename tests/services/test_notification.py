"""
ReceiptNotifier tests: receipt text and delivery outcomes.
"""

from datetime import date
from uuid import uuid4

import pytest

from hostel_ledger.exceptions import NotificationGatewayError
from hostel_ledger.services.notification_service import (
    LoggingSmsGateway,
    ReceiptNotifier,
    SmsGateway,
    normalize_contact,
)


class RecordingGateway:
    def __init__(self):
        self.sent = []

    def send(self, sender, recipient, message):
        self.sent.append((sender, recipient, message))


class RefusingGateway:
    def send(self, sender, recipient, message):
        raise NotificationGatewayError(recipient, "insufficient credit")


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def paid(semesters, create_room, create_tenant, create_contract, create_payment):
    _, cycle_b = semesters
    tenant = create_tenant("Amina", contact="0712 345-678")
    contract = create_contract(tenant, create_room("A1"), cycle_b, agreed_price=8000)
    create_payment(contract, 2500, date(2025, 1, 3))
    return create_payment(contract, 1500, date(2025, 1, 20))


class TestNormalizeContact:

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("0712345678", "0712345678"),
            ("+254 712 345 678", "+254712345678"),
            ("(0712) 345-678", "0712345678"),
            ("12345", None),
            ("07123x5678", None),
            ("", None),
            (None, None),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_contact(raw) == expected


class TestBuildReceipt:

    def test_message(self, session, paid, semesters):
        _, cycle_b = semesters
        notifier = ReceiptNotifier(session, currency_code="KES")

        receipt = notifier.build_receipt(paid.id)

        assert receipt.message == (
            "Dear Amina, we have received KES 1,500 on 2025-01-20 for room A1 "
            f"({cycle_b.name}). Balance: KES 4,000."
        )
        assert receipt.recipient == "0712 345-678"

    def test_rolling_contract_names_its_end_date(
        self, session, semesters, create_room, create_tenant, create_contract, create_payment
    ):
        _, cycle_b = semesters
        contract = create_contract(
            create_tenant("Brian"),
            create_room("A2"),
            cycle_b,
            agreed_price=900,
            rolling_start=date(2025, 1, 18),
            rolling_end=date(2025, 2, 18),
        )
        payment = create_payment(contract, 900, date(2025, 1, 18))

        receipt = ReceiptNotifier(session).build_receipt(payment.id)

        assert "(stay until 2025-02-18)" in receipt.message
        assert receipt.message.endswith("Balance: 0.")

    def test_unknown_payment(self, session):
        assert ReceiptNotifier(session).build_receipt(uuid4()) is None


class TestSendReceipt:

    def test_delivered(self, session, paid, gateway):
        notifier = ReceiptNotifier(session, gateway=gateway, sender="KIBO")

        outcome = notifier.send_receipt(paid.id)

        assert outcome.delivered
        assert outcome.detail == "Sent to 0712345678"
        assert gateway.sent[0][:2] == ("KIBO", "0712345678")

    def test_invalid_contact_is_an_outcome(
        self, session, semesters, create_room, create_tenant, create_contract, create_payment, gateway
    ):
        _, cycle_b = semesters
        contract = create_contract(create_tenant("Brian", contact="n/a"), create_room("A2"), cycle_b)
        payment = create_payment(contract, 100, date(2025, 1, 5))

        outcome = ReceiptNotifier(session, gateway=gateway).send_receipt(payment.id)

        assert not outcome.delivered
        assert "Brian" in outcome.detail
        assert gateway.sent == []

    def test_gateway_failure_is_an_outcome(self, session, paid, captured_logs):
        outcome = ReceiptNotifier(session, gateway=RefusingGateway()).send_receipt(paid.id)

        assert not outcome.delivered
        assert "insufficient credit" in outcome.detail
        assert any(r["message"] == "receipt_delivery_failed" for r in captured_logs())

    def test_batch_continues_past_failures(self, session, paid, gateway):
        missing = uuid4()

        outcomes = ReceiptNotifier(session, gateway=gateway).send_receipts([missing, paid.id])

        assert [o.delivered for o in outcomes] == [False, True]
        assert outcomes[0].payment_id == missing


class TestGateways:

    def test_logging_gateway_satisfies_protocol(self, captured_logs):
        gateway = LoggingSmsGateway()
        gateway.send("HOSTEL", "0712345678", "hello")

        assert isinstance(gateway, SmsGateway)
        logged = [r for r in captured_logs() if r["message"] == "sms_message_logged"]
        assert logged[0]["recipient"] == "0712345678"
