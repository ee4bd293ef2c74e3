"""ORM models for the hostel ledger."""

from hostel_ledger.models.account import Account, AccountRole
from hostel_ledger.models.billing_cycle import BillingCycle
from hostel_ledger.models.contract import ContractType, OccupancyContract
from hostel_ledger.models.expense import Expense
from hostel_ledger.models.payment import Payment
from hostel_ledger.models.room import ROOM_CAPACITY, Room
from hostel_ledger.models.tenant import Gender, Tenant

__all__ = [
    "Account",
    "AccountRole",
    "BillingCycle",
    "ContractType",
    "Expense",
    "Gender",
    "OccupancyContract",
    "Payment",
    "ROOM_CAPACITY",
    "Room",
    "Tenant",
]
