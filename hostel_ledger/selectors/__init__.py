"""Read-only query selectors."""

from hostel_ledger.selectors.base import BaseSelector
from hostel_ledger.selectors.ledger_selector import LedgerSelector
from hostel_ledger.selectors.occupancy_selector import OccupancySelector
from hostel_ledger.selectors.tenant_selector import TenantSelector

__all__ = [
    "BaseSelector",
    "LedgerSelector",
    "OccupancySelector",
    "TenantSelector",
]
