"""
Hostel Ledger - billing and occupancy ledger engine.

Derives financial and occupancy state from raw hostel records:
- Outstanding balances and payment history per contract
- Room fill levels and gender-compatible placement
- Lapsed-tenant classification and rolling-contract rollover
- Cycle-scoped dashboard snapshots
"""

__version__ = "0.1.0"
