"""
Module: hostel_ledger.db.types
Responsibility: Money helpers shared by selectors and the notification layer.
Architecture position: DB.  MUST NOT import from models/, services/,
    selectors/ or domain/.

Invariants enforced:
    No floats.  Every monetary amount is an ``int`` in the smallest currency
    unit, stored as BIGINT (see Base.type_annotation_map).
"""


def format_money(amount: int, currency_code: str = "") -> str:
    """
    Render an integer amount with thousands separators.

    >>> format_money(1234500, "KES")
    'KES 1,234,500'
    >>> format_money(-400)
    '-400'
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError(f"Money amounts are integers, got {amount!r}")
    text = f"{amount:,}"
    return f"{currency_code} {text}" if currency_code else text
