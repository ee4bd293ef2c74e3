"""
Ledger -- Pure balance arithmetic.

Responsibility:
    Computes outstanding balances and per-payment running balances from
    plain values.  LedgerSelector loads the rows; everything that can be
    computed without a session lives here so it can be property-tested.

Architecture position:
    Domain -- pure functional core, zero I/O.

Invariants enforced:
    - owing = agreed_price - sum(amounts).  No clamping: overpayment yields
      a negative balance.
    - Running balances accumulate per contract in ascending paid_on order
      and are presented in descending paid_on order.  Entries sharing a
      paid_on accumulate in input order.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from typing import Protocol, TypeVar
from uuid import UUID


@dataclass(frozen=True)
class LedgerEntry:
    """One payment as seen by the running-balance computation."""

    payment_id: UUID
    contract_id: UUID
    agreed_price: int
    paid_on: date
    amount: int


def outstanding(agreed_price: int, amounts: Iterable[int]) -> int:
    """Balance still owed on a contract."""
    return agreed_price - sum(amounts)


def running_balances(entries: Sequence[LedgerEntry]) -> list[tuple[LedgerEntry, int]]:
    """
    Pair every entry with its contract's balance right after that payment.

    Preconditions:
        Entries that share a paid_on date are supplied in the order they
        were recorded.

    Returns:
        ``(entry, owing_amount)`` pairs, newest paid_on first.  For each
        contract the first pair returned carries the current balance.
    """
    # sorted() is stable, so same-day entries keep their recorded order
    ascending = sorted(entries, key=lambda e: e.paid_on)

    paid_so_far: dict[UUID, int] = {}
    accumulated: list[tuple[LedgerEntry, int]] = []
    for entry in ascending:
        total = paid_so_far.get(entry.contract_id, 0) + entry.amount
        paid_so_far[entry.contract_id] = total
        accumulated.append((entry, entry.agreed_price - total))

    accumulated.reverse()
    return accumulated


class _Owing(Protocol):
    owing_amount: int
    tenant_name: str


OwingT = TypeVar("OwingT", bound=_Owing)


def sort_by_owing(rows: Iterable[OwingT]) -> list[OwingT]:
    """Largest debt first, then tenant name."""
    return sorted(rows, key=lambda r: (-r.owing_amount, r.tenant_name))
