"""
Lapse -- Pure tenant lapse classification.

Responsibility:
    Decides, from a tenant's contract history relative to a reference
    billing cycle, whether the tenant is active, lapsed, or neither, and
    which contract lapsed.

Architecture position:
    Domain -- pure functional core, zero I/O.  PeriodTransitionService
    loads the stays and applies these rules.

Rules:
    A tenant is lapsed for a reference cycle when EITHER
      (a) they have a stay in a cycle that starts before the reference
          cycle and no stay at all in the reference cycle, OR
      (b) they have a stay in the reference cycle whose rolling end date
          is before today.
    A tenant is active when they have a reference-cycle stay with no
    rolling end date, or one that has not passed.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from hostel_ledger.domain.dtos import LapseReason


@dataclass(frozen=True)
class Stay:
    """One visible contract of a tenant, seen from a reference cycle."""

    contract_id: UUID
    in_reference: bool
    cycle_start: date
    rolling_end: date | None


def is_current(stay: Stay, today: date) -> bool:
    return stay.rolling_end is None or stay.rolling_end >= today


def has_active_stay(stays: Sequence[Stay], today: date) -> bool:
    """Tenant holds an active contract in the reference cycle."""
    return any(s.in_reference and is_current(s, today) for s in stays)


def lapse_reason(stays: Sequence[Stay], today: date) -> LapseReason | None:
    """
    Which lapse rule the stays satisfy, if any.

    Rule (b) is checked first: an expired rolling contract in the
    reference cycle is the more specific explanation.
    """
    reference = [s for s in stays if s.in_reference]
    if any(s.rolling_end is not None and s.rolling_end < today for s in reference):
        return LapseReason.ROLLING_EXPIRED
    if not reference and stays:
        return LapseReason.NOT_RENEWED
    return None


def lapsed_stay(stays: Sequence[Stay], reason: LapseReason) -> Stay:
    """
    The contract that lapsed.

    ROLLING_EXPIRED: the reference-cycle stay with the latest rolling end.
    NOT_RENEWED: the stay in the latest earlier cycle.  Later entries win
    ties, so callers pass stays oldest first.
    """
    if reason is LapseReason.ROLLING_EXPIRED:
        expired = [s for s in stays if s.in_reference and s.rolling_end is not None]
        return max(reversed(expired), key=lambda s: s.rolling_end)
    earlier = [s for s in stays if not s.in_reference]
    return max(reversed(earlier), key=lambda s: s.cycle_start)
