"""
Occupancy -- Pure room fill rules.

Responsibility:
    Maps active-contract counts to occupancy levels, sums consumed slots,
    and decides whether a room can take another tenant of a given gender.

Architecture position:
    Domain -- pure functional core, zero I/O.  Works on slot counts and
    gender strings so it does not depend on the ORM enums.

Invariants enforced:
    - Every room has ROOM_SLOTS slots.  A single contract consumes two, a
      double contract one.
    - Counts above two map to OVERBOOKED, never to FULL.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from hostel_ledger.domain.dtos import OccupancyLevel

ROOM_SLOTS = 2


@dataclass(frozen=True)
class Occupant:
    """An active contract in a room, reduced to what matching needs."""

    slots: int
    gender: str


def occupancy_level(count: int) -> OccupancyLevel:
    """Map a count of active contracts in a room to its fill level."""
    if count < 0:
        raise ValueError(f"Occupant count cannot be negative: {count}")
    if count == 0:
        return OccupancyLevel.EMPTY
    if count == 1:
        return OccupancyLevel.HALF
    if count == 2:
        return OccupancyLevel.FULL
    return OccupancyLevel.OVERBOOKED


def free_slots(room_count: int, consumed: Iterable[int]) -> int:
    """Unoccupied slots across all rooms.  Negative when rooms are overbooked."""
    return room_count * ROOM_SLOTS - sum(consumed)


def accepts(occupants: Sequence[Occupant], gender: str) -> bool:
    """
    Whether a room can take a new tenant of ``gender``.

    A room qualifies when it is empty, or when it holds exactly one
    shared-room (one-slot) occupant of the same gender.
    """
    if not occupants:
        return True
    if len(occupants) != 1:
        return False
    sole = occupants[0]
    return sole.slots == 1 and sole.gender == gender
