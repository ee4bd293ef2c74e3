"""Pure domain core: clock, DTOs, balance and occupancy rules."""

from hostel_ledger.domain.clock import Clock, DeterministicClock, SystemClock
from hostel_ledger.domain.dtos import LapseReason, OccupancyLevel

__all__ = [
    "Clock",
    "DeterministicClock",
    "LapseReason",
    "OccupancyLevel",
    "SystemClock",
]
