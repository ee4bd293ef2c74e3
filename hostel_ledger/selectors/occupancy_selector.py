"""
Module: hostel_ledger.selectors.occupancy_selector
Responsibility: Room fill state per billing cycle and gender-compatible room
    matching for new tenants.
Architecture position: Selectors.  May import from models/, domain/ and
    selectors/base.py.

Invariants enforced:
    - Occupancy counts active contracts (activity rule, see selectors.base).
    - OVERBOOKED is reported as data and logged at WARNING, never clamped
      and never raised.
    - A room is a candidate only if it is empty, or holds exactly one
      double-contract occupant of the requested gender.

Failure modes:
    - Unknown or deleted rooms/cycles yield None / empty lists.
"""

from collections import defaultdict
from uuid import UUID

from sqlalchemy import func, select

from hostel_ledger.domain.dtos import CandidateRoom, OccupancyLevel, RoomOccupancy
from hostel_ledger.domain.occupancy import Occupant, accepts, occupancy_level
from hostel_ledger.logging_config import get_logger
from hostel_ledger.models import ContractType, Gender, OccupancyContract, Room, Tenant
from hostel_ledger.selectors.base import ACTIVE, BaseSelector, active_on, contract_scope

logger = get_logger("selectors.occupancy")


class OccupancySelector(BaseSelector):
    """Selector for room occupancy levels and candidate rooms."""

    def _room_counts(self, cycle_id: UUID):
        return (
            contract_scope(
                OccupancyContract.room_id.label("room_id"),
                func.count(OccupancyContract.id).label("occupant_count"),
            )
            .where(
                OccupancyContract.cycle_id == cycle_id,
                active_on(self._today()),
            )
            .group_by(OccupancyContract.room_id)
            .subquery("room_counts")
        )

    def _occupancies(self, cycle_id: UUID, *criteria) -> list[RoomOccupancy]:
        counts = self._room_counts(cycle_id)
        rows = self.session.execute(
            select(Room.id, Room.name, Room.level, counts.c.occupant_count)
            .outerjoin(counts, counts.c.room_id == Room.id)
            .where(Room.status == ACTIVE, *criteria)
            .order_by(Room.name)
        ).all()

        result = []
        for row in rows:
            count = int(row.occupant_count or 0)
            result.append(
                RoomOccupancy(
                    room_id=row.id,
                    room_name=row.name,
                    level=row.level,
                    occupant_count=count,
                    occupancy=occupancy_level(count),
                )
            )
        return result

    def occupancy_rate(self, room_id: UUID, cycle_id: UUID) -> RoomOccupancy | None:
        """
        Fill level of one room in one cycle.

        Returns:
            RoomOccupancy, or None if the room or cycle is unknown or deleted.
        """
        if self._live_cycle(cycle_id) is None:
            return None
        found = self._occupancies(cycle_id, Room.id == room_id)
        if not found:
            return None
        occupancy = found[0]
        if occupancy.occupancy.is_anomaly:
            self._report_overbooked(occupancy, cycle_id)
        return occupancy

    def rooms_by_level(self, level: int, cycle_id: UUID) -> list[RoomOccupancy]:
        """All rooms on a level with their occupancy, ordered by room name."""
        if self._live_cycle(cycle_id) is None:
            return []
        return self._occupancies(cycle_id, Room.level == level)

    def overbooked_rooms(self, cycle_id: UUID) -> list[RoomOccupancy]:
        """Rooms holding more than two active contracts in the cycle."""
        if self._live_cycle(cycle_id) is None:
            return []
        rooms = [
            occupancy
            for occupancy in self._occupancies(cycle_id)
            if occupancy.occupancy is OccupancyLevel.OVERBOOKED
        ]
        for occupancy in rooms:
            self._report_overbooked(occupancy, cycle_id)
        return rooms

    def candidate_rooms(
        self,
        gender: Gender | str,
        level: int,
        cycle_id: UUID,
    ) -> list[CandidateRoom]:
        """
        Rooms on a level that can take a new tenant of ``gender``.

        Raises:
            ValueError: if ``gender`` is not a Gender value.
        """
        wanted = Gender(gender).value
        if self._live_cycle(cycle_id) is None:
            return []

        rooms = self.session.execute(
            select(Room.id, Room.name, Room.level)
            .where(Room.status == ACTIVE, Room.level == level)
            .order_by(Room.name)
        ).all()

        occupants: dict[UUID, list[Occupant]] = defaultdict(list)
        for row in self.session.execute(
            contract_scope(
                OccupancyContract.room_id,
                OccupancyContract.contract_type,
                Tenant.gender,
            ).where(
                OccupancyContract.cycle_id == cycle_id,
                Room.level == level,
                active_on(self._today()),
            )
        ):
            occupants[row.room_id].append(
                Occupant(slots=ContractType(row.contract_type).slots, gender=row.gender)
            )

        candidates = [
            CandidateRoom(
                room_id=room.id,
                room_name=room.name,
                level=room.level,
                occupant_count=len(occupants[room.id]),
            )
            for room in rooms
            if accepts(occupants[room.id], wanted)
        ]

        logger.debug(
            "candidate_rooms_computed",
            extra={
                "gender": wanted,
                "level": level,
                "cycle_id": str(cycle_id),
                "candidates": len(candidates),
            },
        )
        return candidates

    def levels(self) -> list[int]:
        """Distinct levels that have at least one room."""
        return list(
            self.session.scalars(
                select(Room.level)
                .where(Room.status == ACTIVE)
                .distinct()
                .order_by(Room.level)
            )
        )

    def _report_overbooked(self, occupancy: RoomOccupancy, cycle_id: UUID) -> None:
        logger.warning(
            "overbooked_room_detected",
            extra={
                "room_id": str(occupancy.room_id),
                "room_name": occupancy.room_name,
                "cycle_id": str(cycle_id),
                "occupant_count": occupancy.occupant_count,
            },
        )
