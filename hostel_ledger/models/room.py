"""
Module: hostel_ledger.models.room
Responsibility: ORM persistence for physical rooms.
Architecture position: Models.  May import from db/ only.

Invariants enforced:
    - Every room has exactly ROOM_CAPACITY occupant slots.  A single contract
      takes both; a double contract takes one.
"""

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hostel_ledger.db.base import RecordBase

ROOM_CAPACITY = 2


class Room(RecordBase):
    """A physical unit on one level of the hostel."""

    __tablename__ = "rooms"

    __table_args__ = (Index("idx_room_level", "level"),)

    level: Mapped[int] = mapped_column(Integer, nullable=False)

    name: Mapped[str] = mapped_column(String(50), nullable=False)

    def __repr__(self) -> str:
        return f"<Room {self.name} (level {self.level})>"
