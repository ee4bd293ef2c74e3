"""
Module: hostel_ledger.models.account
Responsibility: ORM persistence for operator accounts.  Accounts are owned by
    the external account-management collaborator; the ledger only references
    them as the operator who recorded an expense.
Architecture position: Models.  May import from db/ only.
"""

from enum import Enum

from sqlalchemy import Boolean, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from hostel_ledger.db.base import RecordBase


class AccountRole(str, Enum):
    """Operator role."""

    ADMIN = "admin"
    CUSTODIAN = "custodian"


class Account(RecordBase):
    """An operator login.  Credentials live outside this package."""

    __tablename__ = "accounts"

    __table_args__ = (Index("idx_account_username", "username"),)

    username: Mapped[str] = mapped_column(String(100), nullable=False)

    role: Mapped[AccountRole] = mapped_column(
        String(20),
        default=AccountRole.CUSTODIAN.value,
        nullable=False,
    )

    approved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<Account {self.username} ({self.role})>"
