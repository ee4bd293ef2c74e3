"""Database layer: declarative base, column types, engine and session scopes."""

from hostel_ledger.db.base import Base, RecordBase, RecordStatus, UUIDString
from hostel_ledger.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    is_postgres,
    reset_engine,
    session_scope,
    snapshot_scope,
)
from hostel_ledger.db.types import format_money

__all__ = [
    "Base",
    "RecordBase",
    "RecordStatus",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "format_money",
    "get_engine",
    "get_session",
    "get_session_factory",
    "init_engine_from_url",
    "is_postgres",
    "reset_engine",
    "session_scope",
    "snapshot_scope",
]
