"""Database infrastructure: declarative base, engine and session management."""

from asset_kernel.db.base import Base, UUIDString
from asset_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)

__all__ = [
    "Base",
    "UUIDString",
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "get_session_factory",
    "create_tables",
    "drop_tables",
    "reset_engine",
]
