"""Database layer - engine and declarative base."""

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)

__all__ = [
    "Base",
    "UUIDString",
    "init_engine_from_url",
    "get_engine",
    "get_session_factory",
    "create_tables",
    "drop_tables",
    "reset_engine",
]
