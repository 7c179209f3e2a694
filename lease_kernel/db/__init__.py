"""Database layer - engine, base classes and transaction scopes."""

from lease_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from lease_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    transaction_scope,
)

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session_factory",
    "create_tables",
    "reset_engine",
    "transaction_scope",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
]
