"""Database layer - engine handle, base classes, immutability listeners."""

from inventory_kernel.db.base import UUID, Base, UTCDateTime, UUIDString
from inventory_kernel.db.engine import Database, create_engine_from_url
from inventory_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)

__all__ = [
    "Base",
    "Database",
    "UTCDateTime",
    "UUID",
    "UUIDString",
    "create_engine_from_url",
    "register_immutability_listeners",
    "unregister_immutability_listeners",
]
