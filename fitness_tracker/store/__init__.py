"""
Record store abstraction for the Fitness Tracker server.

This module provides the two core primitives every entity service uses:
- Identifier Generator: strictly increasing, durable 64-bit ids
- Typed Record Store: id -> record mapping with insert, lookup and ordered scan

Backends:
- SQLite (durable, default)
- In-memory (for testing)

Invariants:
    - next_id() never returns an identifier twice, across restarts too
    - insert() is atomic per write; a failed write leaves the prior value
    - scan() is ordered by ascending identifier

How to change safely:
    - New backends must implement the IdGenerator and RecordStore protocols
    - Run the restart-durability tests against any new durable backend
"""

from .base import (
    ACTIVITIES,
    CHALLENGES,
    ENTITY_KINDS,
    FOLLOWS,
    MAX_ID,
    MIN_ID,
    SHARED_ID_REGION,
    USERS,
    IdGenerator,
    RecordStore,
    Storage,
    StorableRecord,
    create_storage,
    id_region,
)
from .memory import InMemoryIdGenerator, InMemoryRecordStore
from .sqlite import SqliteDatabase, SqliteIdGenerator, SqliteRecordStore

__all__ = [
    # Protocols and types
    "IdGenerator",
    "RecordStore",
    "StorableRecord",
    "Storage",
    # Constants
    "MIN_ID",
    "MAX_ID",
    "USERS",
    "ACTIVITIES",
    "CHALLENGES",
    "FOLLOWS",
    "ENTITY_KINDS",
    "SHARED_ID_REGION",
    "id_region",
    # Factory
    "create_storage",
    # Implementations
    "SqliteDatabase",
    "SqliteIdGenerator",
    "SqliteRecordStore",
    "InMemoryIdGenerator",
    "InMemoryRecordStore",
]
