"""
Base protocols and types for the record store abstraction.

This module defines the IdGenerator and RecordStore protocols that all
backends must implement, the storable-record capability every record type
provides, and the factory that wires a complete set of stores from config.

Invariants:
    - Identifiers are unsigned 64-bit integers issued in strictly increasing order
    - A store maps each identifier to at most one record of a single type
    - scan() yields pairs in ascending identifier order
    - Every store and counter owns a disjoint region of the backing medium

How to change safely:
    - Protocol changes require updating all implementations
    - Region names are persisted; renaming one orphans its data
    - Keep encode_record() the only place the size bound is enforced
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

from ..errors import RecordTooLargeError
from ..models import Activity, Challenge, Follow, User

if TYPE_CHECKING:
    from ..config import IdConfig, StorageConfig

logger = logging.getLogger(__name__)

MIN_ID = 0
MAX_ID = 2**64 - 1

USERS = "users"
ACTIVITIES = "activities"
CHALLENGES = "challenges"
FOLLOWS = "follows"
ENTITY_KINDS = (USERS, ACTIVITIES, CHALLENGES, FOLLOWS)

SHARED_ID_REGION = "ids:shared"


def id_region(kind: str) -> str:
    """Counter region for a per-entity id sequence."""
    return f"ids:{kind}"


def is_valid_id(record_id: int) -> bool:
    """Whether ``record_id`` is an unsigned 64-bit integer."""
    return isinstance(record_id, int) and not isinstance(record_id, bool) and (
        MIN_ID <= record_id <= MAX_ID
    )


@runtime_checkable
class StorableRecord(Protocol):
    """Capability a record type needs to live in a RecordStore.

    Contract:
        - ``id`` equals the key the record is stored under
        - ``type(r).from_bytes(r.to_bytes()) == r``
    """

    id: int
    record_type: str

    def to_bytes(self) -> bytes: ...

    @classmethod
    def from_bytes(cls, data: bytes) -> StorableRecord: ...


T = TypeVar("T", bound=StorableRecord)


def encode_record(record: StorableRecord, max_size: int) -> bytes:
    """Encode a record and enforce the size bound.

    Args:
        record: Record to encode
        max_size: Maximum encoded size in bytes

    Returns:
        Encoded bytes

    Raises:
        SerializationError: If the record cannot be encoded
        RecordTooLargeError: If the encoding exceeds ``max_size``
    """
    data = record.to_bytes()
    if len(data) > max_size:
        raise RecordTooLargeError(record.record_type, len(data), max_size)
    return data


def check_insert(record_id: int, record: StorableRecord) -> None:
    """Reject an insert that would break the id == key invariant.

    Raises:
        ValueError: If the id is out of range or doesn't match the record
    """
    if not is_valid_id(record_id):
        raise ValueError(f"Identifier out of unsigned 64-bit range: {record_id!r}")
    if record.id != record_id:
        raise ValueError(
            f"Record id {record.id} does not match the key {record_id} it is stored under"
        )


@runtime_checkable
class IdGenerator(Protocol):
    """Protocol for identifier generators.

    Durability contract:
        - next_id() returns only after the advanced counter is persisted
        - After a restart the sequence resumes from the last persisted value

    Example:
        >>> ids = SqliteIdGenerator(db, SHARED_ID_REGION)
        >>> ids.next_id()
        0
        >>> ids.next_id()
        1
    """

    @abstractmethod
    def next_id(self) -> int:
        """Return the current counter value and persist it incremented by one.

        Raises:
            PersistenceError: If the counter cannot be advanced durably
        """
        ...

    @abstractmethod
    def peek(self) -> int:
        """Return the identifier the next call to next_id() would issue."""
        ...


class RecordStore(Protocol[T]):
    """Protocol for typed record stores.

    Example:
        >>> users = SqliteRecordStore(db, "users", User)
        >>> users.insert(0, user)
        >>> users.lookup(0) == user
        True
        >>> [record_id for record_id, _ in users.scan()]
        [0]
    """

    @abstractmethod
    def insert(self, record_id: int, record: T) -> None:
        """Insert or replace the record at ``record_id``.

        Raises:
            ValueError: If ``record.id != record_id`` or the id is out of range
            SerializationError: If the record cannot be encoded within bounds
            PersistenceError: If the write fails; the prior value remains
        """
        ...

    @abstractmethod
    def lookup(self, record_id: int) -> T | None:
        """Return the record at ``record_id``, or None if absent."""
        ...

    @abstractmethod
    def scan(self) -> Iterator[tuple[int, T]]:
        """Return every (id, record) pair in ascending id order.

        Each call returns a fresh, finite iterator.
        """
        ...

    @abstractmethod
    def check_size(self, record: T) -> None:
        """Check that ``record`` fits the size bound without writing it.

        Services call this with the id set to MAX_ID (the longest encoding)
        before drawing an id, so an oversized create consumes nothing.

        Raises:
            RecordTooLargeError: If the encoding exceeds the bound
        """
        ...

    @abstractmethod
    def count(self) -> int:
        """Number of stored records."""
        ...


@dataclass
class Storage:
    """A complete set of stores and id generators for one deployment.

    Attributes:
        users: User records
        activities: Activity records
        challenges: Challenge records
        follows: Follow records
        ids: Id generator per entity kind; with a shared scope every entry
            is the same generator instance
    """

    users: RecordStore[User]
    activities: RecordStore[Activity]
    challenges: RecordStore[Challenge]
    follows: RecordStore[Follow]
    ids: dict[str, IdGenerator]

    def counts(self) -> dict[str, int]:
        """Record count per entity kind."""
        return {
            USERS: self.users.count(),
            ACTIVITIES: self.activities.count(),
            CHALLENGES: self.challenges.count(),
            FOLLOWS: self.follows.count(),
        }


def create_storage(storage_config: StorageConfig, id_config: IdConfig) -> Storage:
    """Factory function to create stores and id generators from configuration.

    Args:
        storage_config: Record store configuration
        id_config: Identifier generator configuration

    Returns:
        Storage wired for the configured backend and id scope

    Raises:
        ValueError: If backend is not supported
    """
    from ..config import IdScope, StorageBackend
    from .memory import InMemoryIdGenerator, InMemoryRecordStore
    from .sqlite import SqliteDatabase, SqliteIdGenerator, SqliteRecordStore

    max_size = storage_config.max_record_size

    if storage_config.backend == StorageBackend.SQLITE:
        db = SqliteDatabase(
            storage_config.db_path,
            wal_mode=storage_config.wal_mode,
            busy_timeout_ms=storage_config.busy_timeout_ms,
        )
        db.initialize()

        def make_ids(region: str) -> IdGenerator:
            return SqliteIdGenerator(db, region)

        def make_store(kind: str, record_cls: type) -> RecordStore:
            return SqliteRecordStore(db, kind, record_cls, max_record_size=max_size)

    elif storage_config.backend == StorageBackend.MEMORY:

        def make_ids(region: str) -> IdGenerator:
            return InMemoryIdGenerator()

        def make_store(kind: str, record_cls: type) -> RecordStore:
            return InMemoryRecordStore(record_cls, max_record_size=max_size)

    else:
        raise ValueError(f"Unsupported storage backend: {storage_config.backend}")

    if id_config.scope == IdScope.SHARED:
        shared = make_ids(SHARED_ID_REGION)
        ids = {kind: shared for kind in ENTITY_KINDS}
    else:
        ids = {kind: make_ids(id_region(kind)) for kind in ENTITY_KINDS}

    logger.info(
        "Storage created",
        extra={
            "storage_backend": storage_config.backend.value,
            "id_scope": id_config.scope.value,
        },
    )

    return Storage(
        users=make_store(USERS, User),
        activities=make_store(ACTIVITIES, Activity),
        challenges=make_store(CHALLENGES, Challenge),
        follows=make_store(FOLLOWS, Follow),
        ids=ids,
    )
