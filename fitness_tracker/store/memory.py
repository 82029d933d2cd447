"""
In-memory identifier generator and record store for testing.

This module provides a process-local backend for:
- Unit tests
- Local development without a data directory

Invariants:
    - All data is lost on process exit
    - Same ordering, size-bound and round-trip guarantees as the SQLite backend
    - Records are held encoded, so callers never share mutable state with the store

How to change safely:
    - This is test-only code, changes don't affect durable deployments
    - Keep behavior identical to the SQLite backend apart from durability
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Generic

from ..errors import PersistenceError
from .base import MAX_ID, T, check_insert, encode_record, is_valid_id

logger = logging.getLogger(__name__)


class InMemoryIdGenerator:
    """Process-local counter.

    Example:
        >>> ids = InMemoryIdGenerator()
        >>> ids.next_id(), ids.next_id()
        (0, 1)
    """

    def __init__(self, start: int = 0) -> None:
        """Initialize the counter.

        Args:
            start: First identifier to issue
        """
        if not is_valid_id(start):
            raise ValueError(f"Identifier out of unsigned 64-bit range: {start!r}")
        self._next = start

    def next_id(self) -> int:
        if self._next >= MAX_ID:
            raise PersistenceError("Identifier space exhausted")
        current = self._next
        self._next = current + 1
        return current

    def peek(self) -> int:
        return self._next


class InMemoryRecordStore(Generic[T]):
    """Dict-backed typed record store.

    Attributes:
        record_cls: Record type decoded on reads
        max_record_size: Upper bound on an encoded record, in bytes
    """

    def __init__(self, record_cls: type[T], max_record_size: int = 1024) -> None:
        self.record_cls = record_cls
        self.max_record_size = max_record_size
        self._records: dict[int, bytes] = {}

    def insert(self, record_id: int, record: T) -> None:
        check_insert(record_id, record)
        self._records[record_id] = encode_record(record, self.max_record_size)
        logger.debug(
            "Stored record",
            extra={"record_type": self.record_cls.record_type, "record_id": record_id},
        )

    def lookup(self, record_id: int) -> T | None:
        body = self._records.get(record_id)
        if body is None:
            return None
        return self.record_cls.from_bytes(body)

    def scan(self) -> Iterator[tuple[int, T]]:
        return iter(
            [
                (record_id, self.record_cls.from_bytes(body))
                for record_id, body in sorted(self._records.items())
            ]
        )

    def check_size(self, record: T) -> None:
        encode_record(record, self.max_record_size)

    def count(self) -> int:
        return len(self._records)

    def clear(self) -> None:
        """Drop all records (test helper)."""
        self._records.clear()
