"""
SQLite-backed identifier generator and record stores.

One SQLite file holds every region: each entity kind's records and each id
counter. Regions are disjoint because every row is keyed by its region name.

Invariants:
    - Every write is a single atomic SQLite transaction
    - The counter row is advanced in the same transaction that reads it
    - Record keys preserve unsigned 64-bit ordering (see _to_key)
    - sqlite3 and OS errors never escape; they surface as PersistenceError

How to change safely:
    - Schema migrations must be backward compatible
    - Never change the key mapping without migrating existing rows
    - Keep synchronous=FULL; next_id() durability depends on it

Table schema:
    id_counters:
        - region TEXT PRIMARY KEY
        - next_value INTEGER (mapped u64)

    records:
        - region TEXT
        - record_key INTEGER (mapped u64)
        - body BLOB (encoded record)
        - PRIMARY KEY (region, record_key)
"""

from __future__ import annotations

import logging
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Generic

from ..errors import PersistenceError
from .base import MAX_ID, T, check_insert, encode_record, is_valid_id

logger = logging.getLogger(__name__)

# SQLite integers are signed 64-bit; shifting by 2**63 maps [0, 2**64 - 1]
# onto the signed range without changing order.
_KEY_OFFSET = 2**63


def _to_key(value: int) -> int:
    return value - _KEY_OFFSET


def _from_key(key: int) -> int:
    return key + _KEY_OFFSET


class SqliteDatabase:
    """The SQLite file backing all regions.

    Connections are opened per operation and closed on exit.

    Example:
        >>> db = SqliteDatabase("/var/lib/fitness-tracker/fitness_tracker.db")
        >>> db.initialize()
    """

    SCHEMA_VERSION = 1

    def __init__(
        self,
        path: str | Path,
        wal_mode: bool = True,
        busy_timeout_ms: int = 5000,
    ) -> None:
        """Initialize the database handle.

        Args:
            path: Database file path
            wal_mode: Enable SQLite WAL mode
            busy_timeout_ms: SQLite busy timeout
        """
        self.path = Path(path)
        self.wal_mode = wal_mode
        self.busy_timeout_ms = busy_timeout_ms

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Open a configured connection.

        Yields:
            SQLite connection in autocommit mode

        Raises:
            PersistenceError: If the file cannot be opened or an operation fails
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                str(self.path),
                timeout=self.busy_timeout_ms / 1000.0,
                isolation_level=None,  # Autocommit by default, explicit transactions
            )
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Cannot open database {self.path}: {e}") from e

        conn.row_factory = sqlite3.Row

        try:
            conn.execute(f"PRAGMA busy_timeout = {self.busy_timeout_ms}")
            if self.wal_mode:
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA synchronous = FULL")

            yield conn
        except sqlite3.Error as e:
            raise PersistenceError(f"Database operation failed: {e}") from e
        finally:
            conn.close()

    def initialize(self) -> None:
        """Create the schema if it doesn't exist."""
        with self.connect() as conn:
            conn.executescript(f"""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY,
                    applied_at INTEGER NOT NULL
                );

                CREATE TABLE IF NOT EXISTS id_counters (
                    region TEXT PRIMARY KEY,
                    next_value INTEGER NOT NULL
                );

                CREATE TABLE IF NOT EXISTS records (
                    region TEXT NOT NULL,
                    record_key INTEGER NOT NULL,
                    body BLOB NOT NULL,
                    PRIMARY KEY (region, record_key)
                ) WITHOUT ROWID;

                INSERT OR IGNORE INTO schema_version (version, applied_at)
                VALUES ({self.SCHEMA_VERSION}, strftime('%s', 'now') * 1000);
            """)
        logger.info(f"Initialized database: {self.path}")


class SqliteIdGenerator:
    """Durable identifier counter stored in one id_counters row.

    Attributes:
        region: Counter region name
    """

    def __init__(self, db: SqliteDatabase, region: str) -> None:
        self._db = db
        self.region = region

    def next_id(self) -> int:
        """Return the current value and durably store value + 1.

        Raises:
            PersistenceError: If the counter cannot be advanced or the id
                space is exhausted
        """
        with self._db.connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                current = self._read(conn)
                if current >= MAX_ID:
                    raise PersistenceError(
                        f"Identifier space exhausted for region {self.region}",
                        region=self.region,
                    )
                conn.execute(
                    "INSERT OR REPLACE INTO id_counters (region, next_value) VALUES (?, ?)",
                    (self.region, _to_key(current + 1)),
                )
                conn.execute("COMMIT")
            except Exception:
                # A failed COMMIT may already have ended the transaction
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                raise

        logger.debug("Issued id", extra={"region": self.region, "record_id": current})
        return current

    def peek(self) -> int:
        with self._db.connect() as conn:
            return self._read(conn)

    def _read(self, conn: sqlite3.Connection) -> int:
        row = conn.execute(
            "SELECT next_value FROM id_counters WHERE region = ?",
            (self.region,),
        ).fetchone()
        return _from_key(row["next_value"]) if row else 0


class SqliteRecordStore(Generic[T]):
    """Typed record store over one region of the records table.

    Attributes:
        region: Region name (the entity kind)
        record_cls: Record type decoded on reads
        max_record_size: Upper bound on an encoded record, in bytes
    """

    def __init__(
        self,
        db: SqliteDatabase,
        region: str,
        record_cls: type[T],
        max_record_size: int = 1024,
    ) -> None:
        self._db = db
        self.region = region
        self.record_cls = record_cls
        self.max_record_size = max_record_size

    def insert(self, record_id: int, record: T) -> None:
        check_insert(record_id, record)
        body = encode_record(record, self.max_record_size)

        with self._db.connect() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO records (region, record_key, body) VALUES (?, ?, ?)",
                (self.region, _to_key(record_id), body),
            )

        logger.debug(
            "Stored record",
            extra={"region": self.region, "record_id": record_id, "size": len(body)},
        )

    def lookup(self, record_id: int) -> T | None:
        if not is_valid_id(record_id):
            return None

        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT body FROM records WHERE region = ? AND record_key = ?",
                (self.region, _to_key(record_id)),
            ).fetchone()

        if row is None:
            return None
        return self.record_cls.from_bytes(bytes(row["body"]))

    def scan(self) -> Iterator[tuple[int, T]]:
        started = time.monotonic()
        with self._db.connect() as conn:
            rows = conn.execute(
                "SELECT record_key, body FROM records WHERE region = ? ORDER BY record_key",
                (self.region,),
            ).fetchall()

        logger.debug(
            "Scanned region",
            extra={
                "region": self.region,
                "rows": len(rows),
                "elapsed_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return iter(
            [
                (_from_key(row["record_key"]), self.record_cls.from_bytes(bytes(row["body"])))
                for row in rows
            ]
        )

    def check_size(self, record: T) -> None:
        encode_record(record, self.max_record_size)

    def count(self) -> int:
        with self._db.connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM records WHERE region = ?", (self.region,)
            ).fetchone()
        return row[0]
