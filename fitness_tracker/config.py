"""
Configuration management for the Fitness Tracker server.

All configuration is done via environment variables - no config files.
This module provides typed configuration classes with validation.

Invariants:
    - All settings have sensible defaults for local development
    - Whether entity kinds share one id sequence is an explicit setting
    - MAX_RECORD_SIZE only ever grows between deployments

How to change safely:
    - Add new settings with defaults that maintain backward compatibility
    - Never shrink MAX_RECORD_SIZE below the size of stored records
    - Switching ID_SCOPE on an existing database keeps old counters intact
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)


class StorageBackend(Enum):
    """Supported record store backends."""

    SQLITE = "sqlite"
    MEMORY = "memory"


class IdScope(Enum):
    """How identifier sequences are shared between entity kinds."""

    SHARED = "shared"
    PER_ENTITY = "per_entity"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass(frozen=True)
class StorageConfig:
    """Record store configuration.

    Attributes:
        backend: Which store backend to use
        data_dir: Directory holding the SQLite database file
        db_filename: SQLite database file name
        wal_mode: SQLite WAL mode enabled
        busy_timeout_ms: SQLite busy timeout in milliseconds
        max_record_size: Upper bound on an encoded record, in bytes
    """

    backend: StorageBackend = StorageBackend.SQLITE
    data_dir: str = "/var/lib/fitness-tracker"
    db_filename: str = "fitness_tracker.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000
    max_record_size: int = 1024

    @property
    def db_path(self) -> str:
        return os.path.join(self.data_dir, self.db_filename)

    @classmethod
    def from_env(cls) -> StorageConfig:
        """Load configuration from environment variables."""
        backend_str = os.getenv("STORAGE_BACKEND", "sqlite").lower()
        try:
            backend = StorageBackend(backend_str)
        except ValueError:
            raise ValueError(
                f"Invalid STORAGE_BACKEND '{backend_str}'. Must be one of: sqlite, memory"
            )

        return cls(
            backend=backend,
            data_dir=os.getenv("DATA_DIR", "/var/lib/fitness-tracker"),
            db_filename=os.getenv("DB_FILENAME", "fitness_tracker.db"),
            wal_mode=_env_bool("SQLITE_WAL_MODE", "true"),
            busy_timeout_ms=int(os.getenv("SQLITE_BUSY_TIMEOUT_MS", "5000")),
            max_record_size=int(os.getenv("MAX_RECORD_SIZE", "1024")),
        )


@dataclass(frozen=True)
class IdConfig:
    """Identifier generator configuration.

    Attributes:
        scope: SHARED gives every entity kind one global sequence;
            PER_ENTITY gives each kind its own counter
    """

    scope: IdScope = IdScope.SHARED

    @classmethod
    def from_env(cls) -> IdConfig:
        """Load configuration from environment variables."""
        scope_str = os.getenv("ID_SCOPE", "shared").lower()
        try:
            scope = IdScope(scope_str)
        except ValueError:
            raise ValueError(f"Invalid ID_SCOPE '{scope_str}'. Must be one of: shared, per_entity")
        return cls(scope=scope)


@dataclass(frozen=True)
class HttpConfig:
    """HTTP server configuration.

    Attributes:
        host: Host to bind to
        port: Port to listen on
    """

    host: str = "0.0.0.0"
    port: int = 8081

    @classmethod
    def from_env(cls) -> HttpConfig:
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("HTTP_HOST", "0.0.0.0"),
            port=int(os.getenv("HTTP_PORT", "8081")),
        )


@dataclass(frozen=True)
class ServiceConfig:
    """Entity service configuration.

    Attributes:
        leaderboard_size: Maximum users returned by the leaderboard
    """

    leaderboard_size: int = 10

    @classmethod
    def from_env(cls) -> ServiceConfig:
        """Load configuration from environment variables."""
        return cls(leaderboard_size=int(os.getenv("LEADERBOARD_SIZE", "10")))


@dataclass(frozen=True)
class ObservabilityConfig:
    """Logging configuration.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Log format (json, text)
    """

    log_level: str = "INFO"
    log_format: str = "json"

    @classmethod
    def from_env(cls) -> ObservabilityConfig:
        """Load configuration from environment variables."""
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "json"),
        )


@dataclass
class ServerConfig:
    """Complete server configuration.

    Attributes:
        storage: Record store configuration
        ids: Identifier generator configuration
        http: HTTP server configuration
        service: Entity service configuration
        observability: Logging configuration
    """

    storage: StorageConfig = field(default_factory=StorageConfig)
    ids: IdConfig = field(default_factory=IdConfig)
    http: HttpConfig = field(default_factory=HttpConfig)
    service: ServiceConfig = field(default_factory=ServiceConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)

    @classmethod
    def from_env(cls) -> ServerConfig:
        """Load complete configuration from environment variables.

        Returns:
            ServerConfig with all sections populated from environment.

        Raises:
            ValueError: If configuration is missing or invalid.
        """
        config = cls(
            storage=StorageConfig.from_env(),
            ids=IdConfig.from_env(),
            http=HttpConfig.from_env(),
            service=ServiceConfig.from_env(),
            observability=ObservabilityConfig.from_env(),
        )

        config.validate()
        return config

    def validate(self) -> None:
        """Validate configuration consistency.

        Raises:
            ValueError: If configuration is invalid.
        """
        if self.storage.max_record_size <= 0:
            raise ValueError("MAX_RECORD_SIZE must be positive")
        if self.storage.busy_timeout_ms < 0:
            raise ValueError("SQLITE_BUSY_TIMEOUT_MS must not be negative")
        if self.service.leaderboard_size <= 0:
            raise ValueError("LEADERBOARD_SIZE must be positive")
        if not 0 < self.http.port < 65536:
            raise ValueError(f"HTTP_PORT out of range: {self.http.port}")
        if self.observability.log_format not in ("json", "text"):
            raise ValueError(
                f"Invalid LOG_FORMAT '{self.observability.log_format}'. Must be one of: json, text"
            )

        if self.storage.backend == StorageBackend.SQLITE and not os.path.exists(
            self.storage.data_dir
        ):
            logger.warning(
                f"Data directory does not exist: {self.storage.data_dir}. "
                "It will be created on first write."
            )

    def log_config(self) -> None:
        """Log configuration."""
        logger.info(
            "Server configuration loaded",
            extra={
                "storage_backend": self.storage.backend.value,
                "db_path": self.storage.db_path
                if self.storage.backend == StorageBackend.SQLITE
                else None,
                "max_record_size": self.storage.max_record_size,
                "id_scope": self.ids.scope.value,
                "http_bind": f"{self.http.host}:{self.http.port}",
                "leaderboard_size": self.service.leaderboard_size,
                "log_level": self.observability.log_level,
            },
        )
