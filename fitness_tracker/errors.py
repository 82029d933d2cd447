"""
Error types for the Fitness Tracker server.

This module defines all exception types raised by the store and services:
- FitnessTrackerError: Base exception
- ValidationError: Caller precondition failures
- NotFoundError: Unknown identifier
- StorageError: Base for durable-store faults
- PersistenceError: Durable read/write failure (fatal for the operation)
- SerializationError: Record encode/decode failure
- RecordTooLargeError: Encoded record exceeds the configured bound

Invariants:
    - All errors inherit from FitnessTrackerError
    - Errors include context for debugging
    - Validation and not-found errors are raised before any store mutation
"""

from __future__ import annotations

from typing import Any


class FitnessTrackerError(Exception):
    """Base exception for all Fitness Tracker errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "FITNESS_TRACKER_ERROR"
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON error body used by the HTTP surface."""
        return {"error": self.message, "error_code": self.code, "details": self.details}


class ValidationError(FitnessTrackerError):
    """Caller input failed validation.

    Raised when:
    - A required field is empty
    - An email address has no '@'
    - A user tries to follow themselves
    """

    def __init__(self, message: str, field_name: str | None = None) -> None:
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"field": field_name},
        )
        self.field_name = field_name


class NotFoundError(FitnessTrackerError):
    """Resource not found.

    Raised when:
    - A referenced user doesn't exist
    - A challenge doesn't exist
    """

    def __init__(self, message: str, resource_type: str, resource_id: int) -> None:
        super().__init__(
            message,
            code="NOT_FOUND",
            details={
                "resource_type": resource_type,
                "resource_id": resource_id,
            },
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class StorageError(FitnessTrackerError):
    """Base exception for record store faults."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code=code or "STORAGE_ERROR", details=details)


class PersistenceError(StorageError):
    """The durable medium failed.

    Raised when:
    - The database file cannot be opened or written
    - The identifier counter cannot be advanced
    - The identifier space is exhausted

    The operation that hit this error must be abandoned; nothing it was
    about to write is visible afterwards.
    """

    def __init__(self, message: str, region: str | None = None) -> None:
        super().__init__(message, code="PERSISTENCE_ERROR", details={"region": region})
        self.region = region


class SerializationError(StorageError):
    """A record could not be encoded or decoded."""

    def __init__(
        self,
        message: str,
        record_type: str | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=code or "SERIALIZATION_ERROR",
            details={"record_type": record_type, **(details or {})},
        )
        self.record_type = record_type


class RecordTooLargeError(SerializationError):
    """Encoded record exceeds the store's size bound.

    Attributes:
        size: Encoded size in bytes
        max_size: Configured bound in bytes
    """

    def __init__(self, record_type: str, size: int, max_size: int) -> None:
        super().__init__(
            f"Encoded {record_type} is {size} bytes, exceeding the {max_size} byte limit",
            record_type=record_type,
            code="RECORD_TOO_LARGE",
            details={"size": size, "max_size": max_size},
        )
        self.size = size
        self.max_size = max_size
