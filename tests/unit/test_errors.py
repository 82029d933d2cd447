"""
Unit tests for error types.

Tests cover:
- Hierarchy used by the HTTP error mapping
- Error codes and details in to_dict()
"""

from fitness_tracker.errors import (
    FitnessTrackerError,
    NotFoundError,
    PersistenceError,
    RecordTooLargeError,
    SerializationError,
    StorageError,
    ValidationError,
)


class TestErrors:
    """Tests for the error hierarchy."""

    def test_hierarchy(self):
        assert issubclass(ValidationError, FitnessTrackerError)
        assert issubclass(NotFoundError, FitnessTrackerError)
        assert issubclass(PersistenceError, StorageError)
        assert issubclass(RecordTooLargeError, SerializationError)
        assert issubclass(SerializationError, StorageError)

    def test_validation_error(self):
        error = ValidationError("bad", field_name="email")
        assert error.to_dict() == {
            "error": "bad",
            "error_code": "VALIDATION_ERROR",
            "details": {"field": "email"},
        }

    def test_not_found_error(self):
        error = NotFoundError("missing", resource_type="user", resource_id=3)
        assert error.code == "NOT_FOUND"
        assert error.details == {"resource_type": "user", "resource_id": 3}
        assert str(error) == "missing"

    def test_persistence_error(self):
        error = PersistenceError("disk gone", region="ids:shared")
        assert error.code == "PERSISTENCE_ERROR"
        assert error.region == "ids:shared"

    def test_record_too_large(self):
        error = RecordTooLargeError("challenge", size=2000, max_size=1024)
        assert error.code == "RECORD_TOO_LARGE"
        assert error.details == {"record_type": "challenge", "size": 2000, "max_size": 1024}
        assert "2000" in error.message

    def test_base_default_code(self):
        assert FitnessTrackerError("x").code == "FITNESS_TRACKER_ERROR"
        assert StorageError("x").code == "STORAGE_ERROR"
