"""Domain Ports - Abstract Contracts for Record Persistence.

This module defines the Port interfaces (abstract contracts) that storage
adapters must implement, together with the error taxonomy and the Result
type used to report failures without raising.

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Storage adapters (flat files today) implement RecordStorePort
    - Domain services depend on the port, never on a concrete store
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError

T = TypeVar('T')
R = TypeVar('R')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Result type for communicating success or failure without exceptions.

    Store mutations return a Result so a failed disk write can be shown to the
    user while the in-memory change stays in place for the rest of the session.

    Attributes:
        success: True if the operation succeeded, False otherwise
        value: The successful result value (only present if success=True)
        error: Error message (only present if success=False)
        error_type: Type of error (PersistenceError, ValidationError, ...)
        error_details: Additional error context (path, operation, ...)
        exception: The exception that caused the failure, if any

    Example:
        ```python
        result = store.add(patient)
        if result.is_failure():
            console.print(f"Saved in memory only: {result.error}")
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None
    exception: Optional[Exception] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        """Create a successful result.

        Parameters:
            value: The successful result value

        Returns:
            Result: Success result with the value
        """
        return cls(success=True, value=value)

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None,
        value: Optional[T] = None,
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Type of error (e.g., "PersistenceError")
            error_details: Additional context (path, operation, ...)
            value: Partial value to hand back alongside the failure

        Returns:
            Result: Failure result with error information
        """
        error_message = str(error) if isinstance(error, Exception) else error
        error_type_name = error_type or (type(error).__name__ if isinstance(error, Exception) else "UnknownError")

        return cls(
            success=False,
            value=value,
            error=error_message,
            error_type=error_type_name,
            error_details=error_details or {},
            exception=error if isinstance(error, Exception) else None,
        )

    def is_success(self) -> bool:
        """Check if result is successful."""
        return self.success

    def is_failure(self) -> bool:
        """Check if result is a failure."""
        return not self.success


# ============================================================================
# Custom Exception Hierarchy
# ============================================================================

class RecordError(Exception):
    """Base exception for all record-keeping errors."""
    pass


class ValidationError(RecordError):
    """Raised when an entity field is missing, malformed or out of range.

    Attributes:
        field: Name of the offending field, when known
        details: Additional error details or validation messages
    """

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.field = field
        self.details = details or {}

    @classmethod
    def from_pydantic(cls, exc: PydanticValidationError) -> 'ValidationError':
        """Convert a Pydantic validation failure, keeping the first offending field.

        Parameters:
            exc: Error raised while constructing or assigning to a model

        Returns:
            ValidationError naming the field and carrying every reported error
        """
        errors = exc.errors()
        first = errors[0] if errors else {}
        loc = first.get("loc") or ()
        field = str(loc[0]) if loc else None
        message = first.get("msg", str(exc))
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        if field and field not in message:
            message = f"{field}: {message}"
        return cls(message, field=field, details={"errors": errors})


class PersistenceError(RecordError):
    """Raised when a blob, mirror or log file cannot be read or written.

    Attributes:
        path: File that failed
        operation: What was being attempted (load, save_blob, write_mirror, append_log)
    """

    def __init__(self, message: str, path: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.path = path
        self.operation = operation


class RecordNotFoundError(RecordError):
    """Raised by services when an operation needs a record that is not on file."""

    def __init__(self, message: str, record_id: Optional[str] = None):
        super().__init__(message)
        self.record_id = record_id


class PermissionDeniedError(RecordError):
    """Raised when the acting user's role may not perform an action."""

    def __init__(self, message: str, role: Optional[str] = None, action: Optional[str] = None):
        super().__init__(message)
        self.role = role
        self.action = action


class AuthenticationError(RecordError):
    """Raised when a username/password pair does not match any account."""
    pass


# ============================================================================
# Storage Port
# ============================================================================

class RecordStorePort(ABC, Generic[R]):
    """Abstract contract for one entity type's record store.

    Key Principles:
        - Ordered: records keep insertion order
        - Lenient: duplicate keys are accepted on add
        - Case-insensitive keys for update, delete and lookup
        - Failures to persist come back as a failed Result, not an exception

    Example Usage:
        ```python
        store.add(patient)
        found = store.find_by_id("p001")
        store.update(found)
        store.delete("P001")
        ```
    """

    @abstractmethod
    def add(self, record: R) -> Result[R]:
        """Append a record and persist the whole collection.

        Returns:
            Result carrying the record; a failure if the write did not land
        """
        pass

    @abstractmethod
    def update(self, record: R) -> Result[bool]:
        """Replace the first record with the same key.

        Returns:
            Result carrying True if a record was replaced, False if none matched
        """
        pass

    @abstractmethod
    def delete(self, key: str) -> Result[int]:
        """Remove every record with the given key.

        Returns:
            Result carrying the number of records removed
        """
        pass

    @abstractmethod
    def all(self) -> List[R]:
        """Return a copy of the record list in insertion order."""
        pass

    @abstractmethod
    def find_by_id(self, key: str) -> Optional[R]:
        """Return the first record with the given key, or None."""
        pass
