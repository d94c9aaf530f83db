"""Domain Ports - Abstract Contracts for the Ledger Collaborators.

This module defines the Port interfaces (abstract contracts) that Adapters must implement.
Following Hexagonal Architecture, the Domain Core defines what it needs, not how it's provided.

Security Impact:
    - Caller identity is only ever obtained through IdentityPort
    - Absence in the state store is a value (None/empty bytes), never an exception
    - Authorization outcomes are communicated through Result, not exceptions

Architecture:
    - Pure abstract interfaces with zero infrastructure dependencies
    - Adapters (in-memory, DuckDB, X.509 identity, system clock) implement these ports
    - All state store calls are coroutines so independent reads can be awaited jointly
    - The hosting environment is assumed to serialize commits of concurrent invocations;
      no port exposes conditional writes or cross-key transactions
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

# Type variable for Result generic
T = TypeVar('T')


# ============================================================================
# Result Type for Success/Failure Communication
# ============================================================================

@dataclass(frozen=True)
class Result(Generic[T]):
    """Result type for communicating success or failure without exceptions.

    Used for outcomes that are expected and first-class, such as a caller without
    a grant attempting to read a record. Callers must check ``success`` rather
    than rely on an exception being raised.

    Attributes:
        success: True if the operation succeeded, False otherwise
        value: The successful result value (only present if success=True)
        error: Error message (only present if success=False)
        error_type: Type of error (e.g. "AccessDenied")
        error_details: Additional error context (record_id, entity_id, etc.)

    Example:
        ```python
        result = await manager.get_record("r1")
        if result.is_success():
            render(result.value)
        else:
            log_denied(result.error, result.error_details)
        ```
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    error_details: Optional[dict] = None

    @classmethod
    def success_result(cls, value: T) -> 'Result[T]':
        """Create a successful result.

        Parameters:
            value: The successful result value

        Returns:
            Result: Success result with the value
        """
        return cls(
            success=True,
            value=value,
            error=None,
            error_type=None,
            error_details=None
        )

    @classmethod
    def failure_result(
        cls,
        error: Union[str, Exception],
        error_type: Optional[str] = None,
        error_details: Optional[dict] = None
    ) -> 'Result[T]':
        """Create a failure result.

        Parameters:
            error: Error message or exception
            error_type: Type of error (e.g., "AccessDenied")
            error_details: Additional context

        Returns:
            Result: Failure result with error information
        """
        error_message = str(error) if isinstance(error, Exception) else error
        error_type_name = error_type or (type(error).__name__ if isinstance(error, Exception) else "UnknownError")

        return cls(
            success=False,
            value=None,
            error=error_message,
            error_type=error_type_name,
            error_details=error_details or {}
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

class LedgerError(Exception):
    """Base exception for all ledger operation errors.

    Attributes:
        key: The state store key involved, if any
        details: Additional error context
    """

    def __init__(self, message: str, key: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.key = key
        self.details = details or {}


class NotFoundError(LedgerError):
    """Raised when a referenced patient, doctor, record or entity is absent.

    Attributes:
        kind: Kind of document that was looked up ("patient", "record", ...)
    """

    def __init__(self, kind: str, key: str):
        super().__init__(f"The {kind} with ID {key} does not exist", key=key, details={"kind": kind})
        self.kind = kind


class ConflictError(LedgerError):
    """Raised when an entity already holds a grant for a record."""

    def __init__(self, record_id: str, entity_id: str):
        super().__init__(
            f"The entity with ID {entity_id} already has an access to the record with ID {record_id}",
            key=record_id,
            details={"record_id": record_id, "entity_id": entity_id}
        )
        self.record_id = record_id
        self.entity_id = entity_id


class IdentityError(LedgerError):
    """Raised when the caller credential cannot be resolved to an identifier."""
    pass


class MetadataDecodeError(LedgerError):
    """Raised when stored record metadata is not a decodable payload."""
    pass


class StorageError(LedgerError):
    """Raised by state store adapters when the backing engine fails.

    Attributes:
        operation: The adapter operation that failed (get_state, put_state, ...)
    """

    def __init__(self, message: str, operation: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message, details=details)
        self.operation = operation


# ============================================================================
# Ports
# ============================================================================

class StateStorePort(ABC):
    """Abstract contract for the key-value world state.

    Key Principles:
        - Values are opaque bytes; the domain encodes documents as JSON
        - Absence is signalled by ``None`` or empty bytes, not an exception
        - Selector queries return every match, fully materialised, in the store's
          native iteration order

    Example Usage:
        ```python
        raw = await store.get_state("p1")
        if raw:
            patient = Patient.from_bytes(raw)
        await store.put_state("p1", patient.to_bytes())
        matches = await store.get_query_result('{"selector": {"docType": "patient"}}')
        ```
    """

    @abstractmethod
    async def get_state(self, key: str) -> Optional[bytes]:
        """Return the value stored at ``key`` or ``None``/``b""`` if absent."""
        pass

    @abstractmethod
    async def put_state(self, key: str, value: bytes) -> None:
        """Store ``value`` at ``key``, replacing any previous value."""
        pass

    @abstractmethod
    async def get_query_result(self, query_string: str) -> list[tuple[str, bytes]]:
        """Run a selector query.

        Parameters:
            query_string: JSON query of the form ``{"selector": {field: value, ...}}``

        Returns:
            list[tuple[str, bytes]]: (key, value) pairs of every matching document

        Raises:
            StorageError: If the query string is malformed or the engine fails
        """
        pass

    def close(self) -> None:
        """Release adapter resources (optional, adapter-specific)."""
        return None


class IdentityPort(ABC):
    """Abstract contract for resolving the invoking principal."""

    @abstractmethod
    async def resolve_caller_id(self) -> str:
        """Return the stable identifier of the current caller.

        Raises:
            IdentityError: If the credential does not carry an identifier
        """
        pass


class TransactionContextPort(ABC):
    """Per-invocation transaction facts supplied by the hosting environment.

    Both values are fixed for the lifetime of one invocation.
    """

    @abstractmethod
    def now(self) -> str:
        """Return the transaction timestamp as an ISO-8601 UTC string."""
        pass

    @abstractmethod
    def tx_id(self) -> str:
        """Return the transaction identifier."""
        pass


@dataclass(frozen=True)
class InvocationContext:
    """Everything one operation invocation needs from its environment.

    Attributes:
        store: World state for this invocation
        identity: Resolver for the invoking principal
        transaction: Timestamp and transaction id source
    """

    store: StateStorePort
    identity: IdentityPort
    transaction: TransactionContextPort
