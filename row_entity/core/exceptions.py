"""row_entity exception hierarchy.

Raw driver exceptions are never exposed directly: they are chained as the
``__cause__`` of a row_entity error that names the failing stage.
"""

from __future__ import annotations


class EntityError(Exception):
    """Base exception for all row_entity errors."""


# --- Mapping ---


class MappingError(EntityError):
    """Base for mapping errors."""


class InvalidMappingError(MappingError):
    """Raised when a mapped type cannot be resolved into metadata.

    Fatal: the type's declarations must be fixed, retrying never helps.
    """

    def __init__(self, type_name: str, detail: str) -> None:
        self.type_name = type_name
        self.detail = detail
        super().__init__(f"Invalid mapping for {type_name}: {detail}")


class ColumnMismatchError(MappingError):
    """Raised when a row cannot be turned into a new entity instance."""

    def __init__(self, target_class: str, detail: str) -> None:
        self.target_class = target_class
        super().__init__(f"Cannot build {target_class} from row: {detail}")


# --- Execution ---


class NotFoundError(EntityError):
    """Raised when a by-key statement matched zero rows."""

    def __init__(self, command: str, table: str) -> None:
        self.command = command
        self.table = table
        super().__init__(f"{command} on '{table}': record not found")


class ConflictError(EntityError):
    """Raised when a write violated a uniqueness constraint."""

    def __init__(self, command: str, table: str) -> None:
        self.command = command
        self.table = table
        super().__init__(f"{command} on '{table}': record conflict")


class DriverError(EntityError):
    """Raised for any other failure reported by the database driver."""

    def __init__(self, command: str, detail: str) -> None:
        self.command = command
        super().__init__(f"{command} statement failed: {detail}")


class HookError(EntityError):
    """Raised when a lifecycle hook fails.

    The hook's own exception is chained as ``__cause__``.
    """

    def __init__(self, stage: str, detail: str) -> None:
        self.stage = stage
        super().__init__(f"{stage}, {detail}")


class CacheError(EntityError):
    """Raised when the cache collaborator fails or is misconfigured."""

    def __init__(self, stage: str, detail: str) -> None:
        self.stage = stage
        super().__init__(f"{stage}, {detail}")


class OperationTimeoutError(EntityError, TimeoutError):
    """Raised when an operation exceeded its read or write deadline."""

    def __init__(self, operation: str, timeout: float) -> None:
        self.operation = operation
        self.timeout = timeout
        super().__init__(f"{operation} exceeded {timeout:g}s deadline")


# --- Transaction ---


class TransactionError(EntityError):
    """Base for transaction errors."""


class TransactionStateError(TransactionError):
    """Raised on invalid transaction state transitions."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} transaction in state '{current_state}'")


# --- Adapter ---


class AdapterError(EntityError):
    """Base for adapter errors."""


class ConnectionError(AdapterError):  # noqa: A001
    """Raised on connection failures."""


class PoolError(AdapterError):
    """Raised on connection pool failures."""
