"""
Error taxonomy shared by every storage backend.

Backends translate driver exceptions into these types so callers can handle a missing
conversation the same way whether it lived in a SQL table or under a Redis key. The
original driver exception is always chained as '__cause__'.
"""


class HistoryStoreError(Exception):
    """Base class for store errors."""


class NotFoundError(HistoryStoreError):
    """Raised when a lookup by id finds nothing."""

    def __init__(self, entity: str, key: str | int) -> None:
        super().__init__(f"{entity} not found: {key!r}")
        self.entity = entity
        self.key = key


class ConflictError(HistoryStoreError):
    """Raised when a write collides with an existing record (duplicate natural id)."""


class ImmutableFieldError(HistoryStoreError):
    """Raised when an update tries to change a field that is fixed after creation."""


class SerializationError(HistoryStoreError):
    """Raised when a value cannot be encoded for, or decoded from, the backend."""


class BackendError(HistoryStoreError):
    """Raised on connection, I/O or driver-level failures."""


class UnsupportedBackendError(HistoryStoreError):
    """Raised by the provider factory for an unrecognised backend kind."""

    def __init__(self, kind: str) -> None:
        super().__init__(f"Unsupported backend kind: {kind!r}")
        self.kind = kind
