"""Exceptions raised by the presence sync services."""


class PresenceSyncError(RuntimeError):
    """Base exception for presence sync failures."""


class PresenceStoreError(PresenceSyncError):
    """Raised when a read or write against the data store fails.

    Not retried by the reconciler; aborts the run. Chunks committed before the
    failure stay committed.
    """

    def __init__(self, operation: str, cause: Exception):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}")
