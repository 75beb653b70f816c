"""Custom exceptions for the backing store."""


class StoreError(Exception):
    """Base exception for all store errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class StoreInitError(StoreError):
    """Raised when the store cannot be created or connected to."""

    pass


class LoadError(StoreError):
    """Raised when fixture data cannot be read or a transaction is rejected."""

    def __init__(self, message: str, errors: list | None = None, *args, **kwargs):
        self.errors = errors or []
        super().__init__(message, *args, **kwargs)


class QueryError(StoreError):
    """Raised when a query is malformed or the store is unavailable."""

    pass
