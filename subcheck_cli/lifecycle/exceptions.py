"""Exceptions for subscription lifecycle operations."""


class LifecycleError(Exception):
    """Base exception for lifecycle errors."""

    def __init__(self, message: str, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path: {self.path})"
        return self.message


class SourceListEditError(LifecycleError):
    """Raised when the configuration document cannot be read or rewritten."""
    pass


class MalformedSourceListError(SourceListEditError):
    """Raised when the source list field exists but is not a list."""
    pass


class LedgerPersistError(LifecycleError):
    """Raised when the failure ledger cannot be written."""
    pass
