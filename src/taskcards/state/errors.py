"""Errors raised by the card and collection state layer."""


class TaskCardsError(Exception):
    """Base exception for taskcards operations."""


class StateError(TaskCardsError):
    """Base exception for persisted state problems."""


class StorageError(StateError):
    """Raised when a storage backend cannot read or write its document."""


class SnapshotError(StateError):
    """Raised in strict mode when persisted snapshots do not match the schema."""


class InvalidNameError(TaskCardsError):
    """Raised when a collection name is empty or whitespace-only."""


class NotFoundError(TaskCardsError):
    """Raised when a collection (or card) id is unknown."""


class NoActiveCollectionError(TaskCardsError):
    """Raised by quick-save when no collection is bound to the active card list."""
