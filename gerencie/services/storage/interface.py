"""
Abstract Storage Interface

Every backend (the local key-value store, the remote table store, and the
adapter that chooses between them) exposes the same five operations per
entity kind. Views and flows only ever see this contract.

Concrete backends raise StorageError subclasses. The adapter is the one
place that catches them and falls back.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from gerencie.models.entities import Mode, Record

T = TypeVar("T", bound=Record)


class EntityStore(ABC, Generic[T]):
    """
    CRUD contract for one entity kind.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def get_all(self, mode: Optional[Mode] = None) -> list[T]:
        """
        List every record, optionally filtered by mode.

        Args:
            mode: Only return records tagged with this mode

        Returns:
            List of records (empty if none)
        """
        pass

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> Optional[T]:
        """
        Retrieve a record by its id.

        Returns:
            The record if found, None otherwise
        """
        pass

    @abstractmethod
    async def add(self, item: T) -> Optional[T]:
        """
        Store a new record.

        Any id on the item is ignored; the store assigns one.

        Returns:
            The stored record, with its id
        """
        pass

    @abstractmethod
    async def update(self, entity_id: str, updates: dict[str, Any]) -> Optional[T]:
        """
        Apply a partial update.

        Args:
            entity_id: Record to update
            updates: Field name (or camelCase alias) to new value

        Returns:
            The updated record, or None if it does not exist
        """
        pass

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        """
        Delete a record by id.

        Returns:
            True once the record is gone (also when it never existed)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class RemoteUnavailableError(StorageError):
    """The remote table store is not configured or could not be reached."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.code = code
        super().__init__(message)
