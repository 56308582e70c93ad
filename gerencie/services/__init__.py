"""Services package."""

from gerencie.services.storage import (
    ConnectionTestResult,
    Database,
    EntityRepository,
    EntityStore,
    LocalKeyValueStore,
    NotFoundError,
    RemoteUnavailableError,
    StorageError,
    check_connection,
)

__all__ = [
    "ConnectionTestResult",
    "Database",
    "EntityRepository",
    "EntityStore",
    "LocalKeyValueStore",
    "NotFoundError",
    "RemoteUnavailableError",
    "StorageError",
    "check_connection",
]
