"""
Storage Services Package

Provides the CRUD contract, the two interchangeable backends (local
key-value store and Supabase tables) and the adapter that chooses between
them.
"""

from gerencie.services.storage.interface import (
    EntityStore,
    NotFoundError,
    RemoteUnavailableError,
    StorageError,
)
from gerencie.services.storage.local import (
    LS_PREFIX,
    LocalEntityStore,
    LocalKeyValueStore,
)
from gerencie.services.storage.naming import from_db, to_db
from gerencie.services.storage.supabase_store import (
    SCHEMA_SQL,
    TABLE_MAP,
    ConnectionTestResult,
    RemoteConfig,
    SupabaseEntityStore,
    SupabaseTableClient,
    check_connection,
    format_url,
    resolve_remote_config,
)
from gerencie.services.storage.adapter import Database, EntityRepository

__all__ = [
    # Interface
    "EntityStore",
    # Exceptions
    "NotFoundError",
    "RemoteUnavailableError",
    "StorageError",
    # Local store
    "LS_PREFIX",
    "LocalEntityStore",
    "LocalKeyValueStore",
    # Translation
    "from_db",
    "to_db",
    # Remote store
    "SCHEMA_SQL",
    "TABLE_MAP",
    "ConnectionTestResult",
    "RemoteConfig",
    "SupabaseEntityStore",
    "SupabaseTableClient",
    "check_connection",
    "format_url",
    "resolve_remote_config",
    # Adapter
    "Database",
    "EntityRepository",
]
