"""
Data-Access Adapter

Gives views one CRUD contract per entity kind, whichever store is active:

- Remote configured: try the remote table first. Any StorageError is
  logged and the operation is repeated once against the local store.
- Remote not configured: go straight to the local store.

Backend failures never reach the caller. Every successful mutation emits
a `db-change` notification.
"""

from typing import Any, Generic, Optional

import structlog
from supabase import create_client

from gerencie.config import SupabaseSettings
from gerencie.events import ChangeNotifier
from gerencie.models.entities import (
    Category,
    Debt,
    EntityKind,
    Goal,
    MaintenanceItem,
    Mode,
    ShoppingItem,
    Transaction,
)
from gerencie.models.events import Backend, ChangeAction
from gerencie.services.storage.interface import (
    EntityStore,
    RemoteUnavailableError,
    StorageError,
    T,
)
from gerencie.services.storage.local import (
    LS_PREFIX,
    LocalEntityStore,
    LocalKeyValueStore,
)
from gerencie.services.storage.supabase_store import (
    MISSING_TABLE_CODE,
    ClientFactory,
    RemoteConfig,
    SupabaseEntityStore,
    SupabaseTableClient,
    clear_remote_config,
    resolve_remote_config,
    save_remote_config,
)

logger = structlog.get_logger(__name__)


class EntityRepository(EntityStore[T], Generic[T]):
    """
    Fallback wrapper over a remote and a local store for one entity kind.
    """

    def __init__(
        self,
        local: LocalEntityStore[T],
        remote: Optional[SupabaseEntityStore[T]],
        notifier: ChangeNotifier,
        entity: EntityKind,
    ):
        self._local = local
        self._remote = remote
        self._notifier = notifier
        self._entity = entity

    @property
    def uses_remote(self) -> bool:
        return self._remote is not None

    def _changed(self, action: ChangeAction, entity_id: Optional[str], backend: Backend) -> None:
        self._notifier.notify(
            action=action,
            entity=self._entity.value,
            entity_id=entity_id,
            backend=backend,
        )

    async def get_all(self, mode: Optional[Mode] = None) -> list[T]:
        if self._remote is not None:
            try:
                return await self._remote.get_all(mode)
            except StorageError as e:
                logger.warning(
                    "remote_get_all_failed_using_local",
                    entity=self._entity.value,
                    error=str(e),
                )

        return await self._local.get_all(mode)

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        if self._remote is not None:
            try:
                item = await self._remote.get_by_id(entity_id)
                if item is not None:
                    return item
            except StorageError as e:
                logger.warning(
                    "remote_get_by_id_failed",
                    entity=self._entity.value,
                    entity_id=entity_id,
                    error=str(e),
                )

        return await self._local.get_by_id(entity_id)

    async def add(self, item: T) -> Optional[T]:
        if self._remote is not None:
            try:
                saved = await self._remote.add(item)
                self._changed(ChangeAction.ADD, saved.id, Backend.REMOTE)
                return saved
            except StorageError as e:
                logger.error(
                    "remote_add_failed_using_local",
                    entity=self._entity.value,
                    error=str(e),
                )

        saved = await self._local.add(item)
        self._changed(ChangeAction.ADD, saved.id, Backend.LOCAL)
        return saved

    async def update(self, entity_id: str, updates: dict[str, Any]) -> Optional[T]:
        if self._remote is not None:
            try:
                updated = await self._remote.update(entity_id, updates)
                self._changed(ChangeAction.UPDATE, entity_id, Backend.REMOTE)
                return updated
            except StorageError as e:
                logger.error(
                    "remote_update_failed_using_local",
                    entity=self._entity.value,
                    entity_id=entity_id,
                    error=str(e),
                )

        updated = await self._local.update(entity_id, updates)
        if updated is not None:
            self._changed(ChangeAction.UPDATE, entity_id, Backend.LOCAL)
        return updated

    async def delete(self, entity_id: str) -> bool:
        if self._remote is not None:
            try:
                await self._remote.delete(entity_id)
                self._changed(ChangeAction.DELETE, entity_id, Backend.REMOTE)
                return True
            except StorageError as e:
                logger.error(
                    "remote_delete_failed_using_local",
                    entity=self._entity.value,
                    entity_id=entity_id,
                    error=str(e),
                )

        await self._local.delete(entity_id)
        self._changed(ChangeAction.DELETE, entity_id, Backend.LOCAL)
        return True


class Database:
    """
    Entry point to every entity repository.

    Repositories are rebuilt whenever the remote configuration changes,
    so a saved or cleared connection takes effect immediately.
    """

    def __init__(
        self,
        kv: LocalKeyValueStore,
        supabase_settings: Optional[SupabaseSettings] = None,
        notifier: Optional[ChangeNotifier] = None,
        latency_seconds: float = 0.0,
        client_factory: ClientFactory = create_client,
    ):
        self._kv = kv
        self._supabase_settings = supabase_settings
        self._notifier = notifier or ChangeNotifier()
        self._latency = latency_seconds
        self._client_factory = client_factory
        self._connect()

    def _connect(self) -> None:
        config = resolve_remote_config(self._kv, self._supabase_settings)
        self._remote_client = SupabaseTableClient(config, self._client_factory)
        self._repositories: dict[EntityKind, EntityRepository] = {}

    def _repository(self, model: type[T]) -> EntityRepository[T]:
        kind = model.kind
        if kind not in self._repositories:
            remote = (
                SupabaseEntityStore(model, self._remote_client)
                if self.is_remote_configured
                else None
            )
            self._repositories[kind] = EntityRepository(
                local=LocalEntityStore(model, self._kv, self._latency),
                remote=remote,
                notifier=self._notifier,
                entity=kind,
            )
        return self._repositories[kind]

    @property
    def notifier(self) -> ChangeNotifier:
        return self._notifier

    @property
    def kv(self) -> LocalKeyValueStore:
        return self._kv

    @property
    def remote_config(self) -> RemoteConfig:
        return self._remote_client.config

    @property
    def is_remote_configured(self) -> bool:
        return self._remote_client.is_configured

    @property
    def backend(self) -> Backend:
        return Backend.REMOTE if self.is_remote_configured else Backend.LOCAL

    async def init(self) -> bool:
        """
        Log which backend is active and probe the remote one.

        Returns True when the remote store answered (or is not configured).
        """
        configured = self.is_remote_configured
        logger.info("database_initialized", remote_configured=configured)

        healthy = True
        if configured:
            try:
                count = self._remote_client.probe()
                logger.info("remote_connection_ok", transactions=count)
            except StorageError as e:
                healthy = False
                code = e.code if isinstance(e, RemoteUnavailableError) else None
                logger.warning("remote_configured_with_error", error=str(e), code=code)
                if code == MISSING_TABLE_CODE:
                    logger.critical(
                        "remote_tables_missing",
                        hint="Run the SQL script from the Database page",
                    )

        self._notifier.notify(action=ChangeAction.INIT, backend=self.backend)
        return healthy

    def reset(self) -> bool:
        """
        Wipe local data.

        Never deletes remote data: with a remote store configured this only
        logs a warning and returns False.
        """
        if self.is_remote_configured:
            logger.warning("reset_refused_remote_configured")
            return False

        removed = self._kv.clear_prefix(LS_PREFIX)
        logger.info("local_store_cleared", keys_removed=removed)
        self._notifier.notify(action=ChangeAction.RESET, backend=Backend.LOCAL)
        return True

    def reconfigure(self, url: str, key: str) -> RemoteConfig:
        """Save a new remote connection and start using it."""
        save_remote_config(self._kv, url, key)
        self._connect()
        return self.remote_config

    def disconnect(self) -> None:
        """Forget the saved remote connection and go back to local storage."""
        clear_remote_config(self._kv)
        self._connect()

    @property
    def transactions(self) -> EntityRepository[Transaction]:
        return self._repository(Transaction)

    @property
    def shopping(self) -> EntityRepository[ShoppingItem]:
        return self._repository(ShoppingItem)

    @property
    def maintenance(self) -> EntityRepository[MaintenanceItem]:
        return self._repository(MaintenanceItem)

    @property
    def debts(self) -> EntityRepository[Debt]:
        return self._repository(Debt)

    @property
    def goals(self) -> EntityRepository[Goal]:
        return self._repository(Goal)

    @property
    def categories(self) -> EntityRepository[Category]:
        return self._repository(Category)
