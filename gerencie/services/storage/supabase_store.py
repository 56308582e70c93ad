"""
Remote Table Store (Supabase)

The hosted backend has one table per entity kind with snake_case columns.
It is reached with the project URL and the anonymous key.

Connection settings are resolved in this order:
1. Values the user saved from the Database page (kept in the local store)
2. SUPABASE_URL / SUPABASE_KEY from the environment
3. Placeholders, which count as "not configured"

Every backend failure is raised as a StorageError subclass so the adapter
can fall back to the local store. A row that fails validation is not a
backend failure: it is logged and skipped.
"""

from typing import Any, Callable, Generic, Optional

import structlog
from pydantic import BaseModel
from supabase import Client, create_client
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gerencie.config import SupabaseSettings
from gerencie.models.entities import EntityKind, Mode
from gerencie.services.storage.interface import (
    EntityStore,
    NotFoundError,
    RemoteUnavailableError,
    StorageError,
    T,
)
from gerencie.services.storage.local import LocalKeyValueStore
from gerencie.services.storage.naming import from_db, to_db

logger = structlog.get_logger(__name__)

TABLE_MAP: dict[EntityKind, str] = {
    EntityKind.TRANSACTIONS: "transactions",
    EntityKind.SHOPPING: "shopping_items",
    EntityKind.MAINTENANCE: "maintenance_items",
    EntityKind.DEBTS: "debts",
    EntityKind.GOALS: "goals",
    EntityKind.CATEGORIES: "categories",
}

LS_URL_KEY = "gerencie_supabase_url"
LS_API_KEY = "gerencie_supabase_key"

PLACEHOLDER_URL = "https://placeholder.supabase.co"
PLACEHOLDER_KEY = "placeholder"

# Postgres "undefined_table"
MISSING_TABLE_CODE = "42P01"

SCHEMA_SQL = """
-- 1. Enable UUIDs
create extension if not exists "uuid-ossp";

-- 2. Transactions
create table if not exists transactions (
  id uuid default uuid_generate_v4() primary key,
  description text not null,
  category text,
  amount numeric not null,
  type text check (type in ('income', 'expense')),
  status text check (status in ('paid', 'pending')),
  date date not null,
  mode text default 'Personal',
  attachment text,
  attachment_type text check (attachment_type in ('image', 'audio')),
  created_at timestamp with time zone default timezone('utc'::text, now())
);

-- 3. Shopping list
create table if not exists shopping_items (
  id uuid default uuid_generate_v4() primary key,
  name text not null,
  category text,
  unit text,
  ideal_qty numeric,
  current_qty numeric,
  price numeric,
  mode text default 'Personal'
);

-- 4. Vehicle maintenance
create table if not exists maintenance_items (
  id uuid default uuid_generate_v4() primary key,
  name text not null,
  system text,
  status text check (status in ('overdue', 'pending', 'up_to_date')),
  due_in text,
  mode text default 'Personal'
);

-- 5. Debts
create table if not exists debts (
  id uuid default uuid_generate_v4() primary key,
  name text not null,
  total_amount numeric,
  remaining_amount numeric,
  due_date date,
  interest_rate numeric,
  mode text default 'Personal'
);

-- 6. Goals
create table if not exists goals (
  id uuid default uuid_generate_v4() primary key,
  name text not null,
  target_amount numeric,
  current_amount numeric,
  deadline date,
  icon text,
  mode text default 'Personal'
);

-- 7. Categories & budgets
create table if not exists categories (
  id uuid default uuid_generate_v4() primary key,
  name text not null,
  type text check (type in ('income', 'expense')),
  budget numeric,
  spent numeric,
  color text,
  mode text default 'Personal'
);
""".strip()


ClientFactory = Callable[[str, str], Client]


def format_url(url: str) -> str:
    """Make sure the URL has a scheme."""
    if not url:
        return ""
    if url.startswith("http://") or url.startswith("https://"):
        return url
    return f"https://{url}"


class RemoteConfig(BaseModel):
    """Resolved connection settings for the remote table store."""

    url: str = PLACEHOLDER_URL
    key: str = PLACEHOLDER_KEY

    @property
    def is_configured(self) -> bool:
        return (
            "supabase.co" in self.url
            and self.url != PLACEHOLDER_URL
            and self.key != PLACEHOLDER_KEY
        )


class ConnectionTestResult(BaseModel):
    """Outcome of testing a URL/key pair from the Database page."""

    success: bool
    message: str


def resolve_remote_config(
    kv: LocalKeyValueStore,
    settings: Optional[SupabaseSettings] = None,
) -> RemoteConfig:
    """Stored values win over the environment, which wins over placeholders."""
    stored_url = (kv.get_value(LS_URL_KEY) or "").strip()
    stored_key = (kv.get_value(LS_API_KEY) or "").strip()

    env_url = settings.url if settings else ""
    env_key = settings.key if settings else ""

    return RemoteConfig(
        url=format_url(stored_url or env_url or PLACEHOLDER_URL),
        key=stored_key or env_key or PLACEHOLDER_KEY,
    )


def save_remote_config(kv: LocalKeyValueStore, url: str, key: str) -> RemoteConfig:
    clean_url = format_url(url.strip())
    clean_key = key.strip()
    kv.set_value(LS_URL_KEY, clean_url)
    kv.set_value(LS_API_KEY, clean_key)
    logger.info("remote_config_saved", url=clean_url)
    return RemoteConfig(url=clean_url, key=clean_key)


def clear_remote_config(kv: LocalKeyValueStore) -> None:
    kv.remove(LS_URL_KEY)
    kv.remove(LS_API_KEY)
    logger.info("remote_config_cleared")


def _error_code(error: Exception) -> Optional[str]:
    code = getattr(error, "code", None)
    return str(code) if code is not None else None


def _error_message(error: Exception) -> str:
    return getattr(error, "message", None) or str(error)


class SupabaseTableClient:
    """
    Low-level wrapper around the Supabase client.

    Creates the client lazily and maps errors to StorageError.
    """

    def __init__(
        self,
        config: RemoteConfig,
        client_factory: ClientFactory = create_client,
    ):
        self._config = config
        self._factory = client_factory
        self._client: Optional[Client] = None

    @property
    def config(self) -> RemoteConfig:
        return self._config

    @property
    def is_configured(self) -> bool:
        return self._config.is_configured

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def connect(self) -> Client:
        """Create the client on first use."""
        if self._client is None:
            if not self.is_configured:
                raise RemoteUnavailableError("Remote storage is not configured")
            try:
                self._client = self._factory(self._config.url, self._config.key)
            except OSError:
                raise
            except Exception as e:
                raise RemoteUnavailableError(
                    f"Failed to create the remote client: {_error_message(e)}"
                )
        return self._client

    def table(self, kind: EntityKind):
        return self.connect().table(TABLE_MAP[kind])

    def probe(self) -> int:
        """
        Check the transactions table is reachable.

        Returns the row count. Raises RemoteUnavailableError with the
        backend error code on failure.
        """
        try:
            response = (
                self.table(EntityKind.TRANSACTIONS)
                .select("id", count="exact")
                .limit(1)
                .execute()
            )
        except StorageError:
            raise
        except Exception as e:
            raise RemoteUnavailableError(_error_message(e), code=_error_code(e))
        return response.count or 0


def check_connection(
    url: str,
    key: str,
    client_factory: ClientFactory = create_client,
) -> ConnectionTestResult:
    """
    Try a URL/key pair without saving it.

    Returns a result with a user-facing message instead of raising.
    """
    if not url or not key:
        return ConnectionTestResult(
            success=False,
            message="Fill in the URL and the API key.",
        )

    try:
        client = client_factory(format_url(url.strip()), key.strip())
        client.table("transactions").select("id", count="exact").limit(1).execute()
    except Exception as e:
        code = _error_code(e)
        message = _error_message(e)
        if code == MISSING_TABLE_CODE:
            message = (
                "Connection OK, but the tables do not exist. "
                "Run the SQL script first!"
            )
        elif "JWT" in message or "API key" in message or code == "401":
            message = "Invalid or expired API key."
        elif "FetchError" in message or isinstance(e, OSError):
            message = "Invalid URL or network error."
        logger.warning("remote_connection_test_failed", code=code, error=_error_message(e))
        return ConnectionTestResult(
            success=False,
            message=message or "Unknown error while connecting.",
        )

    return ConnectionTestResult(
        success=True,
        message="Connection succeeded! Tables found.",
    )


class SupabaseEntityStore(EntityStore[T], Generic[T]):
    """
    One entity kind stored in its remote table.

    Records go out as snake_case rows (None values dropped, id left to the
    database) and come back translated to camelCase records.
    """

    def __init__(self, model: type[T], client: SupabaseTableClient):
        self._model = model
        self._client = client
        self._kind = model.kind

    @property
    def table_name(self) -> str:
        return TABLE_MAP[self._kind]

    def _parse(self, row: dict[str, Any]) -> Optional[T]:
        """Translate one row. Rows that fail validation are logged and skipped."""
        try:
            return self._model.from_record(from_db(row))
        except ValueError as e:
            logger.warning(
                "remote_row_skipped",
                table=self.table_name,
                row_id=row.get("id"),
                error=str(e),
            )
            return None

    def _fail(self, operation: str, error: Exception) -> StorageError:
        if isinstance(error, StorageError):
            return error
        return StorageError(
            f"{operation} on {self.table_name} failed: {_error_message(error)}"
        )

    async def get_all(self, mode: Optional[Mode] = None) -> list[T]:
        try:
            query = self._client.table(self._kind).select("*")
            if mode:
                query = query.eq("mode", mode.value)
            response = query.execute()
        except Exception as e:
            raise self._fail("select", e)
        items = [self._parse(row) for row in (response.data or [])]
        return [item for item in items if item is not None]

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        try:
            response = (
                self._client.table(self._kind)
                .select("*")
                .eq("id", entity_id)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise self._fail("select", e)
        rows = response.data or []
        return self._parse(rows[0]) if rows else None

    async def add(self, item: T) -> T:
        row = to_db(item.to_record())
        row.pop("id", None)
        try:
            response = self._client.table(self._kind).insert(row).execute()
        except Exception as e:
            raise self._fail("insert", e)
        rows = response.data or []
        if not rows:
            raise StorageError(f"insert on {self.table_name} returned no row")
        saved = self._parse(rows[0])
        if saved is None:
            # The row is committed; keep what was sent plus its new id
            saved = item.model_copy(update={"id": str(rows[0].get("id"))})
        return saved

    async def update(self, entity_id: str, updates: dict[str, Any]) -> Optional[T]:
        """
        Update one row by id.

        Returns None when the updated row comes back malformed.
        """
        row = to_db(self._model.partial_record(updates))
        row.pop("id", None)
        try:
            response = (
                self._client.table(self._kind)
                .update(row)
                .eq("id", entity_id)
                .execute()
            )
        except Exception as e:
            raise self._fail("update", e)
        rows = response.data or []
        if not rows:
            raise NotFoundError(f"{self.table_name} has no row with id {entity_id}")
        return self._parse(rows[0])

    async def delete(self, entity_id: str) -> bool:
        try:
            self._client.table(self._kind).delete().eq("id", entity_id).execute()
        except Exception as e:
            raise self._fail("delete", e)
        return True
