"""
Local Key-Value Storage

The local store is always available. It is the only store when no remote
backend is configured, and the fallback whenever the remote one fails.

Each key maps to one JSON file in the data directory. Entity lists live
under keys namespaced with a fixed prefix (`gerencie_db_transactions`, ...);
the remote connection settings entered by the user live here too.

Read and write errors are logged and swallowed: a corrupt file reads as an
empty list, a failed write leaves the previous content in place.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Generic, Optional
from uuid import uuid4

import structlog

from gerencie.models.entities import Mode
from gerencie.services.storage.interface import EntityStore, T

LS_PREFIX = "gerencie_db_"

logger = structlog.get_logger(__name__)


def generate_id() -> str:
    return str(uuid4())


class LocalKeyValueStore:
    """
    Persistent key-value store backed by JSON files.

    Keys must be plain names (no path separators).
    """

    def __init__(self, data_dir: Path):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path(self, key: str) -> Path:
        if "/" in key or "\\" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self._data_dir / f"{key}.json"

    def _read(self, path: Path) -> Any:
        if not path.exists():
            return None
        return json.loads(path.read_text(encoding="utf-8"))

    def _write(self, path: Path, value: Any) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(value, ensure_ascii=False), encoding="utf-8")
        tmp.replace(path)

    def get_list(self, key: str) -> list[dict[str, Any]]:
        """Read a list of records. Missing or unreadable -> []."""
        path = self._path(key)
        try:
            value = self._read(path)
        except (OSError, ValueError) as e:
            logger.error("local_store_read_failed", key=key, error=str(e))
            return []
        if not isinstance(value, list):
            if value is not None:
                logger.error("local_store_read_failed", key=key, error="not a list")
            return []
        return value

    def set_list(self, key: str, records: list[dict[str, Any]]) -> None:
        """Replace the list stored under key."""
        path = self._path(key)
        try:
            self._write(path, records)
        except (OSError, TypeError, ValueError) as e:
            logger.error("local_store_write_failed", key=key, error=str(e))

    def get_value(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            value = self._read(path)
        except (OSError, ValueError) as e:
            logger.error("local_store_read_failed", key=key, error=str(e))
            return None
        return value if isinstance(value, str) else None

    def set_value(self, key: str, value: str) -> None:
        path = self._path(key)
        try:
            self._write(path, value)
        except (OSError, TypeError, ValueError) as e:
            logger.error("local_store_write_failed", key=key, error=str(e))

    def remove(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("local_store_remove_failed", key=key, error=str(e))

    def keys(self) -> list[str]:
        if not self._data_dir.exists():
            return []
        return sorted(p.stem for p in self._data_dir.glob("*.json"))

    def clear_prefix(self, prefix: str) -> int:
        """Remove every key starting with prefix. Returns how many went."""
        removed = 0
        for key in self.keys():
            if key.startswith(prefix):
                self.remove(key)
                removed += 1
        return removed


class LocalEntityStore(EntityStore[T], Generic[T]):
    """
    One entity kind stored as a list under `gerencie_db_<entity>`.

    Records are persisted in their camelCase record form. Mutations work on
    the stored records as they are, so a record that fails validation is
    hidden from reads but never dropped by a write to another record.
    """

    def __init__(
        self,
        model: type[T],
        kv: LocalKeyValueStore,
        latency_seconds: float = 0.0,
    ):
        self._model = model
        self._kv = kv
        self._latency = latency_seconds
        self._key = LS_PREFIX + model.kind.value

    @property
    def key(self) -> str:
        return self._key

    async def _simulate_latency(self) -> None:
        if self._latency:
            await asyncio.sleep(self._latency)

    def _parse(self, record: Any) -> Optional[T]:
        try:
            return self._model.from_record(record)
        except ValueError as e:
            # Skip malformed records
            logger.warning(
                "local_record_skipped",
                key=self._key,
                record_id=_record_id(record),
                error=str(e),
            )
            return None

    def _load(self) -> list[T]:
        items = [self._parse(record) for record in self._kv.get_list(self._key)]
        return [item for item in items if item is not None]

    async def get_all(self, mode: Optional[Mode] = None) -> list[T]:
        await self._simulate_latency()
        items = self._load()
        if mode:
            return [item for item in items if item.mode == mode]
        return items

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        await self._simulate_latency()
        for record in self._kv.get_list(self._key):
            if _record_id(record) == entity_id:
                return self._parse(record)
        return None

    async def add(self, item: T) -> T:
        await self._simulate_latency()
        new_item = item.model_copy(update={"id": generate_id()})
        records = self._kv.get_list(self._key)
        records.append(new_item.to_record())
        self._kv.set_list(self._key, records)
        return new_item

    async def update(self, entity_id: str, updates: dict[str, Any]) -> Optional[T]:
        await self._simulate_latency()
        records = self._kv.get_list(self._key)
        for idx, record in enumerate(records):
            if _record_id(record) != entity_id:
                continue
            item = self._parse(record)
            if item is None:
                return None
            updates = {k: v for k, v in updates.items() if k != "id"}
            updated = item.merged(updates)
            records[idx] = updated.to_record()
            self._kv.set_list(self._key, records)
            return updated
        return None

    async def delete(self, entity_id: str) -> bool:
        await self._simulate_latency()
        records = self._kv.get_list(self._key)
        self._kv.set_list(
            self._key,
            [record for record in records if _record_id(record) != entity_id],
        )
        return True


def _record_id(record: Any) -> Optional[str]:
    return record.get("id") if isinstance(record, dict) else None
