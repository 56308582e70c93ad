"""In-memory stand-in for the Supabase client used by the remote table store.

Only the query-builder calls the store makes are supported: ``table``,
``select``, ``eq``, ``limit``, ``insert``, ``update``, ``delete`` and
``execute``. Rows live in plain dicts keyed by table name, so tests can
inspect exactly what went over the wire (snake_case columns).

Set ``error`` to make every ``execute()`` raise, mimicking an API error
(with ``code`` and ``message`` like postgrest's APIError) or a network
failure.

``on_insert`` holds per-table columns the database writes on insert over
the sent payload, as a trigger would.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

REMOTE_URL = "https://unit-test.supabase.co"
REMOTE_KEY = "anon-test-key"


class FakeAPIError(Exception):
    """Shape of postgrest's APIError: a message plus a Postgres/HTTP code."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


@dataclass
class FakeResponse:
    data: list[dict[str, Any]]
    count: Optional[int] = None


class _Query:
    def __init__(self, client: FakeSupabaseClient, table: str) -> None:
        self._client = client
        self._table = table
        self._op = "select"
        self._payload: Optional[dict[str, Any]] = None
        self._filters: list[tuple[str, Any]] = []
        self._limit: Optional[int] = None
        self._count: Optional[str] = None

    def select(self, *columns: str, count: Optional[str] = None) -> _Query:
        self._op = "select"
        self._count = count
        return self

    def insert(self, row: dict[str, Any]) -> _Query:
        self._op = "insert"
        self._payload = dict(row)
        return self

    def update(self, row: dict[str, Any]) -> _Query:
        self._op = "update"
        self._payload = dict(row)
        return self

    def delete(self) -> _Query:
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> _Query:
        self._filters.append((column, value))
        return self

    def limit(self, n: int) -> _Query:
        self._limit = n
        return self

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(row.get(col) == value for col, value in self._filters)

    def execute(self) -> FakeResponse:
        self._client.calls.append((self._table, self._op, self._payload, list(self._filters)))
        if self._client.error is not None:
            raise self._client.error

        rows = self._client.tables.setdefault(self._table, [])

        if self._op == "insert":
            row = {
                "id": str(uuid.uuid4()),
                **self._payload,
                **self._client.on_insert.get(self._table, {}),
            }
            rows.append(row)
            return FakeResponse(data=[dict(row)])

        if self._op == "update":
            updated = []
            for row in rows:
                if self._matches(row):
                    row.update(self._payload)
                    updated.append(dict(row))
            return FakeResponse(data=updated)

        if self._op == "delete":
            removed = [row for row in rows if self._matches(row)]
            self._client.tables[self._table] = [row for row in rows if not self._matches(row)]
            return FakeResponse(data=removed)

        selected = [dict(row) for row in rows if self._matches(row)]
        total = len(selected)
        if self._limit is not None:
            selected = selected[: self._limit]
        return FakeResponse(data=selected, count=total if self._count else None)


@dataclass
class FakeSupabaseClient:
    """Minimal stub matching the ``supabase.Client`` query-builder shape."""

    tables: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    error: Optional[Exception] = None
    on_insert: dict[str, dict[str, Any]] = field(default_factory=dict)
    calls: list[tuple] = field(default_factory=list)

    def table(self, name: str) -> _Query:
        return _Query(self, name)

    def factory(self, url: str, key: str) -> FakeSupabaseClient:
        """Use as ``client_factory``; records the credentials it was given."""
        self.url = url
        self.key = key
        return self
