"""Pytest configuration for test isolation.

Settings are read from the environment and cached, and the local store
writes JSON files to disk. Every test gets its own data directory, a dummy
Gemini key and no Supabase credentials, so nothing leaks between tests and
nothing reaches the network.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from gerencie.config import get_settings
from gerencie.services.storage import Database, LocalKeyValueStore
from gerencie.services.storage.supabase_store import save_remote_config
from tests.helpers.supabase_stub import REMOTE_KEY, REMOTE_URL, FakeSupabaseClient


@pytest.fixture(autouse=True)
def _isolate_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point settings at a per-test data dir and clear the settings cache."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    monkeypatch.setenv("DATA_DIR", os.fspath(tmp_path / "data"))
    monkeypatch.setenv("CURRENCY_SYMBOL", "R$")
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_KEY", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def kv(tmp_path: Path) -> LocalKeyValueStore:
    return LocalKeyValueStore(tmp_path / "data")


@pytest.fixture
def db(kv: LocalKeyValueStore) -> Database:
    """Database running on the local store only."""
    return Database(kv)


@pytest.fixture
def fake_supabase() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def remote_db(kv: LocalKeyValueStore, fake_supabase: FakeSupabaseClient) -> Database:
    """Database with saved remote credentials, talking to the in-memory stub."""
    save_remote_config(kv, REMOTE_URL, REMOTE_KEY)
    return Database(kv, client_factory=fake_supabase.factory)
