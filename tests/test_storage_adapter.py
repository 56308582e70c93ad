"""Tests for the remote table store, the fallback adapter and change events."""

import asyncio
from datetime import date

from gerencie.config import SupabaseSettings
from gerencie.events import ChangeNotifier
from gerencie.models.entities import Debt, Mode, Transaction, TransactionStatus
from gerencie.models.events import Backend, ChangeAction
from gerencie.services.storage import (
    Database,
    LocalKeyValueStore,
    check_connection,
    format_url,
    resolve_remote_config,
)
from gerencie.services.storage.supabase_store import (
    LS_API_KEY,
    LS_URL_KEY,
    PLACEHOLDER_URL,
    RemoteConfig,
)
from tests.helpers.supabase_stub import (
    REMOTE_KEY,
    REMOTE_URL,
    FakeAPIError,
    FakeSupabaseClient,
)


def _tx(description="Market", amount=50.0, mode=Mode.PERSONAL, **kwargs):
    return Transaction(description=description, amount=amount, date=date(2024, 5, 1), mode=mode, **kwargs)


def _record_events(db: Database) -> list:
    events = []
    db.notifier.subscribe(events.append)
    return events


class TestChangeNotifier:
    """Tests for db-change notifications."""

    def test_subscribe_and_unsubscribe(self):
        notifier = ChangeNotifier()
        seen = []
        unsubscribe = notifier.subscribe(seen.append)

        notifier.notify(ChangeAction.ADD, entity="goals", entity_id="g1", backend=Backend.LOCAL)
        unsubscribe()
        notifier.notify(ChangeAction.DELETE, entity="goals", entity_id="g1")

        assert [e.action for e in seen] == [ChangeAction.ADD]
        assert notifier.listener_count == 0

    def test_failing_listener_does_not_stop_others(self):
        notifier = ChangeNotifier()
        seen = []

        def broken(event):
            raise RuntimeError("listener bug")

        notifier.subscribe(broken)
        notifier.subscribe(seen.append)
        event = notifier.notify(ChangeAction.RESET)

        assert seen == [event]


class TestRemoteConfig:
    """Tests for connection settings resolution."""

    def test_placeholder_when_nothing_set(self, kv: LocalKeyValueStore):
        config = resolve_remote_config(kv, SupabaseSettings(url="", key=""))
        assert config.url == PLACEHOLDER_URL
        assert not config.is_configured

    def test_environment_used_when_nothing_saved(self, kv: LocalKeyValueStore):
        config = resolve_remote_config(kv, SupabaseSettings(url="env.supabase.co", key="env-key"))
        assert config.url == "https://env.supabase.co"
        assert config.key == "env-key"
        assert config.is_configured

    def test_saved_values_win_over_environment(self, kv: LocalKeyValueStore):
        kv.set_value(LS_URL_KEY, "https://saved.supabase.co")
        kv.set_value(LS_API_KEY, "saved-key")
        config = resolve_remote_config(kv, SupabaseSettings(url="env.supabase.co", key="env-key"))
        assert config.url == "https://saved.supabase.co"
        assert config.key == "saved-key"

    def test_non_supabase_url_is_not_configured(self):
        assert not RemoteConfig(url="https://example.com", key="k").is_configured

    def test_format_url(self):
        assert format_url("abc.supabase.co") == "https://abc.supabase.co"
        assert format_url("http://localhost:54321") == "http://localhost:54321"
        assert format_url("") == ""


class TestCheckConnection:
    """Tests for the Database page connection test."""

    def test_requires_url_and_key(self):
        result = check_connection("", "key")
        assert not result.success
        assert result.message == "Fill in the URL and the API key."

    def test_success(self, fake_supabase: FakeSupabaseClient):
        result = check_connection("abc.supabase.co", "key", fake_supabase.factory)
        assert result.success
        assert fake_supabase.url == "https://abc.supabase.co"

    def test_missing_tables(self, fake_supabase: FakeSupabaseClient):
        fake_supabase.error = FakeAPIError('relation "transactions" does not exist', code="42P01")
        result = check_connection("abc.supabase.co", "key", fake_supabase.factory)
        assert not result.success
        assert "tables do not exist" in result.message

    def test_bad_key(self, fake_supabase: FakeSupabaseClient):
        fake_supabase.error = FakeAPIError("JWT expired", code="PGRST301")
        result = check_connection("abc.supabase.co", "key", fake_supabase.factory)
        assert result.message == "Invalid or expired API key."

    def test_network_error(self, fake_supabase: FakeSupabaseClient):
        fake_supabase.error = ConnectionError("Name or service not known")
        result = check_connection("abc.supabase.co", "key", fake_supabase.factory)
        assert result.message == "Invalid URL or network error."

    def test_error_without_message(self, fake_supabase: FakeSupabaseClient):
        fake_supabase.error = FakeAPIError("")
        result = check_connection("abc.supabase.co", "key", fake_supabase.factory)
        assert not result.success
        assert result.message == "Unknown error while connecting."


class TestLocalDatabase:
    """Tests for the adapter with no remote store configured."""

    def test_crud_round_trip(self, db: Database):
        events = _record_events(db)

        async def scenario():
            saved = await db.transactions.add(_tx())
            fetched = await db.transactions.get_by_id(saved.id)
            updated = await db.transactions.update(saved.id, {"status": TransactionStatus.PENDING})
            await db.transactions.delete(saved.id)
            return saved, fetched, updated, await db.transactions.get_all()

        saved, fetched, updated, remaining = asyncio.run(scenario())

        assert fetched == saved
        assert updated.status == TransactionStatus.PENDING
        assert remaining == []
        assert [e.action for e in events] == [ChangeAction.ADD, ChangeAction.UPDATE, ChangeAction.DELETE]
        assert all(e.backend == Backend.LOCAL for e in events)
        assert all(e.entity == "transactions" for e in events)

    def test_update_missing_record_emits_nothing(self, db: Database):
        events = _record_events(db)
        assert asyncio.run(db.debts.update("nope", {"remaining_amount": 0})) is None
        assert events == []

    def test_reset_clears_local_data(self, db: Database):
        asyncio.run(db.debts.add(Debt(name="Card", total_amount=100, remaining_amount=100)))
        db.kv.set_value("unrelated", "kept")
        events = _record_events(db)

        assert db.reset()
        assert asyncio.run(db.debts.get_all()) == []
        assert db.kv.get_value("unrelated") == "kept"
        assert events[-1].action == ChangeAction.RESET

    def test_init_without_remote(self, db: Database):
        events = _record_events(db)
        assert asyncio.run(db.init())
        assert db.backend == Backend.LOCAL
        assert events[-1].action == ChangeAction.INIT


class TestRemoteDatabase:
    """Tests for the adapter talking to the (stubbed) remote store."""

    def test_add_sends_snake_case_row(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        events = _record_events(remote_db)
        saved = asyncio.run(remote_db.transactions.add(_tx(amount=12.5)))

        row = fake_supabase.tables["transactions"][0]
        assert row["id"] == saved.id
        assert row["amount"] == 12.5
        assert row["mode"] == "Personal"
        assert "attachment" not in row
        assert "attachment_type" not in row
        assert events[-1].backend == Backend.REMOTE

    def test_get_all_filters_on_mode_and_translates(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        fake_supabase.tables["debts"] = [
            {"id": "d1", "name": "Car", "total_amount": 1000, "remaining_amount": 250,
             "mode": "Business", "created_at": "2024-05-01T10:00:00+00:00"},
            {"id": "d2", "name": "Card", "total_amount": 100, "remaining_amount": 100, "mode": "Personal"},
        ]
        debts = asyncio.run(remote_db.debts.get_all(Mode.BUSINESS))

        assert [d.id for d in debts] == ["d1"]
        assert debts[0].remaining_amount == 250
        assert ("debts", "select", None, [("mode", "Business")]) in fake_supabase.calls

    def test_update_and_delete(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        fake_supabase.tables["goals"] = [
            {"id": "g1", "name": "Trip", "target_amount": 5000, "current_amount": 100},
        ]

        async def scenario():
            updated = await remote_db.goals.update("g1", {"current_amount": 600})
            await remote_db.goals.delete("g1")
            return updated

        updated = asyncio.run(scenario())
        assert updated.current_amount == 600
        assert fake_supabase.tables["goals"] == []

    def test_null_columns_are_listed(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        fake_supabase.tables["shopping_items"] = [
            {"id": "s1", "name": "Rice", "category": "Pantry", "unit": "kg", "ideal_qty": 2, "mode": "Personal"},
            {"id": "s2", "name": "Soap", "category": None, "unit": None, "ideal_qty": None,
             "current_qty": None, "price": None, "mode": "Personal"},
        ]
        items = asyncio.run(remote_db.shopping.get_all())

        assert [i.id for i in items] == ["s1", "s2"]
        assert items[1].category == ""
        assert items[1].unit == "un"

    def test_malformed_row_is_skipped_without_fallback(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        remote_db.kv.set_list("gerencie_db_transactions", [
            {"id": "local", "description": "Local only", "amount": 1, "date": "2024-01-01"},
        ])
        fake_supabase.tables["transactions"] = [
            {"id": "t1", "description": "Market", "amount": 10, "date": "2024-05-01"},
            {"id": "t2", "description": "Odd", "amount": 5, "date": "2024-05-01", "type": "transfer"},
        ]
        items = asyncio.run(remote_db.transactions.get_all())
        assert [t.id for t in items] == ["t1"]

    def test_committed_add_is_not_repeated_locally(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        """Test an insert whose returned row fails validation is not written again locally."""
        fake_supabase.on_insert["transactions"] = {"type": "transfer"}
        events = _record_events(remote_db)

        saved = asyncio.run(remote_db.transactions.add(_tx()))

        assert saved.id == fake_supabase.tables["transactions"][0]["id"]
        assert len(fake_supabase.tables["transactions"]) == 1
        assert remote_db.kv.get_list("gerencie_db_transactions") == []
        assert events[-1].backend == Backend.REMOTE

    def test_committed_update_is_not_repeated_locally(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        fake_supabase.tables["transactions"] = [
            {"id": "t1", "description": "Odd", "amount": 5, "date": "2024-05-01", "type": "transfer"},
        ]
        events = _record_events(remote_db)

        assert asyncio.run(remote_db.transactions.update("t1", {"amount": 7})) is None
        assert fake_supabase.tables["transactions"][0]["amount"] == 7
        assert remote_db.kv.get_list("gerencie_db_transactions") == []
        assert events[-1].backend == Backend.REMOTE

    def test_get_by_id_from_remote(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        fake_supabase.tables["goals"] = [{"id": "g1", "name": "Trip", "target_amount": 5000}]
        goal = asyncio.run(remote_db.goals.get_by_id("g1"))

        assert goal.name == "Trip"
        assert ("goals", "select", None, [("id", "g1")]) in fake_supabase.calls

    def test_get_by_id_missing_remotely_reads_local(self, remote_db: Database):
        remote_db.kv.set_list("gerencie_db_goals", [{"id": "g9", "name": "Offline", "targetAmount": 10}])
        goal = asyncio.run(remote_db.goals.get_by_id("g9"))
        assert goal.name == "Offline"

    def test_get_by_id_reads_local_when_remote_fails(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        remote_db.kv.set_list("gerencie_db_goals", [{"id": "g9", "name": "Offline", "targetAmount": 10}])
        fake_supabase.error = FakeAPIError("service unavailable", code="503")

        assert asyncio.run(remote_db.goals.get_by_id("g9")).name == "Offline"
        assert asyncio.run(remote_db.goals.get_by_id("nope")) is None

    def test_shopping_uses_its_table_name(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        asyncio.run(remote_db.shopping.get_all())
        assert fake_supabase.calls[-1][0] == "shopping_items"

    def test_falls_back_to_local_when_remote_fails(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        fake_supabase.error = FakeAPIError("service unavailable", code="503")
        events = _record_events(remote_db)

        async def scenario():
            saved = await remote_db.transactions.add(_tx())
            listed = await remote_db.transactions.get_all(Mode.PERSONAL)
            updated = await remote_db.transactions.update(saved.id, {"amount": 99})
            deleted = await remote_db.transactions.delete(saved.id)
            return saved, listed, updated, deleted

        saved, listed, updated, deleted = asyncio.run(scenario())

        assert saved.id
        assert [t.id for t in listed] == [saved.id]
        assert updated.amount == 99
        assert deleted is True
        assert all(e.backend == Backend.LOCAL for e in events)
        assert remote_db.kv.get_list("gerencie_db_transactions") == []

    def test_remote_update_of_unknown_row_falls_back(self, remote_db: Database):
        assert asyncio.run(remote_db.transactions.update("missing", {"amount": 1})) is None

    def test_reset_refused_with_remote(self, remote_db: Database):
        events = _record_events(remote_db)
        assert not remote_db.reset()
        assert events == []

    def test_init_reports_missing_tables(self, remote_db: Database, fake_supabase: FakeSupabaseClient):
        fake_supabase.error = FakeAPIError('relation "transactions" does not exist', code="42P01")
        events = _record_events(remote_db)
        assert not asyncio.run(remote_db.init())
        assert events[-1].action == ChangeAction.INIT
        assert events[-1].backend == Backend.REMOTE

    def test_init_healthy(self, remote_db: Database):
        assert asyncio.run(remote_db.init())
        assert remote_db.remote_config.url == REMOTE_URL
        assert remote_db.remote_config.key == REMOTE_KEY

    def test_disconnect_and_reconfigure(self, remote_db: Database):
        remote_db.disconnect()
        assert remote_db.backend == Backend.LOCAL
        assert not remote_db.transactions.uses_remote

        config = remote_db.reconfigure("other.supabase.co", " new-key ")
        assert config.url == "https://other.supabase.co"
        assert config.key == "new-key"
        assert remote_db.transactions.uses_remote
