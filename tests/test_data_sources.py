"""
Tests for the in-memory, local and remote data sources.
"""

import asyncio
import json

import pytest

from expense_tracker.data_sources.fixtures import sample_expenses, sample_user
from expense_tracker.data_sources.in_memory import (
    InMemoryExpenseDataSource,
    InMemoryIncomeDataSource,
    InMemoryUserDataSource,
)
from expense_tracker.data_sources.local import (
    EXPENSES_KEY,
    INCOMES_KEY,
    USER_DETAILS_KEY,
    LocalExpenseDataSource,
    LocalIncomeDataSource,
    LocalUserDataSource,
    load_collection,
    load_user,
)
from expense_tracker.data_sources.remote import (
    RemoteExpenseDataSource,
    RemoteIncomeDataSource,
    RemoteUserDataSource,
    to_document,
)
from expense_tracker.errors import DataNotFoundError, DuplicateRecordError, StorageDecodeError
from expense_tracker.models.records import DatabaseExpense, DatabaseIncome, DatabaseUser


def _expense(record_id: str, name: str = "Lunch", category: str = "Food") -> DatabaseExpense:
    return DatabaseExpense(
        id=record_id, name=name, amount=12.5, date="2025-04-01", category=category, note="",
    )


def _income(record_id: str) -> DatabaseIncome:
    return DatabaseIncome(id=record_id, amount=1000.0, date="2025-04-01", source="Salary")


class TestInMemoryDataSource:
    """Process-local list semantics."""

    def test_seeded_fixtures_are_readable(self):
        source = InMemoryExpenseDataSource(sample_expenses())
        assert len(asyncio.run(source.read_all())) == 3

    def test_create_update_delete(self):
        source = InMemoryExpenseDataSource()

        async def scenario():
            await source.create(_expense("e1"))
            await source.update(_expense("e1", name="Dinner"))
            after_update = await source.read_all()
            await source.delete(_expense("e1"))
            return after_update, await source.read_all()

        after_update, after_delete = asyncio.run(scenario())
        assert [e.name for e in after_update] == ["Dinner"]
        assert after_delete == []

    @pytest.mark.parametrize("operation", ["update", "delete"])
    def test_absent_id_raises_and_leaves_store_unchanged(self, operation):
        source = InMemoryIncomeDataSource([_income("i1")])

        async def scenario():
            with pytest.raises(DataNotFoundError):
                await getattr(source, operation)(_income("missing"))
            return await source.read_all()

        assert asyncio.run(scenario()) == [_income("i1")]

    def test_duplicate_create_is_rejected(self):
        source = InMemoryExpenseDataSource([_expense("e1")])
        with pytest.raises(DuplicateRecordError):
            asyncio.run(source.create(_expense("e1", name="Other")))

    def test_delete_all(self):
        source = InMemoryExpenseDataSource([_expense("e1"), _expense("e2")])

        async def scenario():
            await source.delete_all()
            return await source.read_all()

        assert asyncio.run(scenario()) == []

    def test_user_store_holds_one_user(self):
        source = InMemoryUserDataSource(sample_user())

        async def scenario():
            await source.create(DatabaseUser(id="u2", email="new@example.com"))
            current = await source.read()
            with pytest.raises(DataNotFoundError):
                await source.update(DatabaseUser(id="preview-user"))
            return current

        assert asyncio.run(scenario()).id == "u2"


class TestLocalDataSource:
    """Whole-blob persistence in the SQLite key/value store."""

    def test_add_then_fetch(self, kv_store, logger):
        source = LocalExpenseDataSource(kv_store, logger)
        record = _expense("e1")

        async def scenario():
            await source.create(record)
            return await source.read_all()

        assert asyncio.run(scenario()) == [record]
        assert json.loads(kv_store.get(EXPENSES_KEY))[0]["type"] == "Food"

    def test_data_survives_reload(self, kv_store, logger):
        asyncio.run(LocalIncomeDataSource(kv_store, logger).create(_income("i1")))

        reloaded = load_collection(kv_store, INCOMES_KEY, DatabaseIncome)
        source = LocalIncomeDataSource(kv_store, logger, reloaded)
        assert asyncio.run(source.read_all()) == [_income("i1")]

    def test_concurrent_creates_both_survive(self, kv_store, logger):
        source = LocalExpenseDataSource(kv_store, logger)

        async def scenario():
            await asyncio.gather(source.create(_expense("e1")), source.create(_expense("e2")))
            return await source.read_all()

        assert {e.id for e in asyncio.run(scenario())} == {"e1", "e2"}
        stored = load_collection(kv_store, EXPENSES_KEY, DatabaseExpense)
        assert {e.id for e in stored} == {"e1", "e2"}

    @pytest.mark.parametrize("operation", ["update", "delete"])
    def test_absent_id_leaves_blob_unchanged(self, kv_store, logger, operation):
        source = LocalExpenseDataSource(kv_store, logger)
        asyncio.run(source.create(_expense("e1")))
        before = kv_store.get(EXPENSES_KEY)

        with pytest.raises(DataNotFoundError):
            asyncio.run(getattr(source, operation)(_expense("nope")))

        assert kv_store.get(EXPENSES_KEY) == before
        assert [e.id for e in asyncio.run(source.read_all())] == ["e1"]

    def test_delete_all_persists_empty_collection(self, kv_store, logger):
        source = LocalExpenseDataSource(kv_store, logger, [_expense("e1")])

        async def scenario():
            await source.delete_all()
            return await source.read_all()

        assert asyncio.run(scenario()) == []
        assert load_collection(kv_store, EXPENSES_KEY, DatabaseExpense) == []

    def test_missing_key_loads_empty(self, kv_store):
        assert load_collection(kv_store, EXPENSES_KEY, DatabaseExpense) == []
        assert load_user(kv_store) is None

    def test_corrupt_blob_raises_decode_error(self, kv_store):
        kv_store.set(EXPENSES_KEY, "[{\"id\": 1")
        with pytest.raises(StorageDecodeError):
            load_collection(kv_store, EXPENSES_KEY, DatabaseExpense)

    def test_user_round_trip_and_delete(self, kv_store, logger):
        source = LocalUserDataSource(kv_store, logger)
        user = DatabaseUser(id="u1", email="ada@example.com", first_name="Ada")

        asyncio.run(source.create(user))
        assert json.loads(kv_store.get(USER_DETAILS_KEY))["firstName"] == "Ada"
        assert load_user(kv_store) == user

        asyncio.run(source.delete(user))
        assert kv_store.get(USER_DETAILS_KEY) is None
        assert asyncio.run(source.read()) is None

    def test_user_update_with_other_id_raises(self, kv_store, logger):
        source = LocalUserDataSource(kv_store, logger, DatabaseUser(id="u1"))
        with pytest.raises(DataNotFoundError):
            asyncio.run(source.update(DatabaseUser(id="u2")))


class TestRemoteDataSource:
    """Per-user document collections on the Supabase fake."""

    def test_create_and_read(self, supabase, logger):
        source = RemoteExpenseDataSource(supabase, "u1", logger)

        async def scenario():
            await source.create(_expense("e1"))
            return await source.read_all()

        assert asyncio.run(scenario()) == [_expense("e1")]
        row = supabase.rows("expenses", "u1")[0]
        assert row["type"] == "Food"
        assert row["doc_id"]

    def test_path_is_scoped_to_user(self, supabase, logger):
        assert RemoteIncomeDataSource(supabase, "u1", logger).path == "users/u1/incomes"
        assert RemoteUserDataSource(supabase, "u1", logger).path == "users/u1/user_details"

    def test_users_do_not_see_each_other(self, supabase, logger):
        mine = RemoteExpenseDataSource(supabase, "u1", logger)
        theirs = RemoteExpenseDataSource(supabase, "u2", logger)

        async def scenario():
            await mine.create(_expense("e1"))
            await theirs.create(_expense("e2"))
            await mine.delete_all()
            return await mine.read_all(), await theirs.read_all()

        mine_after, theirs_after = asyncio.run(scenario())
        assert mine_after == []
        assert [e.id for e in theirs_after] == ["e2"]

    def test_update_and_delete_touch_every_duplicate(self, supabase, logger):
        source = RemoteExpenseDataSource(supabase, "u1", logger)

        async def scenario():
            await source.create(_expense("dup"))
            await source.create(_expense("dup"))
            await source.update(_expense("dup", name="Renamed"))
            renamed = await source.read_all()
            await source.delete(_expense("dup"))
            return renamed, await source.read_all()

        renamed, remaining = asyncio.run(scenario())
        assert [e.name for e in renamed] == ["Renamed", "Renamed"]
        assert remaining == []

    def test_absent_target_is_a_no_op(self, supabase, logger):
        source = RemoteIncomeDataSource(supabase, "u1", logger)

        async def scenario():
            await source.create(_income("i1"))
            await source.update(_income("missing"))
            await source.delete(_income("missing"))
            return await source.read_all()

        assert asyncio.run(scenario()) == [_income("i1")]

    def test_malformed_document_raises(self, supabase, logger):
        supabase.tables["expenses"] = [
            {"doc_id": "d1", "user_id": "u1", "id": "e1", "name": "Broken", "amount": "lots"},
        ]
        source = RemoteExpenseDataSource(supabase, "u1", logger)
        with pytest.raises(StorageDecodeError):
            asyncio.run(source.read_all())

    def test_backend_errors_propagate(self, supabase, logger):
        supabase.offline = True
        with pytest.raises(ConnectionError):
            asyncio.run(RemoteExpenseDataSource(supabase, "u1", logger).read_all())

    def test_user_read_returns_first_document(self, supabase, logger):
        source = RemoteUserDataSource(supabase, "u1", logger)

        async def scenario():
            empty = await source.read()
            await source.create(DatabaseUser(id="u1", email="ada@example.com", last_name="L"))
            return empty, await source.read()

        empty, user = asyncio.run(scenario())
        assert empty is None
        assert user == DatabaseUser(id="u1", email="ada@example.com", last_name="L")
        assert supabase.rows("user_details", "u1")[0]["lastName"] == "L"

    def test_to_document_uses_record_codec(self):
        assert to_document(_expense("e1")) == {
            "id": "e1", "name": "Lunch", "amount": 12.5,
            "date": "2025-04-01", "type": "Food", "note": "",
        }
