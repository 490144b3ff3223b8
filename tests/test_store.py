import asyncio

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from kitchen_inventory.database import create_session_factory
from kitchen_inventory.db_models import MAX_QUANTITY, StockStatus
from kitchen_inventory.errors import StorageError, ValidationError
from kitchen_inventory.services.reconciliation import ReconciliationService
from kitchen_inventory.store import InventoryStore


async def test_insert_and_find(store):
    item_id = await store.insert("Tomatoes", 3, "120", "2025-04-15", StockStatus.warning)

    by_id = await store.find_by_id(item_id)
    by_name = await store.find_by_name("Tomatoes")

    assert by_id is not None and by_name is not None
    assert by_id.id == by_name.id == item_id
    assert by_id.quantity == 3
    assert by_id.status == "Warning"
    assert by_id.cost == "120"
    assert by_id.expiry == "2025-04-15"


async def test_find_by_name_is_case_sensitive(store):
    await store.insert("tomato", 1, "10", "2025-01-01", StockStatus.good)

    assert await store.find_by_name("Tomato") is None
    assert await store.find_by_name("tomato") is not None


async def test_find_missing_returns_none(store):
    assert await store.find_by_id(999) is None
    assert await store.find_by_name("nothing") is None


async def test_update_reports_affected_count(store):
    item_id = await store.insert("Lettuce", 5, "80", "2025-05-01", StockStatus.good)

    assert await store.update(item_id, {"cost": "90", "status": StockStatus.danger}) == 1
    assert await store.update(item_id + 100, {"cost": "90"}) == 0

    item = await store.find_by_id(item_id)
    assert item.cost == "90"
    assert item.status == "Danger"
    assert item.quantity == 5


async def test_update_rejects_unknown_fields(store):
    item_id = await store.insert("Cheese", 1, "200", "2025-03-30", StockStatus.danger)

    with pytest.raises(ValueError):
        await store.update(item_id, {"name": "Brie"})
    with pytest.raises(ValueError):
        await store.update(item_id, {})


async def test_list_all(store):
    assert await store.list_all() == []

    await store.insert("a", 1, "1", "2025-01-01", StockStatus.good)
    await store.insert("b", 2, "2", "2025-01-02", StockStatus.good)

    names = sorted(item.name for item in await store.list_all())
    assert names == ["a", "b"]


async def test_duplicate_name_insert_is_storage_error(store):
    await store.insert("onion", 1, "5", "2025-01-01", StockStatus.good)

    with pytest.raises(StorageError):
        await store.insert("onion", 2, "5", "2025-01-01", StockStatus.good)

    # session is usable again after the rollback
    assert (await store.find_by_name("onion")).quantity == 1


async def test_upsert_merge_creates_then_merges(store):
    item, created = await store.upsert_merge("tomato", 3, "10", "2025-01-01", StockStatus.good)
    assert created is True
    assert item.quantity == 3

    item, created = await store.upsert_merge("tomato", 2, "12", "2025-01-02", StockStatus.warning)
    assert created is False
    assert item.quantity == 5
    assert item.cost == "12"
    assert item.expiry == "2025-01-02"
    assert item.status == "Warning"
    assert len(await store.list_all()) == 1


async def test_upsert_merge_derives_status_from_total(store):
    item, _ = await store.upsert_merge("apple", 2, "100", "2025-01-11", None)
    assert item.status == "Danger"

    item, _ = await store.upsert_merge("apple", 2, "100", "2025-01-11", None)
    assert item.quantity == 4
    assert item.status == "Warning"

    item, _ = await store.upsert_merge("apple", 2, "100", "2025-01-11", None)
    assert item.quantity == 6
    assert item.status == "Good"


async def test_unreachable_database_is_storage_error(tmp_path):
    # a directory cannot be opened as a sqlite file
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path.as_posix()}")
    try:
        async with create_session_factory(engine)() as session:
            with pytest.raises(StorageError):
                await InventoryStore(session).find_by_name("tomato")
    finally:
        await engine.dispose()


async def test_upsert_merge_refuses_to_overflow_quantity(store):
    await store.upsert_merge("salt", MAX_QUANTITY, "1", "2030-01-01", StockStatus.good)

    with pytest.raises(ValidationError) as exc:
        await store.upsert_merge("salt", 5, "2", "2030-02-01", StockStatus.warning)

    assert exc.value.field == "quantity"
    item = await store.find_by_name("salt")
    assert (item.quantity, item.cost, item.status) == (MAX_QUANTITY, "1", "Good")
    assert [i.quantity for i in await store.list_all()] == [MAX_QUANTITY]


async def test_concurrent_upserts_of_new_name_make_one_row(engine, store):
    factory = create_session_factory(engine)

    async def add_one():
        async with factory() as session:
            result = await ReconciliationService(session).upsert_by_name("kale", 1, "2", "2025-01-01", "Good")
            return result.created

    created = await asyncio.gather(*(add_one() for _ in range(8)))

    assert created.count(True) == 1
    assert [(i.name, i.quantity) for i in await store.list_all()] == [("kale", 8)]
