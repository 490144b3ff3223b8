import pytest

from kitchen_inventory.db_models import InventoryItem, StockStatus
from kitchen_inventory.errors import NotFoundError, ValidationError
from kitchen_inventory.services.reconciliation import derive_status


async def test_new_name_creates_one_record(service, store):
    result = await service.upsert_by_name("basil", 4, "30", "2025-06-01", "Good")

    assert result.created is True
    assert result.item.quantity == 4
    items = await store.list_all()
    assert [(i.name, i.quantity) for i in items] == [("basil", 4)]


async def test_tomato_scenario(service, store):
    first = await service.upsert_by_name("tomato", 3, "10", "2025-01-01", "Good")
    second = await service.upsert_by_name("tomato", 2, "12", "2025-01-02", "Warning")

    assert first.created is True
    assert second.created is False
    assert second.item.id == first.item.id
    assert second.item.quantity == 5
    assert second.item.cost == "12"
    assert second.item.expiry == "2025-01-02"
    assert second.item.status == "Warning"
    assert len(await store.list_all()) == 1


async def test_zero_delta_refreshes_metadata_only(service):
    await service.upsert_by_name("rice", 7, "50", "2025-01-01", "Good")
    result = await service.upsert_by_name("rice", 0, "55", "2025-02-01", "Warning")

    assert result.item.quantity == 7
    assert result.item.cost == "55"


@pytest.mark.parametrize(
    "kwargs, field",
    [
        ({"delta_quantity": None}, "quantity"),
        ({"cost": None}, "cost"),
        ({"cost": ""}, "cost"),
        ({"expiry": None}, "expiry"),
        ({"status": None}, "status"),
        ({"status": "Rotten"}, "status"),
        ({"expiry": "01/02/2025"}, "expiry"),
        ({"cost": "cheap"}, "cost"),
        ({"delta_quantity": -1}, "quantity"),
        ({"delta_quantity": True}, "quantity"),
        ({"delta_quantity": 2**63}, "quantity"),
    ],
)
async def test_upsert_validation_leaves_store_unchanged(service, store, kwargs, field):
    await service.upsert_by_name("tomato", 3, "10", "2025-01-01", "Good")
    args = {"delta_quantity": 2, "cost": "12", "expiry": "2025-01-02", "status": "Warning"}
    args.update(kwargs)

    with pytest.raises(ValidationError) as exc:
        await service.upsert_by_name("tomato", **args)

    assert exc.value.field == field
    item = await store.find_by_name("tomato")
    assert (item.quantity, item.cost, item.expiry, item.status) == (3, "10", "2025-01-01", "Good")


async def test_surrounding_whitespace_in_name_is_ignored(service, store):
    first = await service.upsert_by_name("tomato ", 3, "10", "2025-01-01", "Good")
    second = await service.upsert_by_name(" tomato", 2, "10", "2025-01-01", "Good")

    assert second.item.id == first.item.id
    assert [(i.name, i.quantity) for i in await store.list_all()] == [("tomato", 5)]


async def test_upsert_on_empty_store_with_missing_field_creates_nothing(service, store):
    with pytest.raises(ValidationError):
        await service.upsert_by_name("tomato", None, "10", "2025-01-01", "Good")

    assert await store.list_all() == []


async def test_detection_vocabulary_is_accepted_as_alias(service):
    result = await service.upsert_by_name("lemon", 1, "5", "2025-01-01", "in stock")
    assert result.item.status == StockStatus.good.value

    result = await service.upsert_by_name("lemon", 1, "5", "2025-01-01", "Critical")
    assert result.item.status == StockStatus.danger.value


async def test_update_by_id_never_changes_quantity(service, store):
    item = (await service.upsert_by_name("milk", 9, "40", "2025-01-01", "Good")).item

    affected = await service.update_by_id(item.id, "45", "2025-01-20", "Danger")

    assert affected == 1
    refreshed = await store.find_by_id(item.id)
    assert refreshed.quantity == 9
    assert (refreshed.cost, refreshed.expiry, refreshed.status) == ("45", "2025-01-20", "Danger")


async def test_update_existing_id_42_scenario(service, store, db):
    db.add(InventoryItem(id=42, name="flour", quantity=10, status="Good", expiry="2025-01-01", cost="3"))
    await db.commit()

    item = await service.edit_item(42, "5", "2025-02-01", "Danger")

    assert item.quantity == 10
    assert item.status == "Danger"
    assert item.cost == "5"
    assert item.expiry == "2025-02-01"


async def test_update_unknown_id_returns_zero_and_creates_nothing(service, store):
    await service.upsert_by_name("egg", 12, "2", "2025-01-01", "Good")
    before = [(i.id, i.name, i.quantity, i.cost) for i in await store.list_all()]

    assert await service.update_by_id(12345, "1", "2025-01-01", "Good") == 0

    after = [(i.id, i.name, i.quantity, i.cost) for i in await store.list_all()]
    assert after == before


async def test_edit_unknown_id_raises_not_found(service):
    with pytest.raises(NotFoundError):
        await service.edit_item(777, "1", "2025-01-01", "Good")


async def test_update_by_id_requires_all_fields(service):
    item = (await service.upsert_by_name("salt", 1, "1", "2025-01-01", "Good")).item

    with pytest.raises(ValidationError):
        await service.update_by_id(item.id, "1", None, "Good")


async def test_record_observation_without_status_uses_total(service):
    await service.record_observation("carrot", 2, cost="100", expiry="2025-01-11")
    result = await service.record_observation("carrot", 4, cost="100", expiry="2025-01-11")

    assert result.item.quantity == 6
    assert result.item.status == "Good"


def test_derive_status_thresholds():
    assert derive_status(6) is StockStatus.good
    assert derive_status(5) is StockStatus.warning
    assert derive_status(3) is StockStatus.warning
    assert derive_status(2) is StockStatus.danger
    assert derive_status(0) is StockStatus.danger
    assert derive_status(6).display_label == "In Stock"
    assert derive_status(3).display_label == "Low"
    assert derive_status(1).display_label == "Critical"


async def test_get_item_not_found(service):
    with pytest.raises(NotFoundError):
        await service.get_item(1)
