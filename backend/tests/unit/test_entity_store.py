"""Unit tests for the EntityStore (record CRUD plus index maintenance)."""

import asyncio
import logging
from datetime import datetime, timezone

import pytest

from hotel_pos.application.services import EntityStore
from hotel_pos.application.services.entity_store import generate_id, parse_timestamp
from hotel_pos.domain.exceptions import (
    EntityNotFoundError,
    InvalidCollectionError,
    InvalidPayloadError,
)
from hotel_pos.infrastructure.kv import InMemoryKeyValueStore

FROZEN = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv: InMemoryKeyValueStore) -> EntityStore:
    return EntityStore(kv)


async def _live_ids(store: EntityStore, kv: InMemoryKeyValueStore, collection: str) -> set[str]:
    found = set()
    for key in await kv.keys(f"{collection}:*"):
        record_id = key.split(":", 1)[1]
        if record_id != "index" and await store.get(collection, record_id) is not None:
            found.add(record_id)
    return found


@pytest.mark.asyncio
async def test_create_then_get_round_trip(store: EntityStore):
    payload = {"name": "扬州炒饭", "price": 35, "tags": ["主食"], "meta": {"spicy": False}}
    created = await store.create("dishes", payload)

    fetched = await store.get("dishes", created["id"])
    assert fetched == {**payload, "id": created["id"], "createdAt": created["createdAt"], "updatedAt": created["updatedAt"]}


@pytest.mark.asyncio
async def test_create_assigns_id_and_equal_timestamps(store: EntityStore):
    record = await store.create("dishes", {"name": "Kung Pao Chicken", "price": 35.0, "category": "热菜"})
    assert len(record["id"]) == 32
    assert record["createdAt"] == record["updatedAt"]
    assert record["createdAt"].endswith("Z")
    assert record["category"] == "热菜"


@pytest.mark.asyncio
async def test_server_fields_override_payload(store: EntityStore):
    record = await store.create("dishes", {"id": "forged", "createdAt": "1999-01-01T00:00:00.000Z"})
    assert record["id"] != "forged"
    assert record["createdAt"] != "1999-01-01T00:00:00.000Z"


@pytest.mark.asyncio
async def test_kung_pao_scenario(store: EntityStore):
    record = await store.create("dishes", {"name": "Kung Pao Chicken", "price": 35.0, "category": "热菜"})
    assert record["id"] in {r["id"] for r in await store.get_all("dishes")}

    assert await store.delete("dishes", record["id"]) is True
    assert record["id"] not in {r["id"] for r in await store.get_all("dishes")}
    assert record["id"] not in await store.get_index("dishes")


@pytest.mark.asyncio
async def test_index_matches_records_after_each_call(store: EntityStore, kv: InMemoryKeyValueStore):
    ids = []
    for n in range(5):
        ids.append((await store.create("orders", {"n": n}))["id"])
        assert set(await store.get_index("orders")) == await _live_ids(store, kv, "orders")
    for record_id in ids[::2]:
        await store.delete("orders", record_id)
        assert set(await store.get_index("orders")) == await _live_ids(store, kv, "orders")
    assert set(await store.get_index("orders")) == set(ids[1::2])


@pytest.mark.asyncio
async def test_delete_is_idempotent(store: EntityStore):
    record = await store.create("expenses", {"amount": 10})
    assert await store.delete("expenses", record["id"]) is True
    assert await store.delete("expenses", record["id"]) is False
    assert await store.delete("expenses", "never-existed") is False


@pytest.mark.asyncio
async def test_get_all_skips_dangling_index_entries(
    store: EntityStore, kv: InMemoryKeyValueStore, caplog: pytest.LogCaptureFixture
):
    keep = await store.create("dishes", {"name": "可乐"})
    gone = await store.create("dishes", {"name": "春卷"})
    await kv.delete(f"dishes:{gone['id']}")  # drift introduced behind the store's back

    with caplog.at_level(logging.WARNING, logger="hotel_pos.application.services.entity_store"):
        records = await store.get_all("dishes")
    assert [r["id"] for r in records] == [keep["id"]]
    assert gone["id"] in caplog.text


@pytest.mark.asyncio
async def test_get_all_orders_by_creation(kv: InMemoryKeyValueStore):
    ticks = iter(datetime(2025, 1, 1, 0, 0, s, tzinfo=timezone.utc) for s in range(10))
    store = EntityStore(kv, clock=lambda: next(ticks))
    names = ["c", "a", "b"]
    for name in names:
        await store.create("dishes", {"name": name})
    assert [r["name"] for r in await store.get_all("dishes")] == names


@pytest.mark.asyncio
async def test_update_preserves_identity_and_bumps_updated_at(kv: InMemoryKeyValueStore):
    store = EntityStore(kv, clock=lambda: FROZEN)
    record = await store.create("hotel_rooms", {"roomNumber": "8201", "status": "available"})

    first = await store.update("hotel_rooms", record["id"], {"status": "occupied", "id": "other"})
    second = await store.update("hotel_rooms", record["id"], {"status": "cleaning"})

    assert first["id"] == record["id"]
    assert first["createdAt"] == record["createdAt"]
    assert first["roomNumber"] == "8201"
    assert parse_timestamp(first["updatedAt"]) > parse_timestamp(record["updatedAt"])
    assert parse_timestamp(second["updatedAt"]) > parse_timestamp(first["updatedAt"])
    assert (await store.get("hotel_rooms", record["id"]))["status"] == "cleaning"


@pytest.mark.asyncio
async def test_update_does_not_touch_index(store: EntityStore):
    record = await store.create("dishes", {"name": "可乐"})
    before = await store.get_index("dishes")
    await store.update("dishes", record["id"], {"price": 12})
    assert await store.get_index("dishes") == before


@pytest.mark.asyncio
async def test_update_missing_record_raises(store: EntityStore):
    with pytest.raises(EntityNotFoundError):
        await store.update("dishes", "nope", {"price": 1})


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [None, [1, 2, 3], "text", 42])
async def test_invalid_payload_rejected_without_writes(
    store: EntityStore, kv: InMemoryKeyValueStore, payload
):
    await store.create("dishes", {"name": "seed"})
    before = len(kv)
    with pytest.raises(InvalidPayloadError):
        await store.create("dishes", payload)
    assert len(kv) == before


@pytest.mark.asyncio
async def test_invalid_patch_rejected(store: EntityStore):
    record = await store.create("dishes", {"name": "可乐"})
    with pytest.raises(InvalidPayloadError):
        await store.update("dishes", record["id"], ["price", 1])


@pytest.mark.asyncio
async def test_invalid_collection_rejected(store: EntityStore):
    with pytest.raises(InvalidCollectionError):
        await store.create("dishes:index", {"name": "x"})
    with pytest.raises(InvalidCollectionError):
        await store.get_all("")


@pytest.mark.asyncio
async def test_put_uses_fixed_id_and_keeps_created_at(store: EntityStore):
    first = await store.put("system_settings", "default", {"exchangeRate": 8.2})
    second = await store.put("system_settings", "default", {"exchangeRate": 8.5})
    assert second["id"] == "default"
    assert second["createdAt"] == first["createdAt"]
    assert await store.get_index("system_settings") == ["default"]
    assert await store.count("system_settings") == 1


@pytest.mark.asyncio
async def test_put_rejects_reserved_ids(store: EntityStore):
    with pytest.raises(InvalidPayloadError):
        await store.put("dishes", "index", {})
    with pytest.raises(InvalidPayloadError):
        await store.put("dishes", "a:b", {})


@pytest.mark.asyncio
@pytest.mark.parametrize("record_id", ["index", "热菜:index", "a:b", ""])
async def test_index_shaped_ids_never_address_index_keys(
    store: EntityStore, kv: InMemoryKeyValueStore, record_id: str
):
    first = await store.create("dishes", {"name": "可乐", "category": "热菜"})
    second = await store.create("dishes", {"name": "春卷", "category": "热菜"})
    await kv.set_add("dishes:热菜:index", first["id"], second["id"])

    assert await store.delete("dishes", record_id) is False
    assert await store.get("dishes", record_id) is None
    with pytest.raises(EntityNotFoundError):
        await store.update("dishes", record_id, {"name": "x"})

    assert set(await store.get_index("dishes")) == {first["id"], second["id"]}
    assert await kv.set_members("dishes:热菜:index") == {first["id"], second["id"]}
    assert len(await store.get_all("dishes")) == 2


@pytest.mark.asyncio
async def test_concurrent_creates_keep_every_id(store: EntityStore):
    created = await asyncio.gather(*(store.create("orders", {"n": n}) for n in range(50)))
    assert set(await store.get_index("orders")) == {r["id"] for r in created}
    assert await store.count("orders") == 50


def test_generate_id_is_unique_hex():
    ids = {generate_id() for _ in range(1000)}
    assert len(ids) == 1000
    assert all(len(i) == 32 and int(i, 16) >= 0 for i in ids)
