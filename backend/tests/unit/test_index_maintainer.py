"""Unit tests for index drift inspection and rebuild."""

import pytest

from hotel_pos.application.services import EntityStore, IndexMaintainer
from hotel_pos.domain.exceptions import InvalidCollectionError, WrongKeyTypeError
from hotel_pos.infrastructure.kv import InMemoryKeyValueStore


@pytest.fixture
def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def maintainer(kv: InMemoryKeyValueStore) -> IndexMaintainer:
    return IndexMaintainer(kv)


@pytest.fixture
def store(kv: InMemoryKeyValueStore, maintainer: IndexMaintainer) -> EntityStore:
    return EntityStore(kv, maintainer)


@pytest.mark.asyncio
async def test_clean_collection_has_no_drift(store: EntityStore, maintainer: IndexMaintainer):
    for name in ("宫保鸡丁", "麻婆豆腐"):
        await store.create("dishes", {"name": name})
    report = await maintainer.inspect("dishes")
    assert report.has_drift is False
    assert report.indexed_count == report.record_count == 2


@pytest.mark.asyncio
async def test_inspect_reports_orphans_and_dangling(
    store: EntityStore, maintainer: IndexMaintainer, kv: InMemoryKeyValueStore
):
    kept = await store.create("dishes", {"name": "可乐"})
    await kv.set("dishes:orphan", {"id": "orphan", "name": "written by a script"})
    await kv.set_add("dishes:index", "ghost")

    report = await maintainer.inspect("dishes")
    assert report.orphaned_ids == ["orphan"]
    assert report.dangling_ids == ["ghost"]
    assert report.has_drift is True
    assert kept["id"] not in report.orphaned_ids


@pytest.mark.asyncio
async def test_rebuild_restores_invariant(
    store: EntityStore, maintainer: IndexMaintainer, kv: InMemoryKeyValueStore
):
    kept = await store.create("dishes", {"name": "可乐"})
    await kv.set("dishes:orphan", {"id": "orphan"})
    await kv.set_add("dishes:index", "ghost")

    result = await maintainer.rebuild("dishes")

    assert result.added == 1
    assert result.removed == 1
    assert result.record_count == 2
    assert set(await store.get_index("dishes")) == {kept["id"], "orphan"}
    assert (await maintainer.inspect("dishes")).has_drift is False


@pytest.mark.asyncio
async def test_legacy_array_index_is_detected_and_rewritten(
    maintainer: IndexMaintainer, kv: InMemoryKeyValueStore
):
    await kv.set("orders:a", {"id": "a"})
    await kv.set("orders:b", {"id": "b"})
    await kv.set("orders:index", ["a", "b", "stale"])

    report = await maintainer.inspect("orders")
    assert report.legacy_encoding is True
    assert report.dangling_ids == ["stale"]

    with pytest.raises(WrongKeyTypeError):
        await maintainer.members("orders")

    await maintainer.rebuild("orders")
    assert await kv.key_type("orders:index") == "set"
    assert await maintainer.members("orders") == {"a", "b"}


@pytest.mark.asyncio
async def test_double_encoded_legacy_index_is_parsed(
    maintainer: IndexMaintainer, kv: InMemoryKeyValueStore
):
    await kv.set("orders:a", {"id": "a"})
    await kv.set("orders:index", '["a"]')
    report = await maintainer.inspect("orders")
    assert report.legacy_encoding is True
    assert report.indexed_count == 1
    assert report.dangling_ids == []


@pytest.mark.asyncio
async def test_rebuild_empty_collection_removes_index(
    maintainer: IndexMaintainer, kv: InMemoryKeyValueStore
):
    await kv.set_add("expenses:index", "ghost")
    result = await maintainer.rebuild("expenses")
    assert result.record_count == 0
    assert await kv.key_type("expenses:index") is None


@pytest.mark.asyncio
async def test_rebuild_with_bucket_field(
    store: EntityStore, maintainer: IndexMaintainer, kv: InMemoryKeyValueStore
):
    hot = await store.create("dishes", {"name": "宫保鸡丁", "category": "热菜"})
    cold = await store.create("dishes", {"name": "白切鸡", "category": "凉菜"})
    loose = await store.create("dishes", {"name": "神秘菜"})
    await kv.set_add("dishes:停售:index", "stale")

    result = await maintainer.rebuild("dishes", bucket_field="category")

    assert result.buckets == {"热菜": 1, "凉菜": 1, "未分类": 1}
    assert await maintainer.bucket_members("dishes", "热菜") == {hot["id"]}
    assert await maintainer.bucket_members("dishes", "凉菜") == {cold["id"]}
    assert await maintainer.bucket_members("dishes", "未分类") == {loose["id"]}
    assert await kv.key_type("dishes:停售:index") is None
    assert set(await store.get_index("dishes")) == {hot["id"], cold["id"], loose["id"]}


@pytest.mark.asyncio
async def test_inspect_all_covers_each_collection(maintainer: IndexMaintainer):
    reports = await maintainer.inspect_all(["dishes", "orders"])
    assert [r.collection for r in reports] == ["dishes", "orders"]


@pytest.mark.asyncio
async def test_inspect_rejects_bad_collection(maintainer: IndexMaintainer):
    with pytest.raises(InvalidCollectionError):
        await maintainer.inspect("*")
