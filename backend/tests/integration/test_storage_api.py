"""End-to-end tests for the storage HTTP surface over an in-process backend."""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from hotel_pos.application.services import StorageFacade
from hotel_pos.config import Settings, get_settings
from hotel_pos.infrastructure.kv import InMemoryKeyValueStore
from hotel_pos.main import create_app

ADMIN_KEY = "s3cret"
ADMIN = {"Authorization": f"Bearer {ADMIN_KEY}"}


class PersistentMemoryStore(InMemoryKeyValueStore):
    backend_type = "test-persistent"
    description = "In-process store reported as persistent"
    is_persistent = True


def _build_app(kv: InMemoryKeyValueStore) -> FastAPI:
    app = create_app()
    app.state.storage_facade = StorageFacade.for_backend(kv)
    app.dependency_overrides[get_settings] = lambda: Settings(_env_file=None, admin_key=ADMIN_KEY)
    return app


@pytest_asyncio.fixture
async def kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest_asyncio.fixture
async def client(kv: InMemoryKeyValueStore) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=_build_app(kv))
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def persistent_client() -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=_build_app(PersistentMemoryStore()))
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# ── collections ──


@pytest.mark.asyncio
async def test_crud_cycle(client: AsyncClient):
    payload = {"name": "Kung Pao Chicken", "price": 35.0, "category": "热菜"}
    created = await client.post("/api/v1/collections/dishes", json=payload)
    assert created.status_code == 201
    dish = created.json()
    assert dish["createdAt"] == dish["updatedAt"]

    listing = await client.get("/api/v1/collections/dishes")
    assert [d["id"] for d in listing.json()] == [dish["id"]]

    index = (await client.get("/api/v1/collections/dishes/index")).json()
    assert index == {"collection": "dishes", "ids": [dish["id"]], "count": 1}

    updated = await client.put(f"/api/v1/collections/dishes/{dish['id']}", json={"price": 38})
    assert updated.status_code == 200
    assert updated.json()["price"] == 38
    assert updated.json()["category"] == "热菜"

    first = await client.delete(f"/api/v1/collections/dishes/{dish['id']}")
    second = await client.delete(f"/api/v1/collections/dishes/{dish['id']}")
    assert first.json() == {"deleted": True}
    assert second.json() == {"deleted": False}
    assert (await client.get("/api/v1/collections/dishes/index")).json()["ids"] == []


@pytest.mark.asyncio
async def test_not_found_and_bad_payloads(client: AsyncClient):
    assert (await client.get("/api/v1/collections/dishes/missing")).status_code == 404
    assert (await client.put("/api/v1/collections/dishes/missing", json={"price": 1})).status_code == 404
    assert (await client.post("/api/v1/collections/dishes", json=[1, 2, 3])).status_code == 400
    assert (await client.post("/api/v1/collections/dishes", json={"name": "", "price": 1})).status_code == 400
    assert (await client.get("/api/v1/collections/bad*name")).status_code == 400


@pytest.mark.asyncio
async def test_legacy_index_reports_conflict(client: AsyncClient, kv: InMemoryKeyValueStore):
    await kv.set("orders:index", ["a"])
    response = await client.get("/api/v1/collections/orders")
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_index_key_cannot_be_deleted_or_updated_as_a_record(client: AsyncClient):
    for name in ("可乐", "春卷"):
        await client.post("/api/v1/collections/dishes", json={"name": name, "price": 5})

    response = await client.delete("/api/v1/collections/dishes/index")
    assert response.status_code == 200
    assert response.json() == {"deleted": False}
    assert (await client.put("/api/v1/collections/dishes/index", json={"price": 1})).status_code == 404

    assert len((await client.get("/api/v1/collections/dishes")).json()) == 2
    assert len((await client.get("/api/v1/collections/dishes/index")).json()["ids"]) == 2


# ── status / seed ──


@pytest.mark.asyncio
async def test_db_status_on_fallback(client: AsyncClient):
    data = (await client.get("/api/v1/db-status")).json()
    assert data["backend"] == "memory"
    assert data["connected"] is True
    assert data["is_real_connection"] is False
    assert data["collections"] == {}


@pytest.mark.asyncio
async def test_db_status_counts_on_real_backend(persistent_client: AsyncClient):
    await persistent_client.post("/api/v1/collections/dishes", json={"name": "可乐", "price": 12})
    data = (await persistent_client.get("/api/v1/db-status")).json()
    assert data["is_real_connection"] is True
    assert data["collections"]["dishes"] == 1
    assert data["collections"]["orders"] == 0


@pytest.mark.asyncio
async def test_seed_requires_admin_key(persistent_client: AsyncClient):
    assert (await persistent_client.post("/api/v1/seed")).status_code == 401
    wrong = await persistent_client.post("/api/v1/seed", headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401


@pytest.mark.asyncio
async def test_seed_refused_on_fallback(client: AsyncClient, kv: InMemoryKeyValueStore):
    response = await client.post("/api/v1/seed", headers=ADMIN)
    assert response.status_code == 503
    assert len(kv) == 0


@pytest.mark.asyncio
async def test_seed_on_real_backend(persistent_client: AsyncClient):
    response = await persistent_client.post("/api/v1/seed", headers=ADMIN)
    assert response.status_code == 200
    assert response.json()["counts"]["hotel_rooms"] == 64
    rooms = (await persistent_client.get("/api/v1/collections/hotel_rooms")).json()
    assert len(rooms) == 64


# ── maintenance ──


@pytest.mark.asyncio
async def test_inspect_and_rebuild_indexes(client: AsyncClient, kv: InMemoryKeyValueStore):
    await kv.set("dishes:orphan", {"id": "orphan", "category": "热菜"})

    report = (await client.get("/api/v1/maintenance/indexes/dishes")).json()
    assert report["orphaned_ids"] == ["orphan"]
    assert report["has_drift"] is True

    rebuilt = await client.post(
        "/api/v1/maintenance/indexes/dishes/rebuild", params={"bucket_field": "category"}
    )
    assert rebuilt.status_code == 200
    assert rebuilt.json()["buckets"] == {"热菜": 1}

    reports = (await client.get("/api/v1/maintenance/indexes")).json()
    assert not any(r["has_drift"] for r in reports)


# ── snapshots ──


@pytest.mark.asyncio
async def test_snapshot_round_trip(client: AsyncClient):
    dish = (await client.post("/api/v1/collections/dishes", json={"name": "春卷", "price": 22})).json()
    first = await client.post("/api/v1/snapshots", json={"description": "before"})
    assert first.status_code == 201
    snap_a = first.json()["id"]

    await client.delete(f"/api/v1/collections/dishes/{dish['id']}")
    snap_b = (await client.post("/api/v1/snapshots", json={})).json()["id"]

    listed = (await client.get("/api/v1/snapshots")).json()
    assert {s["id"] for s in listed} == {snap_a, snap_b}

    diff = (await client.get(f"/api/v1/snapshots/{snap_a}/compare/{snap_b}")).json()
    assert diff["changes"]["dishes"]["removed"] == [dish["id"]]

    assert (await client.post(f"/api/v1/snapshots/{snap_a}/restore")).status_code == 401
    restored = await client.post(f"/api/v1/snapshots/{snap_a}/restore", headers=ADMIN)
    assert restored.status_code == 200
    assert restored.json()["restored"]["dishes"] == 1
    assert (await client.get(f"/api/v1/collections/dishes/{dish['id']}")).status_code == 200


@pytest.mark.asyncio
async def test_unknown_snapshot_is_404(client: AsyncClient):
    response = await client.get("/api/v1/snapshots/1-a/compare/2-b")
    assert response.status_code == 404
