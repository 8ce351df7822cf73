import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from app.core.database import Base, get_db
from app.main import app
from app.modules.catalog.cache import get_category_cache
from app.modules.catalog.service import CategoryService

API = "/api/v1"


async def create(client, **payload):
    response = await client.post(f"{API}/categories", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_and_fetch_category(client):
    body = await create(client, name="Electronics & Gadgets!", info={"icon": "bolt"})

    assert body["slug"] == "electronics-gadgets"
    assert body["is_active"] is True
    assert body["sort_order"] == 0
    assert body["children"] == []
    assert body["product_count"] == 0

    by_id = await client.get(f"{API}/categories/{body['id']}")
    assert by_id.status_code == 200
    assert by_id.json()["info"] == {"icon": "bolt"}

    by_slug = await client.get(f"{API}/categories/slug/electronics-gadgets")
    assert by_slug.status_code == 200
    assert by_slug.json()["id"] == body["id"]


async def test_duplicate_names_get_distinct_slugs(client):
    first = await create(client, name="Electronics & Gadgets!")
    second = await create(client, name="Electronics & Gadgets!")

    assert first["slug"] == "electronics-gadgets"
    assert second["slug"] == "electronics-gadgets-1"


async def test_missing_category_is_404(client):
    response = await client.get(f"{API}/categories/999")

    assert response.status_code == 404
    assert response.json() == {"detail": "Category not found"}


async def test_create_under_missing_parent_is_404(client):
    response = await client.post(
        f"{API}/categories", json={"name": "Orphan", "parent_id": 77}
    )
    assert response.status_code == 404


async def test_list_with_children(client):
    root = await create(client, name="Audio")
    await create(client, name="Headphones", parent_id=root["id"])

    response = await client.get(
        f"{API}/categories", params={"include_children": True}
    )
    assert response.status_code == 200

    by_name = {c["name"]: c for c in response.json()}
    assert [c["name"] for c in by_name["Audio"]["children"]] == ["Headphones"]
    assert by_name["Audio"]["product_count"] is None


async def test_patch_rejects_cycles(client):
    root = await create(client, name="Root")
    child = await create(client, name="Child", parent_id=root["id"])

    own = await client.patch(
        f"{API}/categories/{root['id']}", json={"parent_id": root["id"]}
    )
    assert own.status_code == 400
    assert own.json()["detail"] == "Category cannot be its own parent"

    descendant = await client.patch(
        f"{API}/categories/{root['id']}", json={"parent_id": child["id"]}
    )
    assert descendant.status_code == 400
    assert descendant.json()["detail"] == "Cannot set parent to a descendant category"


async def test_patch_renames(client, category_cache):
    category = await create(client, name="Kitchen")

    response = await client.patch(
        f"{API}/categories/{category['id']}", json={"name": "Kitchen & Dining"}
    )

    assert response.status_code == 200
    assert response.json()["slug"] == "kitchen-dining"
    assert category_cache.invalidations == 2


async def test_delete_flow(client):
    root = await create(client, name="Sports")
    child = await create(client, name="Tennis", parent_id=root["id"])

    blocked = await client.delete(f"{API}/categories/{root['id']}")
    assert blocked.status_code == 400
    assert "subcategories" in blocked.json()["detail"]

    assert (await client.delete(f"{API}/categories/{child['id']}")).status_code == 204
    assert (await client.delete(f"{API}/categories/{root['id']}")).status_code == 204
    assert (await client.get(f"{API}/categories/{root['id']}")).status_code == 404


async def test_public_categories_are_cached(client, category_cache):
    await create(client, name="Shown", description="Visible")
    await create(client, name="Hidden", is_active=False)

    response = await client.get(f"{API}/public/categories")
    assert response.status_code == 200
    body = response.json()
    assert [c["name"] for c in body] == ["Shown"]
    assert set(body[0]) == {"id", "name", "slug", "description"}
    assert category_cache.items == body

    # Served from cache until a write invalidates it
    category_cache.items = [{"id": 0, "name": "Cached", "slug": "cached", "description": None}]
    cached = await client.get(f"{API}/public/categories")
    assert cached.json()[0]["name"] == "Cached"

    await create(client, name="Another")
    fresh = await client.get(f"{API}/public/categories")
    assert [c["name"] for c in fresh.json()] == ["Another", "Shown"]


async def test_validation_error_is_422(client):
    response = await client.post(f"{API}/categories", json={"name": ""})
    assert response.status_code == 422


class RefillingCache:
    """Cache that is refilled by a storefront read right after invalidation."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory
        self.items = None

    async def get_public(self):
        return self.items

    async def set_public(self, items) -> None:
        self.items = items

    async def invalidate(self) -> None:
        self.items = None
        # A storefront request on its own connection lands here
        async with self.session_factory() as session:
            public = await CategoryService(session).find_public()
        await self.set_public([c.model_dump() for c in public])


@pytest.fixture
async def file_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


async def test_cache_refilled_after_write_holds_committed_rows(file_engine):
    session_factory = async_sessionmaker(file_engine, expire_on_commit=False)
    cache = RefillingCache(session_factory)

    async def commit_on_exit_db():
        async with session_factory() as session:
            yield session
            await session.commit()

    app.dependency_overrides[get_db] = commit_on_exit_db
    app.dependency_overrides[get_category_cache] = lambda: cache
    try:
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            created = await ac.post(f"{API}/categories", json={"name": "Books"})
            assert created.status_code == 201
            assert [c["name"] for c in cache.items] == ["Books"]

            renamed = await ac.patch(
                f"{API}/categories/{created.json()['id']}", json={"name": "Rare Books"}
            )
            assert renamed.status_code == 200
            assert [c["slug"] for c in cache.items] == ["rare-books"]

            deleted = await ac.delete(f"{API}/categories/{created.json()['id']}")
            assert deleted.status_code == 204
            assert cache.items == []

            public = await ac.get(f"{API}/public/categories")
            assert public.json() == []
    finally:
        app.dependency_overrides.clear()
