import httpx
import pytest
from httpx import AsyncClient

from portal.deps import get_store
from portal.errors import IndexMissingError, StoreError
from portal.main import app
from portal.schemas.announcement import AnnouncementCreate
from portal.services.announcements import AnnouncementService

from fakes import InMemoryStore


def _seed(store: InMemoryStore):
    store.put("announcements", "old", {"title": "Old", "message": "m", "is_active": True,
                                       "created_at": "2025-09-01T10:00:00+00:00"})
    store.put("announcements", "new", {"title": "New", "message": "m", "is_active": True,
                                       "created_at": "2025-09-05T10:00:00+00:00"})
    store.put("announcements", "off", {"title": "Hidden", "message": "m", "is_active": False,
                                       "created_at": "2025-09-09T10:00:00+00:00"})


@pytest.mark.asyncio
async def test_list_active_hides_inactive_newest_first():
    store = InMemoryStore()
    _seed(store)
    active = await AnnouncementService(store).list_active()
    assert [a.id for a in active] == ["new", "old"]


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [IndexMissingError("needs composite index"), StoreError("unavailable")])
async def test_list_active_falls_back_to_empty(error):
    store = InMemoryStore()
    _seed(store)
    store.query_error = error
    assert await AnnouncementService(store).list_active() == []


@pytest.mark.asyncio
async def test_create_toggle_delete():
    store = InMemoryStore()
    svc = AnnouncementService(store)
    r = await svc.create(AnnouncementCreate(title="Results", message="Out now", link="https://example.com/r"))
    assert r.success and r.message == "Announcement created successfully."
    (doc_id,) = store.collections["announcements"]

    assert (await svc.set_active(doc_id, False)).success
    assert await svc.list_active() == []
    assert [a.id for a in await svc.list_all()] == [doc_id]

    assert (await svc.delete(doc_id)).success
    assert await svc.list_all() == []


@pytest.mark.asyncio
async def test_toggle_missing_announcement_is_not_found():
    r = await AnnouncementService(InMemoryStore()).set_active("ghost", True)
    assert r.error == "not_found"


@pytest.mark.asyncio
async def test_public_and_admin_endpoints(admin_headers):
    store = InMemoryStore()
    _seed(store)
    app.dependency_overrides[get_store] = lambda: store
    try:
        async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
            r = await ac.get("/announcements")
            assert r.status_code == 200
            assert [a["title"] for a in r.json()] == ["New", "Old"]

            assert (await ac.get("/admin/announcements")).status_code == 401

            r = await ac.post("/admin/announcements", headers=admin_headers,
                              json={"title": "Hi", "message": "there", "is_active": False})
            assert r.status_code == 201, r.text
            assert r.json()["success"] is True

            r = await ac.get("/admin/announcements", headers=admin_headers)
            assert len(r.json()) == 4

            r = await ac.patch("/admin/announcements/off", headers=admin_headers, json={"is_active": True})
            assert r.status_code == 200
            r = await ac.get("/announcements")
            assert [a["title"] for a in r.json()] == ["Hidden", "New", "Old"]

            r = await ac.delete("/admin/announcements/off", headers=admin_headers)
            assert r.status_code == 200
            assert "off" not in store.collections["announcements"]
    finally:
        app.dependency_overrides.clear()
