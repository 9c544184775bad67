import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from portal.db import Base
from portal.errors import NotFoundError
from portal.models.document import DocumentRecord  # noqa: F401  registers the table
from portal.store.base import OrderBy, eq, in_
from portal.store.sql import SqlDocumentStore


@pytest_asyncio.fixture
async def sql_store():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield SqlDocumentStore(async_sessionmaker(engine, expire_on_commit=False))
    await engine.dispose()


@pytest.mark.asyncio
async def test_add_get_update_delete(sql_store):
    doc_id = await sql_store.add("submissions", {"registration_id": "R1", "is_winner": False})
    doc = await sql_store.get("submissions", doc_id)
    assert doc.data == {"registration_id": "R1", "is_winner": False}

    await sql_store.update("submissions", doc_id, {"is_winner": True, "rank": 1})
    assert (await sql_store.get("submissions", doc_id)).data == {"registration_id": "R1", "is_winner": True, "rank": 1}

    await sql_store.delete("submissions", doc_id)
    assert await sql_store.get("submissions", doc_id) is None
    assert await sql_store.get("announcements", doc_id) is None


@pytest.mark.asyncio
async def test_update_missing_document(sql_store):
    with pytest.raises(NotFoundError):
        await sql_store.update("submissions", "ghost", {"is_winner": True})


@pytest.mark.asyncio
async def test_query_filters_and_order(sql_store):
    await sql_store.set("submissions", "a", {"competition_id": "c1", "registration_id": "R1", "is_winner": True,
                                             "submitted_at": "2025-09-01T00:00:00Z"})
    await sql_store.set("submissions", "b", {"competition_id": "c1", "registration_id": "R2", "is_winner": False,
                                             "submitted_at": "2025-09-03T00:00:00Z"})
    await sql_store.set("submissions", "c", {"competition_id": "c2", "registration_id": "R1", "is_winner": True,
                                             "submitted_at": "2025-09-02T00:00:00Z"})

    newest = await sql_store.query("submissions", order_by=OrderBy("submitted_at", descending=True))
    assert [d.id for d in newest] == ["b", "c", "a"]

    matched = await sql_store.query("submissions", [eq("competition_id", "c1"), in_("registration_id", ["R1", "R9"])])
    assert [d.id for d in matched] == ["a"]

    winners = await sql_store.query("submissions", [eq("is_winner", True)], order_by=OrderBy("submitted_at"))
    assert [d.id for d in winners] == ["a", "c"]

    assert await sql_store.query("submissions", [in_("registration_id", [])]) == []
    assert len(await sql_store.query("submissions", limit=2)) == 2


@pytest.mark.asyncio
async def test_batch_is_all_or_nothing(sql_store):
    await sql_store.set("submissions", "a", {"is_winner": False})
    await sql_store.set("submissions", "b", {"is_winner": False})

    batch = sql_store.batch().update("submissions", "a", {"is_winner": True}).update("submissions", "ghost", {"x": 1})
    with pytest.raises(NotFoundError):
        await sql_store.commit(batch)
    assert (await sql_store.get("submissions", "a")).data["is_winner"] is False

    batch = sql_store.batch().update("submissions", "a", {"is_winner": True}).delete("submissions", "b")
    await sql_store.commit(batch)
    assert (await sql_store.get("submissions", "a")).data["is_winner"] is True
    assert await sql_store.get("submissions", "b") is None
