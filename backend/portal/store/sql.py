from __future__ import annotations
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Sequence

import structlog
from sqlalchemy import select, delete
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from portal.errors import StoreError, PermissionDeniedError, NotFoundError
from portal.models.document import DocumentRecord
from portal.store.base import DocumentStore, Document, FieldFilter, OrderBy, WriteBatch

log = structlog.get_logger()

# Postgres SQLSTATE for insufficient_privilege
_SQLSTATE_PERMISSION_DENIED = "42501"


def _translate(exc: DBAPIError) -> StoreError:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == _SQLSTATE_PERMISSION_DENIED or "permission denied" in str(exc).lower():
        return PermissionDeniedError(str(orig))
    return StoreError(str(orig))


def _typed(expr, sample: Any):
    # bool first: bool is a subclass of int
    if isinstance(sample, bool):
        return expr.as_boolean()
    if isinstance(sample, int):
        return expr.as_integer()
    if isinstance(sample, float):
        return expr.as_float()
    return expr.as_string()


def _condition(f: FieldFilter):
    col = DocumentRecord.data[f.field]
    if f.op == "==":
        if f.value is None:
            return col.as_string().is_(None)
        return _typed(col, f.value) == f.value
    values = list(f.value)
    return _typed(col, values[0]).in_(values)


class SqlDocumentStore(DocumentStore):
    """Document store kept in the `documents` table via SQLAlchemy."""

    def __init__(self, sessionmaker: async_sessionmaker[AsyncSession]):
        self._sessionmaker = sessionmaker

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessionmaker() as session:
                yield session
        except StoreError:
            raise
        except DBAPIError as e:
            raise _translate(e) from e
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    async def get(self, collection: str, doc_id: str) -> Document | None:
        async with self._session() as session:
            row = await session.get(DocumentRecord, (collection, doc_id))
            return Document(row.id, dict(row.data)) if row else None

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex
        async with self._session() as session:
            session.add(DocumentRecord(collection=collection, id=doc_id, data=dict(data)))
            await session.commit()
        return doc_id

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        async with self._session() as session:
            await self._apply_set(session, collection, doc_id, data)
            await session.commit()

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        async with self._session() as session:
            await self._apply_update(session, collection, doc_id, fields)
            await session.commit()

    async def delete(self, collection: str, doc_id: str) -> None:
        async with self._session() as session:
            await session.execute(
                delete(DocumentRecord).where(DocumentRecord.collection == collection, DocumentRecord.id == doc_id)
            )
            await session.commit()

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        # an empty "in" set can never match
        if any(f.op == "in" and not f.value for f in filters):
            return []
        q = select(DocumentRecord).where(DocumentRecord.collection == collection)
        for f in filters:
            q = q.where(_condition(f))
        if order_by is not None:
            key = DocumentRecord.data[order_by.field].as_string()
            q = q.order_by(key.desc() if order_by.descending else key.asc())
        if limit is not None:
            q = q.limit(limit)
        async with self._session() as session:
            rows = (await session.execute(q)).scalars().all()
            return [Document(r.id, dict(r.data)) for r in rows]

    async def commit(self, batch: WriteBatch) -> None:
        if not batch.ops:
            return
        async with self._session() as session:
            async with session.begin():
                for op in batch.ops:
                    if op.kind == "set":
                        await self._apply_set(session, op.collection, op.doc_id, op.data or {})
                    elif op.kind == "update":
                        await self._apply_update(session, op.collection, op.doc_id, op.data or {})
                    else:
                        await session.execute(
                            delete(DocumentRecord).where(
                                DocumentRecord.collection == op.collection, DocumentRecord.id == op.doc_id
                            )
                        )
        log.info("store_batch_committed", ops=len(batch.ops))

    @staticmethod
    async def _apply_set(session: AsyncSession, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        row = await session.get(DocumentRecord, (collection, doc_id))
        if row is None:
            session.add(DocumentRecord(collection=collection, id=doc_id, data=dict(data)))
        else:
            row.data = dict(data)

    @staticmethod
    async def _apply_update(session: AsyncSession, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        row = await session.get(DocumentRecord, (collection, doc_id))
        if row is None:
            raise NotFoundError(collection, doc_id)
        row.data = {**row.data, **fields}
