from __future__ import annotations
import copy
import itertools
import json
from collections import defaultdict
from typing import Any, Sequence

from portal.errors import NotFoundError, SheetsExportError, StoreError
from portal.schemas.submission import Submission
from portal.services.sheets import submission_row
from portal.store.base import Document, DocumentStore, FieldFilter, OrderBy, WriteBatch


class InMemoryStore(DocumentStore):
    """Dict-backed DocumentStore that records every query and commit."""

    def __init__(self):
        self.collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self.queries: list[tuple[str, tuple[FieldFilter, ...]]] = []
        self.commits: list[WriteBatch] = []
        self.writes = 0
        self.error: StoreError | None = None          # raised by every call
        self.query_error: StoreError | None = None
        self.commit_error: StoreError | None = None
        self._ids = itertools.count(1)

    # test helpers
    def put(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self.collections[collection][doc_id] = json.loads(json.dumps(data))

    def put_submission(self, doc_id: str, **fields) -> dict[str, Any]:
        data = {
            "competition_id": "follow-win",
            "competition_name": "Follow & Win (Daily winner)",
            "submitted_at": "2025-09-01T10:00:00Z",
            "is_winner": False,
        }
        data.update(fields)
        self.put("submissions", doc_id, data)
        return data

    def doc(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        return self.collections[collection].get(doc_id)

    def _check(self):
        if self.error is not None:
            raise self.error

    async def get(self, collection: str, doc_id: str) -> Document | None:
        self._check()
        data = self.collections[collection].get(doc_id)
        return Document(doc_id, copy.deepcopy(data)) if data is not None else None

    async def add(self, collection: str, data: dict[str, Any]) -> str:
        self._check()
        doc_id = f"doc{next(self._ids)}"
        self.put(collection, doc_id, data)
        self.writes += 1
        return doc_id

    async def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        self._check()
        self.put(collection, doc_id, data)
        self.writes += 1

    async def update(self, collection: str, doc_id: str, fields: dict[str, Any]) -> None:
        self._check()
        if doc_id not in self.collections[collection]:
            raise NotFoundError(collection, doc_id)
        self.collections[collection][doc_id].update(json.loads(json.dumps(fields)))
        self.writes += 1

    async def delete(self, collection: str, doc_id: str) -> None:
        self._check()
        self.collections[collection].pop(doc_id, None)
        self.writes += 1

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: OrderBy | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        self._check()
        self.queries.append((collection, tuple(filters)))
        if self.query_error is not None:
            raise self.query_error
        out = []
        for doc_id, data in self.collections[collection].items():
            ok = True
            for f in filters:
                v = data.get(f.field)
                if f.op == "==" and v != f.value:
                    ok = False
                elif f.op == "in" and v not in f.value:
                    ok = False
            if ok:
                out.append(Document(doc_id, copy.deepcopy(data)))
        if order_by is not None:
            out.sort(key=lambda d: str(d.data.get(order_by.field) or ""), reverse=order_by.descending)
        return out[:limit] if limit is not None else out

    async def commit(self, batch: WriteBatch) -> None:
        self._check()
        if self.commit_error is not None:
            raise self.commit_error
        # all-or-nothing: validate before applying anything
        for op in batch.ops:
            if op.kind == "update" and op.doc_id not in self.collections[op.collection]:
                raise NotFoundError(op.collection, op.doc_id)
        for op in batch.ops:
            if op.kind == "set":
                self.put(op.collection, op.doc_id, op.data or {})
            elif op.kind == "update":
                self.collections[op.collection][op.doc_id].update(json.loads(json.dumps(op.data or {})))
            else:
                self.collections[op.collection].pop(op.doc_id, None)
        self.writes += len(batch.ops)
        self.commits.append(batch)


class RecordingExporter:
    def __init__(self, fail: bool | Exception = False):
        self.fail = fail
        self.rows: list[list[str]] = []

    async def append_submission(self, s: Submission) -> None:
        if isinstance(self.fail, Exception):
            raise self.fail
        if self.fail:
            raise SheetsExportError("sheet unavailable")
        self.rows.append(submission_row(s))


class FakeFileStorage:
    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}

    async def put_bytes(self, key: str, data: bytes, content_type: str) -> str:
        self.objects[key] = (data, content_type)
        return self.url_for(key)

    def url_for(self, key: str) -> str:
        return f"https://files.test/{key}"

    async def remove(self, key: str) -> None:
        self.objects.pop(key, None)
