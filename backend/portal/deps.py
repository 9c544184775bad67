from __future__ import annotations
from functools import lru_cache
from portal.db import SessionLocal
from portal.store.base import DocumentStore
from portal.store.sql import SqlDocumentStore


@lru_cache(maxsize=1)
def _default_store() -> DocumentStore:
    return SqlDocumentStore(SessionLocal)


def get_store() -> DocumentStore:
    return _default_store()
