from __future__ import annotations
import pytest
from fastapi.testclient import TestClient

from portal.config import settings
from portal.deps import get_store
from portal.main import app
from portal.security import make_access_token
from portal.services.sheets import get_sheets_exporter
from portal.services.storage import get_file_storage

from fakes import FakeFileStorage, InMemoryStore, RecordingExporter


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def exporter():
    return RecordingExporter()


@pytest.fixture
def file_storage():
    return FakeFileStorage()


@pytest.fixture
def client(store, exporter, file_storage):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_sheets_exporter] = lambda: exporter
    app.dependency_overrides[get_file_storage] = lambda: file_storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {make_access_token(settings.admin_email)}"}
