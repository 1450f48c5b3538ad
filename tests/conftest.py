from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from water_chemistry.core.config import settings
from water_chemistry.db import init_db
from water_chemistry.main import app
from water_chemistry.services.records import RecordService
from water_chemistry.storage import SqliteRecordStore


class FakeClock:
    """Advances one second per call so updated_at strictly increases."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "records.db")
    init_db(path)
    return path


@pytest.fixture
def store(db_path):
    return SqliteRecordStore(db_path)


@pytest.fixture
def service(store):
    return RecordService(store, clock=FakeClock())


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "DATABASE_PATH", str(tmp_path / "api.db"))
    monkeypatch.setattr(settings, "AUTH_ENABLED", True)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers():
    def _headers(owner_id: str) -> dict:
        token = jwt.encode({"sub": owner_id}, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
        return {"Authorization": f"Bearer {token}"}
    return _headers
