import os

# Point the app at a private in-memory database before anything imports it
os.environ["DATABASE_URL"] = "sqlite://"
for key in ("DB_CREDS", "POSTGRES_URL", "INIT_SECRET", "OPENAI_API_KEY", "DEEPSEEK_API_KEY"):
    os.environ[key] = ""

from datetime import datetime, timedelta

import pytest
import pytz
from fastapi.testclient import TestClient

from aiquiz.app import app
from aiquiz.core.database import SessionLocal, bootstrap_database, engine
from aiquiz.models import Base
from aiquiz.utils import user_manager


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        if isinstance(self.now, datetime):
            self.now += timedelta(**kwargs)
        else:
            self.now += kwargs.get("seconds", 0)


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    monkeypatch.setattr(user_manager, "BCRYPT_ROUNDS", 4)


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    with SessionLocal() as db:
        bootstrap_database(db)
    yield


@pytest.fixture
def db():
    with SessionLocal() as session:
        yield session


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def utc_clock():
    return FakeClock(datetime(2026, 3, 14, 9, 30, tzinfo=pytz.utc))


@pytest.fixture
def mono_clock():
    return FakeClock(1000.0)


@pytest.fixture
def admin_token(client):
    response = client.post("/api/admin/login", json={"pin": "0000"})
    assert response.status_code == 200
    return response.json()["sessionToken"]


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def register_user(client):
    def _register(username="alice", password="secret1", pin="1234", email=None):
        return client.post(
            "/api/users/register",
            json={"username": username, "password": password, "pin": pin, "email": email},
        )

    return _register
