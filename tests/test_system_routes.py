from aiquiz import config
from aiquiz.core.database import engine
from aiquiz.models import Base


def test_init_db_is_idempotent(client):
    response = client.post("/api/init-db")
    assert response.status_code == 200
    assert response.json() == {
        "success": True,
        "message": "Database initialized successfully",
        "defaultAdminCreated": False,
    }


def test_init_db_on_empty_database(client):
    Base.metadata.drop_all(bind=engine)
    response = client.post("/api/init-db")
    assert response.json()["defaultAdminCreated"] is True
    assert client.post("/api/admin/login", json={"pin": "0000"}).status_code == 200


def test_init_db_secret(client, monkeypatch):
    monkeypatch.setattr(config, "INIT_SECRET", "s3cret")

    response = client.post("/api/init-db")
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid initialization secret"

    response = client.post("/api/init-db", headers={"X-Init-Secret": "wrong"})
    assert response.status_code == 401

    response = client.post("/api/init-db", headers={"X-Init-Secret": "s3cret"})
    assert response.status_code == 200


def test_init_db_with_non_ascii_secret(client, monkeypatch):
    monkeypatch.setattr(config, "INIT_SECRET", "s\u00e9cret")
    response = client.post("/api/init-db", headers={"X-Init-Secret": "secret"})
    assert response.status_code == 401


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["docs"]["swagger"] == "/docs"
