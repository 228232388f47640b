def test_default_admin_login_on_fresh_database(client):
    response = client.post("/api/admin/login", json={"pin": "0000"})
    assert response.status_code == 200
    data = response.json()
    assert data["admin"]["username"] == "admin"
    assert data["admin"]["aiLimit"] == 100
    assert len(data["sessionToken"]) == 64


def test_login_rejects_malformed_pin(client):
    response = client.post("/api/admin/login", json={"pin": "12a4"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid PIN format"


def test_login_rejects_unknown_pin(client):
    response = client.post("/api/admin/login", json={"pin": "9999"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid PIN"


def test_verify_and_logout(client, admin_headers):
    response = client.get("/api/admin/verify", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["admin"]["username"] == "admin"

    response = client.post("/api/admin/logout", headers=admin_headers)
    assert response.json()["message"] == "Logged out successfully"

    response = client.get("/api/admin/verify", headers=admin_headers)
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid or expired session"


def test_verify_without_token(client):
    response = client.get("/api/admin/verify")
    assert response.status_code == 401
    assert response.json()["detail"] == "No token provided"


def test_admin_list_requires_session(client):
    response = client.get("/api/admin/admins")
    assert response.status_code == 401


def test_create_and_list_admins(client, admin_headers):
    response = client.post(
        "/api/admin/admins",
        json={"username": "bob", "pin": "4321"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    created = response.json()
    assert created["username"] == "bob"
    assert created["pin"] == "4321"
    assert created["aiLimit"] == 100

    admins = client.get("/api/admin/admins", headers=admin_headers).json()
    assert [a["username"] for a in admins] == ["bob", "admin"]


def test_create_admin_with_taken_pin(client, admin_headers):
    response = client.post(
        "/api/admin/admins",
        json={"username": "bob", "pin": "0000"},
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "PIN already exists"


def test_create_admin_with_bad_pin(client, admin_headers):
    response = client.post(
        "/api/admin/admins",
        json={"username": "bob", "pin": "123"},
        headers=admin_headers,
    )
    assert response.status_code == 400


def test_update_admin(client, admin_headers):
    admin_id = client.get("/api/admin/verify", headers=admin_headers).json()["admin"]["id"]
    response = client.put(
        f"/api/admin/admins/{admin_id}",
        json={"aiLimit": 250},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["aiLimit"] == 250
    assert response.json()["username"] == "admin"


def test_update_admin_without_fields(client, admin_headers):
    response = client.put("/api/admin/admins/1", json={}, headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "No updates provided"


def test_update_unknown_admin(client, admin_headers):
    response = client.put(
        "/api/admin/admins/999",
        json={"username": "ghost"},
        headers=admin_headers,
    )
    assert response.status_code == 404


def test_cannot_delete_last_admin(client, admin_headers):
    admin_id = client.get("/api/admin/verify", headers=admin_headers).json()["admin"]["id"]
    response = client.delete(f"/api/admin/admins/{admin_id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete the last admin user"


def test_delete_admin_removes_its_sessions(client, admin_headers):
    created = client.post(
        "/api/admin/admins",
        json={"username": "bob", "pin": "4321"},
        headers=admin_headers,
    ).json()
    bob_token = client.post("/api/admin/login", json={"pin": "4321"}).json()["sessionToken"]

    response = client.delete(f"/api/admin/admins/{created['id']}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "Admin deleted successfully"

    response = client.get(
        "/api/admin/verify", headers={"Authorization": f"Bearer {bob_token}"}
    )
    assert response.status_code == 401


def test_delete_unknown_admin(client, admin_headers):
    client.post(
        "/api/admin/admins",
        json={"username": "bob", "pin": "4321"},
        headers=admin_headers,
    )
    response = client.delete("/api/admin/admins/999", headers=admin_headers)
    assert response.status_code == 404


def test_method_not_allowed(client):
    response = client.get("/api/admin/login")
    assert response.status_code == 405
