from conftest import auth, create_task, register, register_admin


def test_user_management_is_admin_only(client):
    alice, token = register(client, "alice")

    for method, path in (
        ("GET", "/api/v1/users"),
        ("GET", "/api/v1/users/stats"),
        ("GET", f"/api/v1/users/{alice['id']}"),
        ("PUT", f"/api/v1/users/{alice['id']}"),
        ("DELETE", f"/api/v1/users/{alice['id']}"),
    ):
        response = client.request(method, path, json={"username": "x" * 5} if method == "PUT" else None, headers=auth(token))
        assert response.status_code == 403, path

    assert client.get("/api/v1/users").status_code == 401


def test_admin_reads_and_edits_users(client):
    alice, _ = register(client, "alice")
    register(client, "bob")
    _, admin = register_admin(client)

    listing = client.get("/api/v1/users", headers=auth(admin)).json()["data"]["users"]
    assert {u["username"] for u in listing} == {"alice", "bob", "boss"}

    stats = client.get("/api/v1/users/stats", headers=auth(admin)).json()["data"]["stats"]
    assert stats == {"total": 3, "admins": 1, "users": 2}

    one = client.get(f"/api/v1/users/{alice['id']}", headers=auth(admin)).json()["data"]["user"]
    assert one["email"] == "alice@example.com"
    assert client.get("/api/v1/users/9999", headers=auth(admin)).status_code == 404

    renamed = client.put(f"/api/v1/users/{alice['id']}", json={"username": "alicia"}, headers=auth(admin))
    assert renamed.status_code == 200
    assert renamed.json()["data"]["user"]["username"] == "alicia"

    clash = client.put(f"/api/v1/users/{alice['id']}", json={"username": "bob"}, headers=auth(admin))
    assert clash.status_code == 400
    assert clash.json()["message"] == "Username already taken"

    email_clash = client.put(f"/api/v1/users/{alice['id']}", json={"email": "bob@example.com"}, headers=auth(admin))
    assert email_clash.status_code == 400
    assert email_clash.json()["message"] == "Email already taken"

    assert client.put("/api/v1/users/9999", json={"username": "ghost"}, headers=auth(admin)).status_code == 404


def test_admin_deletes_user_through_users_routes(client):
    alice, alice_token = register(client, "alice")
    admin, admin_token = register_admin(client)
    task = create_task(client, alice_token)

    assert client.delete(f"/api/v1/users/{admin['id']}", headers=auth(admin_token)).status_code == 400
    assert client.delete(f"/api/v1/users/{alice['id']}", headers=auth(admin_token)).status_code == 200
    assert client.delete(f"/api/v1/users/{alice['id']}", headers=auth(admin_token)).status_code == 404
    assert client.get(f"/api/v1/tasks/{task['id']}", headers=auth(admin_token)).status_code == 404
