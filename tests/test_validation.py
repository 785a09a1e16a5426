import pytest

from conftest import auth, register

PASSWORD_RULE = "Password must contain at least one uppercase letter, one lowercase letter, and one number"


@pytest.fixture()
def api(memory_client):
    return memory_client


def test_register_reports_every_violation_at_once(api):
    response = api.post("/api/v1/auth/register", json={
        "username": "a!",
        "email": "not-an-email",
        "password": "abc",
    })
    assert response.status_code == 400
    body = response.json()
    assert body["status"] == "error"
    assert body["message"] == "Validation failed"

    errors = body["errors"]
    assert len(errors) == 3
    assert any(e.startswith("Username") for e in errors)
    assert "Please provide a valid email address" in errors
    assert "Password must be at least 6 characters long" in errors


def test_register_missing_fields(api):
    response = api.post("/api/v1/auth/register", json={})
    assert response.status_code == 400
    assert response.json()["errors"] == ["Username is required", "Email is required", "Password is required"]


@pytest.mark.parametrize("username, message", [
    ("ab", "Username must be at least 3 characters long"),
    ("x" * 31, "Username must not exceed 30 characters"),
    ("bad name", "Username must contain only alphanumeric characters"),
    ("emoji😀", "Username must contain only alphanumeric characters"),
])
def test_register_rejects_bad_usernames(api, username, message):
    response = api.post("/api/v1/auth/register", json={
        "username": username, "email": "ok@example.com", "password": "Secret123",
    })
    assert response.status_code == 400
    assert response.json()["errors"] == [message]


@pytest.mark.parametrize("password, message", [
    ("Ab1", "Password must be at least 6 characters long"),
    ("alllower1", PASSWORD_RULE),
    ("ALLUPPER1", PASSWORD_RULE),
    ("NoDigitsHere", PASSWORD_RULE),
])
def test_register_rejects_weak_passwords(api, password, message):
    response = api.post("/api/v1/auth/register", json={
        "username": "alice", "email": "alice@example.com", "password": password,
    })
    assert response.status_code == 400
    assert response.json()["errors"] == [message]


def test_register_rejects_unknown_role(api):
    response = api.post("/api/v1/auth/register", json={
        "username": "alice", "email": "alice@example.com", "password": "Secret123", "role": "root",
    })
    assert response.status_code == 400
    assert any(e.startswith("role") for e in response.json()["errors"])


def test_login_messages(api):
    response = api.post("/api/v1/auth/login", json={"email": "nope"})
    assert response.json()["errors"] == ["Please provide a valid email address", "Password is required"]


def test_task_rules(api):
    _, token = register(api, "alice")

    response = api.post("/api/v1/tasks", json={
        "title": "",
        "description": "d" * 1001,
        "status": "archived",
        "priority": "urgent",
    }, headers=auth(token))
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert errors[:2] == ["Title cannot be empty", "Description must not exceed 1000 characters"]
    assert errors[2].startswith("status: ")
    assert errors[3].startswith("priority: ")

    too_long = api.post("/api/v1/tasks", json={"title": "t" * 201}, headers=auth(token))
    assert too_long.json()["errors"] == ["Title must not exceed 200 characters"]

    missing = api.post("/api/v1/tasks", json={"description": "no title"}, headers=auth(token))
    assert missing.json()["errors"] == ["Title is required"]

    boundary = api.post("/api/v1/tasks", json={"title": "t" * 200, "description": "d" * 1000}, headers=auth(token))
    assert boundary.status_code == 201

    empty_description = api.post("/api/v1/tasks", json={"title": "ok", "description": ""}, headers=auth(token))
    assert empty_description.status_code == 201


def test_task_title_is_sanitized_before_checks(api):
    _, token = register(api, "alice")

    only_markup = api.post("/api/v1/tasks", json={"title": "  <b></b>  "}, headers=auth(token))
    assert only_markup.status_code == 400
    assert only_markup.json()["errors"] == ["Title cannot be empty"]

    cleaned = api.post("/api/v1/tasks", json={"title": " <i>Plan</i> sprint "}, headers=auth(token))
    assert cleaned.json()["data"]["task"]["title"] == "Plan sprint"


def test_list_query_validation(api):
    _, token = register(api, "alice")

    for params in ({"status": "archived"}, {"priority": "urgent"}, {"page": 0}, {"limit": 0}, {"limit": 101}):
        response = api.get("/api/v1/tasks", params=params, headers=auth(token))
        assert response.status_code == 400, params
        assert response.json()["message"] == "Validation failed"


def test_change_password_applies_password_rule(api):
    _, token = register(api, "alice")
    response = api.put(
        "/api/v1/auth/change-password",
        json={"currentPassword": "Secret123", "newPassword": "weak"},
        headers=auth(token),
    )
    assert response.status_code == 400
    assert any(e.startswith("newPassword") for e in response.json()["errors"])
