import pytest
from fastapi.testclient import TestClient

from taskflow.client import ApiError, TaskflowClient
from taskflow.main import create_app
from taskflow.stores.memory import MemoryStore

from conftest import ADMIN_CODE, PASSWORD


@pytest.fixture()
def api():
    with TestClient(create_app(store=MemoryStore())) as http:
        yield TaskflowClient(http=http)


def test_session_lifecycle(api):
    assert not api.is_authenticated

    user = api.register("alice", "alice@example.com", PASSWORD)
    assert api.is_authenticated
    assert not api.is_admin
    assert user["username"] == "alice"

    api.logout()
    assert api.user is None
    api.login("alice@example.com", PASSWORD)
    assert api.profile()["email"] == "alice@example.com"

    api.update_profile(username="alicia")
    assert api.user["username"] == "alicia"

    api.change_password(PASSWORD, "Brandnew1")
    api.logout()
    with pytest.raises(ApiError) as exc:
        api.login("alice@example.com", PASSWORD)
    assert exc.value.status_code == 401
    assert exc.value.message == "Invalid email or password"


def test_task_calls(api):
    api.register("alice", "alice@example.com", PASSWORD)

    task = api.create_task("Write report", priority="high")
    api.create_task("Buy milk")
    assert api.get_task(task["id"])["title"] == "Write report"

    updated = api.update_task(task["id"], status="completed")
    assert updated["status"] == "completed"

    tasks, pagination = api.list_tasks(limit=1)
    assert len(tasks) == 1
    assert pagination["total"] == 2
    assert pagination["hasNext"] is True

    found, _ = api.search_tasks("milk")
    assert [t["title"] for t in found] == ["Buy milk"]

    mine, _ = api.my_tasks()
    assert len(mine) == 2

    assert api.task_stats()["byStatus"]["completed"] == 1

    api.delete_task(task["id"])
    with pytest.raises(ApiError) as exc:
        api.get_task(task["id"])
    assert exc.value.status_code == 404


def test_validation_errors_are_surfaced(api):
    with pytest.raises(ApiError) as exc:
        api.register("a", "nope", "weak")
    assert exc.value.status_code == 400
    assert exc.value.message == "Validation failed"
    assert len(exc.value.errors) >= 3
    assert not api.is_authenticated


def test_unauthorized_response_drops_session(api):
    api.register("alice", "alice@example.com", PASSWORD)
    api.token = "not-a-real-token"

    with pytest.raises(ApiError) as exc:
        api.list_tasks()
    assert exc.value.status_code == 401
    assert not api.is_authenticated
    assert api.user is None


def test_admin_calls(api):
    api.register("bob", "bob@example.com", PASSWORD)
    bob_id = api.user["id"]

    api.register("boss", "boss@example.com", PASSWORD, role="admin", admin_code=ADMIN_CODE)
    assert api.is_admin

    listing = api.list_users()
    assert listing["stats"]["total"] == 2

    api.delete_user(bob_id)
    assert api.list_users()["stats"]["total"] == 1
    assert api.health()["status"] == "success"
