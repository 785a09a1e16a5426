import os

# Settings are read at import time; these must be in place before taskflow loads.
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["ADMIN_CODE"] = "test-admin-code"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["STORAGE_MODE"] = "memory"
os.environ["ENVIRONMENT"] = "test"
os.environ["SEED_DEMO_DATA"] = "false"

from pathlib import Path

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from taskflow.main import create_app
from taskflow.stores.blob import BlobStore, FileBlobClient
from taskflow.stores.memory import MemoryStore
from taskflow.stores.sql import SqlStore

ADMIN_CODE = "test-admin-code"
PASSWORD = "Secret123"
STORE_KINDS = ["memory", "sqlite", "blob"]


def build_store(kind: str, tmp_path: Path):
    if kind == "memory":
        return MemoryStore()
    if kind == "sqlite":
        return SqlStore(f"sqlite+aiosqlite:///{tmp_path / 'taskflow-test.db'}")
    if kind == "blob":
        return BlobStore(FileBlobClient(tmp_path / "blobs"))
    raise ValueError(kind)


@pytest_asyncio.fixture(params=STORE_KINDS)
async def store(request, tmp_path):
    """Every store adapter, initialised and closed around the test."""
    s = build_store(request.param, tmp_path)
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture(params=STORE_KINDS)
def client(request, tmp_path):
    """TestClient over a fresh app, once per store adapter."""
    app = create_app(store=build_store(request.param, tmp_path))
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def memory_client():
    app = create_app(store=MemoryStore())
    with TestClient(app) as c:
        yield c


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def register(client, username: str, email: str | None = None, password: str = PASSWORD, role: str = "user",
             admin_code: str | None = None) -> tuple[dict, str]:
    payload = {
        "username": username,
        "email": email or f"{username}@example.com",
        "password": password,
        "role": role,
    }
    if admin_code is not None:
        payload["adminCode"] = admin_code
    response = client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    return data["user"], data["token"]


def register_admin(client, username: str = "boss") -> tuple[dict, str]:
    return register(client, username, role="admin", admin_code=ADMIN_CODE)


def create_task(client, token: str, **fields) -> dict:
    payload = {"title": "T1", **fields}
    response = client.post("/api/v1/tasks", json=payload, headers=auth(token))
    assert response.status_code == 201, response.text
    return response.json()["data"]["task"]
