"""
Python client for the taskflow REST API.

Keeps the session (token + current user) the way a browser front-end would:
``login``/``register`` store the token, every call sends it as a bearer
header, and a 401 from the server drops the session.

    client = TaskflowClient("http://localhost:8000")
    client.login("alice@example.com", "Secret123")
    task = client.create_task("Write report", priority="high")
"""
import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class ApiError(Exception):
    def __init__(self, status_code: int, message: str, errors: list[str] | None = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class TaskflowClient:

    def __init__(self, base_url: str = "http://localhost:8000", *, http: httpx.Client | None = None, timeout: float = 10.0):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.token: str | None = None
        self.user: dict | None = None

    # ── Plumbing ────────────────────────────────────────

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def is_admin(self) -> bool:
        return bool(self.user and self.user.get("role") == "admin")

    def _request(self, method: str, path: str, **kwargs) -> dict:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = self.http.request(method, f"{API_PREFIX}{path}", headers=headers, **kwargs)
        try:
            body = response.json()
        except ValueError:
            body = {"message": response.text}

        if response.status_code >= 400:
            if response.status_code == 401:
                # Token expired or invalid
                self.logout()
            logger.debug("%s %s -> %s %s", method, path, response.status_code, body.get("message"))
            raise ApiError(response.status_code, body.get("message", "Request failed"), body.get("errors"))
        return body

    def _start_session(self, body: dict) -> dict:
        self.token = body["data"]["token"]
        self.user = body["data"]["user"]
        return self.user

    def close(self) -> None:
        self.http.close()

    # ── Auth ────────────────────────────────────────────

    def register(self, username: str, email: str, password: str, role: str = "user", admin_code: str | None = None) -> dict:
        payload: dict[str, Any] = {"username": username, "email": email, "password": password, "role": role}
        if admin_code is not None:
            payload["adminCode"] = admin_code
        return self._start_session(self._request("POST", "/auth/register", json=payload))

    def login(self, email: str, password: str) -> dict:
        return self._start_session(self._request("POST", "/auth/login", json={"email": email, "password": password}))

    def logout(self) -> None:
        self.token = None
        self.user = None

    def profile(self) -> dict:
        self.user = self._request("GET", "/auth/profile")["data"]["user"]
        return self.user

    def update_profile(self, username: str | None = None, email: str | None = None) -> dict:
        payload = {k: v for k, v in {"username": username, "email": email}.items() if v is not None}
        self.user = self._request("PUT", "/auth/profile", json=payload)["data"]["user"]
        return self.user

    def change_password(self, current_password: str, new_password: str) -> None:
        self._request(
            "PUT", "/auth/change-password",
            json={"currentPassword": current_password, "newPassword": new_password},
        )

    # ── Admin ───────────────────────────────────────────

    def list_users(self) -> dict:
        """``{"users": [...], "stats": {...}}``"""
        return self._request("GET", "/auth/users")["data"]

    def delete_user(self, user_id: int) -> None:
        self._request("DELETE", f"/auth/users/{user_id}")

    # ── Tasks ───────────────────────────────────────────

    def create_task(self, title: str, description: str | None = None, status: str | None = None, priority: str | None = None) -> dict:
        payload = {"title": title, "description": description, "status": status, "priority": priority}
        payload = {k: v for k, v in payload.items() if v is not None}
        return self._request("POST", "/tasks", json=payload)["data"]["task"]

    def list_tasks(self, **params) -> tuple[list[dict], dict]:
        """Query params: status, priority, search, page, limit. Returns (tasks, pagination)."""
        body = self._request("GET", "/tasks", params={k: v for k, v in params.items() if v is not None})
        return body["data"]["tasks"], body["pagination"]

    def search_tasks(self, term: str, **params) -> tuple[list[dict], dict]:
        return self.list_tasks(search=term, **params)

    def my_tasks(self, **params) -> tuple[list[dict], dict]:
        body = self._request("GET", "/tasks/my", params={k: v for k, v in params.items() if v is not None})
        return body["data"]["tasks"], body["pagination"]

    def get_task(self, task_id: int) -> dict:
        return self._request("GET", f"/tasks/{task_id}")["data"]["task"]

    def update_task(self, task_id: int, **changes) -> dict:
        return self._request("PUT", f"/tasks/{task_id}", json=changes)["data"]["task"]

    def delete_task(self, task_id: int) -> None:
        self._request("DELETE", f"/tasks/{task_id}")

    def task_stats(self) -> dict:
        return self._request("GET", "/tasks/stats")["data"]["stats"]

    def health(self) -> dict:
        return self._request("GET", "/health")
