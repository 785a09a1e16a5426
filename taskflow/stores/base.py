"""
Store contract shared by every persistence adapter.

All adapters must behave identically:

- ``username`` and ``email`` are unique; a violation raises ``Conflict``.
- deleting a user deletes that user's tasks.
- task listings are newest first (``created_at`` desc, then ``id`` desc).
- ``search`` is a case-insensitive substring match over title and description.
- ``owner_id=None`` means "every owner".
"""
from abc import ABC, abstractmethod

from taskflow.schemas.task import Task, TaskStats
from taskflow.schemas.user import UserRecord, UserStats

EMAIL_TAKEN = "User with this email already exists"
USERNAME_TAKEN = "Username already taken"


class Store(ABC):

    async def initialize(self) -> None:
        """Create tables / documents. Safe to call more than once."""

    async def close(self) -> None:
        """Release connections and handles."""

    # ── Users ───────────────────────────────────────────

    @abstractmethod
    async def get_user_by_id(self, user_id: int) -> UserRecord | None: ...

    @abstractmethod
    async def get_user_by_email(self, email: str) -> UserRecord | None: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> UserRecord | None: ...

    @abstractmethod
    async def list_users(self) -> list[UserRecord]: ...

    @abstractmethod
    async def create_user(self, username: str, email: str, password_hash: str, role: str = "user") -> UserRecord: ...

    @abstractmethod
    async def update_user(self, user_id: int, changes: dict) -> UserRecord | None:
        """Apply ``changes`` (username/email/password_hash); None if the user is gone."""

    @abstractmethod
    async def delete_user(self, user_id: int) -> bool:
        """Delete the user and their tasks. False if there was no such user."""

    @abstractmethod
    async def user_stats(self) -> UserStats: ...

    # ── Tasks ───────────────────────────────────────────

    @abstractmethod
    async def get_task(self, task_id: int) -> Task | None: ...

    @abstractmethod
    async def list_tasks(
        self,
        *,
        owner_id: int | None = None,
        status: str | None = None,
        priority: str | None = None,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> list[Task]: ...

    @abstractmethod
    async def count_tasks(
        self,
        *,
        owner_id: int | None = None,
        status: str | None = None,
        priority: str | None = None,
        search: str | None = None,
    ) -> int: ...

    @abstractmethod
    async def create_task(
        self,
        owner_id: int,
        title: str,
        description: str | None = None,
        status: str = "pending",
        priority: str = "medium",
    ) -> Task: ...

    @abstractmethod
    async def update_task(self, task_id: int, changes: dict) -> Task | None: ...

    @abstractmethod
    async def delete_task(self, task_id: int) -> bool: ...

    @abstractmethod
    async def task_stats(self, owner_id: int | None = None) -> TaskStats: ...
