import asyncio
import functools
import logging

from taskflow.exceptions import Conflict
from taskflow.models.user import utcnow
from taskflow.schemas.task import Task, TaskStats
from taskflow.schemas.user import UserRecord, UserStats
from taskflow.stores.base import Store, EMAIL_TAKEN, USERNAME_TAKEN

logger = logging.getLogger(__name__)


def _locked(method):
    """Run ``method`` under the store lock so each load, change and save is one step."""
    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        async with self._lock:
            return await method(self, *args, **kwargs)
    return wrapper


def _newest_first(record) -> tuple:
    return (record.created_at, record.id)


class MemoryStore(Store):
    """
    Process-local store.

    Tables are plain dicts keyed by id. Uniqueness and the user -> tasks
    cascade are enforced here by hand. Records are copied on the way in and
    out, so callers never hold a reference into the tables.

    Subclasses persist the tables elsewhere by overriding ``_load`` (called
    before every operation) and ``_save`` (called after every mutation).
    Public operations hold ``_lock`` throughout, so an operation that awaits
    inside ``_load``/``_save`` is never interleaved with another one.
    """

    def __init__(self):
        self.users: dict[int, UserRecord] = {}
        self.tasks: dict[int, Task] = {}
        self.user_counter = 0
        self.task_counter = 0
        self._lock = asyncio.Lock()

    async def _load(self) -> None:
        pass

    async def _save(self) -> None:
        pass

    @_locked
    async def initialize(self) -> None:
        await self._load()
        logger.info("%s ready (%d users, %d tasks)", type(self).__name__, len(self.users), len(self.tasks))

    # ── Users ───────────────────────────────────────────

    def _check_unique(self, username: str | None, email: str | None, exclude_id: int | None = None) -> None:
        for user in self.users.values():
            if user.id == exclude_id:
                continue
            if email is not None and user.email == email:
                raise Conflict(EMAIL_TAKEN)
            if username is not None and user.username == username:
                raise Conflict(USERNAME_TAKEN)

    @_locked
    async def get_user_by_id(self, user_id: int) -> UserRecord | None:
        await self._load()
        user = self.users.get(user_id)
        return user.model_copy() if user else None

    @_locked
    async def get_user_by_email(self, email: str) -> UserRecord | None:
        await self._load()
        user = next((u for u in self.users.values() if u.email == email), None)
        return user.model_copy() if user else None

    @_locked
    async def get_user_by_username(self, username: str) -> UserRecord | None:
        await self._load()
        user = next((u for u in self.users.values() if u.username == username), None)
        return user.model_copy() if user else None

    @_locked
    async def list_users(self) -> list[UserRecord]:
        await self._load()
        users = sorted(self.users.values(), key=_newest_first, reverse=True)
        return [u.model_copy() for u in users]

    @_locked
    async def create_user(self, username: str, email: str, password_hash: str, role: str = "user") -> UserRecord:
        await self._load()
        self._check_unique(username, email)

        self.user_counter += 1
        now = utcnow()
        user = UserRecord(
            id=self.user_counter,
            username=username,
            email=email,
            password_hash=password_hash,
            role=role,
            created_at=now,
            updated_at=now,
        )
        self.users[user.id] = user
        await self._save()
        return user.model_copy()

    @_locked
    async def update_user(self, user_id: int, changes: dict) -> UserRecord | None:
        await self._load()
        user = self.users.get(user_id)
        if not user:
            return None

        self._check_unique(changes.get("username"), changes.get("email"), exclude_id=user_id)
        updated = user.model_copy(update={**changes, "updated_at": utcnow()})
        self.users[user_id] = updated
        await self._save()
        return updated.model_copy()

    @_locked
    async def delete_user(self, user_id: int) -> bool:
        await self._load()
        if self.users.pop(user_id, None) is None:
            return False

        # Cascade
        self.tasks = {tid: t for tid, t in self.tasks.items() if t.owner_id != user_id}
        await self._save()
        return True

    @_locked
    async def user_stats(self) -> UserStats:
        await self._load()
        admins = sum(1 for u in self.users.values() if u.role == "admin")
        return UserStats(total=len(self.users), admins=admins, users=len(self.users) - admins)

    # ── Tasks ───────────────────────────────────────────

    def _matching(self, owner_id=None, status=None, priority=None, search=None) -> list[Task]:
        term = search.lower() if search else None
        matches = []
        for task in self.tasks.values():
            if owner_id is not None and task.owner_id != owner_id:
                continue
            if status and task.status != status:
                continue
            if priority and task.priority != priority:
                continue
            if term and term not in task.title.lower() and term not in (task.description or "").lower():
                continue
            matches.append(task)
        return matches

    @_locked
    async def get_task(self, task_id: int) -> Task | None:
        await self._load()
        task = self.tasks.get(task_id)
        return task.model_copy() if task else None

    @_locked
    async def list_tasks(self, *, owner_id=None, status=None, priority=None, search=None, limit=10, offset=0) -> list[Task]:
        await self._load()
        tasks = sorted(self._matching(owner_id, status, priority, search), key=_newest_first, reverse=True)
        return [t.model_copy() for t in tasks[offset:offset + limit]]

    @_locked
    async def count_tasks(self, *, owner_id=None, status=None, priority=None, search=None) -> int:
        await self._load()
        return len(self._matching(owner_id, status, priority, search))

    @_locked
    async def create_task(self, owner_id, title, description=None, status="pending", priority="medium") -> Task:
        await self._load()
        self.task_counter += 1
        now = utcnow()
        task = Task(
            id=self.task_counter,
            title=title,
            description=description,
            status=status,
            priority=priority,
            owner_id=owner_id,
            created_at=now,
            updated_at=now,
        )
        self.tasks[task.id] = task
        await self._save()
        return task.model_copy()

    @_locked
    async def update_task(self, task_id: int, changes: dict) -> Task | None:
        await self._load()
        task = self.tasks.get(task_id)
        if not task:
            return None

        updated = task.model_copy(update={**changes, "updated_at": utcnow()})
        self.tasks[task_id] = updated
        await self._save()
        return updated.model_copy()

    @_locked
    async def delete_task(self, task_id: int) -> bool:
        await self._load()
        if self.tasks.pop(task_id, None) is None:
            return False
        await self._save()
        return True

    @_locked
    async def task_stats(self, owner_id: int | None = None) -> TaskStats:
        await self._load()
        status_counts: dict[str, int] = {}
        priority_counts: dict[str, int] = {}
        for task in self._matching(owner_id):
            status_counts[task.status] = status_counts.get(task.status, 0) + 1
            priority_counts[task.priority] = priority_counts.get(task.priority, 0) + 1
        return TaskStats.from_counts(status_counts, priority_counts)
