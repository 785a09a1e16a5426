import logging

from taskflow.exceptions import Forbidden, NotFound
from taskflow.schemas.task import Task, TaskCreate, TaskStats, TaskUpdate
from taskflow.schemas.user import UserRecord
from taskflow.stores.base import Store

logger = logging.getLogger(__name__)

NOT_FOUND_OR_DENIED = "Task not found or access denied"


def visible_owner(user: UserRecord) -> int | None:
    """Owner filter for ``user``: admins see every owner's tasks."""
    return None if user.is_admin else user.id


def can_access(user: UserRecord, task: Task) -> bool:
    return user.is_admin or task.owner_id == user.id


def paginate(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "hasNext": page * limit < total,
        "hasPrev": page > 1,
    }


async def create_task(store: Store, task_data: TaskCreate, owner_id: int) -> Task:
    task = await store.create_task(
        owner_id=owner_id,
        title=task_data.title,
        description=task_data.description,
        status=task_data.status,
        priority=task_data.priority,
    )
    logger.info("Task %s created by user id=%s", task.id, owner_id)
    return task


async def list_tasks(
    store: Store,
    *,
    owner_id: int | None,
    status: str | None = None,
    priority: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Task], dict]:
    filters = {"owner_id": owner_id, "status": status, "priority": priority, "search": search or None}
    tasks = await store.list_tasks(**filters, limit=limit, offset=(page - 1) * limit)
    total = await store.count_tasks(**filters)
    return tasks, paginate(page, limit, total)


async def search_tasks(store: Store, term: str, *, owner_id: int | None, page: int = 1, limit: int = 10, **filters):
    return await list_tasks(store, owner_id=owner_id, search=term, page=page, limit=limit, **filters)


async def get_task(store: Store, task_id: int, requester: UserRecord) -> Task:
    task = await store.get_task(task_id)
    if not task:
        raise NotFound("Task not found")
    if not can_access(requester, task):
        raise Forbidden("Access denied")
    return task


async def _get_accessible(store: Store, task_id: int, requester: UserRecord) -> Task:
    # Missing and forbidden look the same so callers can't probe for ids
    task = await store.get_task(task_id)
    if not task or not can_access(requester, task):
        raise NotFound(NOT_FOUND_OR_DENIED)
    return task


async def update_task(store: Store, task_id: int, update_data: TaskUpdate, requester: UserRecord) -> Task:
    await _get_accessible(store, task_id, requester)

    task = await store.update_task(task_id, update_data.changes())
    if not task:
        raise NotFound(NOT_FOUND_OR_DENIED)
    return task


async def delete_task(store: Store, task_id: int, requester: UserRecord) -> None:
    await _get_accessible(store, task_id, requester)

    if not await store.delete_task(task_id):
        raise NotFound(NOT_FOUND_OR_DENIED)
    logger.info("Task %s deleted by user id=%s", task_id, requester.id)


async def task_stats(store: Store, owner_id: int | None) -> TaskStats:
    return await store.task_stats(owner_id)
