from fastapi import APIRouter, Depends, Query, status

from taskflow.dependencies import get_current_user, get_store
from taskflow.schemas.task import Priority, Status, TaskCreate, TaskUpdate
from taskflow.schemas.user import UserRecord
from taskflow.services import tasks as task_service
from taskflow.stores.base import Store
from taskflow.utils.responses import success_response

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    store: Store = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user)
):
    task = await task_service.create_task(store, task_data, current_user.id)
    return success_response({"task": task}, "Task created successfully")


@router.get("")
async def list_tasks(
    status: Status | None = None,
    priority: Priority | None = None,
    search: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    store: Store = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user)
):
    owner_id = task_service.visible_owner(current_user)
    if search:
        tasks, pagination = await task_service.search_tasks(
            store, search, owner_id=owner_id, status=status, priority=priority, page=page, limit=limit
        )
    else:
        tasks, pagination = await task_service.list_tasks(
            store, owner_id=owner_id, status=status, priority=priority, page=page, limit=limit
        )
    return success_response({"tasks": tasks}, "Tasks retrieved successfully", pagination)


@router.get("/my")
async def my_tasks(
    status: Status | None = None,
    priority: Priority | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    store: Store = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user)
):
    tasks, pagination = await task_service.list_tasks(
        store, owner_id=current_user.id, status=status, priority=priority, page=page, limit=limit
    )
    return success_response({"tasks": tasks}, "Your tasks retrieved successfully", pagination)


@router.get("/stats")
async def task_stats(store: Store = Depends(get_store), current_user: UserRecord = Depends(get_current_user)):
    stats = await task_service.task_stats(store, task_service.visible_owner(current_user))
    return success_response({"stats": stats}, "Task statistics retrieved successfully")


@router.get("/{task_id}")
async def get_task(task_id: int, store: Store = Depends(get_store), current_user: UserRecord = Depends(get_current_user)):
    task = await task_service.get_task(store, task_id, current_user)
    return success_response({"task": task}, "Task retrieved successfully")


@router.put("/{task_id}")
async def update_task(
    task_id: int,
    update_data: TaskUpdate,
    store: Store = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user)
):
    task = await task_service.update_task(store, task_id, update_data, current_user)
    return success_response({"task": task}, "Task updated successfully")


@router.delete("/{task_id}")
async def delete_task(task_id: int, store: Store = Depends(get_store), current_user: UserRecord = Depends(get_current_user)):
    await task_service.delete_task(store, task_id, current_user)
    return success_response(None, "Task deleted successfully")
