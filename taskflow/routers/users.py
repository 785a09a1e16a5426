from fastapi import APIRouter, Depends

from taskflow.dependencies import get_store, require_admin
from taskflow.schemas.user import ProfileUpdate, UserRecord, UserResponse
from taskflow.services import auth as auth_service
from taskflow.stores.base import Store
from taskflow.utils.responses import success_response

# Admin user management
router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(require_admin)])


@router.get("")
async def list_users(store: Store = Depends(get_store)):
    users = await store.list_users()
    return success_response(
        {"users": [UserResponse.model_validate(u) for u in users]},
        "Users retrieved successfully"
    )


@router.get("/stats")
async def user_stats(store: Store = Depends(get_store)):
    stats = await store.user_stats()
    return success_response({"stats": stats}, "User statistics retrieved successfully")


@router.get("/{user_id}")
async def get_user(user_id: int, store: Store = Depends(get_store)):
    user = await auth_service.get_profile(store, user_id)
    return success_response({"user": UserResponse.model_validate(user)}, "User retrieved successfully")


@router.put("/{user_id}")
async def update_user(user_id: int, data: ProfileUpdate, store: Store = Depends(get_store)):
    user = await auth_service.update_profile(store, user_id, data, email_taken="Email already taken")
    return success_response({"user": UserResponse.model_validate(user)}, "User updated successfully")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    store: Store = Depends(get_store),
    admin: UserRecord = Depends(require_admin)
):
    await auth_service.delete_user(store, user_id, admin.id)
    return success_response(None, "User deleted successfully")
