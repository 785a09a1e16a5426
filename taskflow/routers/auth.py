from fastapi import APIRouter, Depends, status

from taskflow.config import Settings
from taskflow.dependencies import get_current_user, get_settings, get_store, require_admin
from taskflow.schemas.user import (ChangePasswordRequest, LoginRequest, ProfileUpdate, RegisterRequest,
                                   UserRecord, UserResponse)
from taskflow.services import auth as auth_service
from taskflow.stores.base import Store
from taskflow.utils.responses import success_response

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_payload(user: UserRecord, token: str) -> dict:
    return {"user": UserResponse.model_validate(user), "token": token}


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    data: RegisterRequest,
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings)
):
    user, token = await auth_service.register(store, data, settings)
    return success_response(_auth_payload(user, token), "User registered successfully")


@router.post("/login")
async def login(data: LoginRequest, store: Store = Depends(get_store), settings: Settings = Depends(get_settings)):
    user, token = await auth_service.login(store, data, settings)
    return success_response(_auth_payload(user, token), "Login successful")


@router.get("/profile")
async def get_profile(
    store: Store = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user)
):
    user = await auth_service.get_profile(store, current_user.id)
    return success_response({"user": UserResponse.model_validate(user)}, "Profile retrieved successfully")


@router.put("/profile")
async def update_profile(
    data: ProfileUpdate,
    store: Store = Depends(get_store),
    current_user: UserRecord = Depends(get_current_user)
):
    user = await auth_service.update_profile(store, current_user.id, data)
    return success_response({"user": UserResponse.model_validate(user)}, "Profile updated successfully")


@router.put("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
    current_user: UserRecord = Depends(get_current_user)
):
    await auth_service.change_password(store, current_user.id, data, settings)
    return success_response(None, "Password changed successfully")


@router.get("/users")
async def list_users(store: Store = Depends(get_store), admin: UserRecord = Depends(require_admin)):
    result = await auth_service.list_users(store)
    users = [UserResponse.model_validate(u) for u in result["users"]]
    return success_response({"users": users, "stats": result["stats"]}, "Users retrieved successfully")


@router.delete("/users/{user_id}")
async def delete_user(user_id: int, store: Store = Depends(get_store), admin: UserRecord = Depends(require_admin)):
    await auth_service.delete_user(store, user_id, admin.id)
    return success_response(None, "User deleted successfully")
