from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from taskflow.config import Settings
from taskflow.exceptions import Forbidden, Unauthorized
from taskflow.schemas.user import UserRecord
from taskflow.stores.base import Store
from taskflow.utils.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_current_user(
    store: Store = Depends(get_store),
    settings: Settings = Depends(get_settings),
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> UserRecord:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Access denied. No token provided.")

    user_id = decode_access_token(credentials.credentials, settings)
    user = await store.get_user_by_id(user_id)
    if user is None:
        raise Unauthorized("Invalid token. User not found.")
    return user


async def require_admin(current_user: UserRecord = Depends(get_current_user)) -> UserRecord:
    if not current_user.is_admin:
        raise Forbidden("Access denied. Admin privileges required.")
    return current_user
