import logging
import secrets

from fastapi.concurrency import run_in_threadpool

from taskflow.config import Settings, settings as default_settings
from taskflow.exceptions import BadRequest, Conflict, Forbidden, NotFound, Unauthorized
from taskflow.schemas.user import ChangePasswordRequest, LoginRequest, ProfileUpdate, RegisterRequest, UserRecord
from taskflow.stores.base import Store, EMAIL_TAKEN, USERNAME_TAKEN
from taskflow.utils.security import create_access_token, dummy_verify, get_password_hash, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
EMAIL_IN_USE = "Email already in use"


def _admin_code_matches(code: str | None, settings: Settings) -> bool:
    if not code:
        return False
    return secrets.compare_digest(code.encode(), settings.ADMIN_CODE.encode())


async def _ensure_available(
    store: Store,
    username: str | None,
    email: str | None,
    user_id: int | None = None,
    email_taken: str = EMAIL_TAKEN,
):
    """Raise Conflict if ``username``/``email`` belongs to someone other than ``user_id``."""
    if email is not None:
        existing = await store.get_user_by_email(email)
        if existing and existing.id != user_id:
            raise Conflict(email_taken)
    if username is not None:
        existing = await store.get_user_by_username(username)
        if existing and existing.id != user_id:
            raise Conflict(USERNAME_TAKEN)


async def register(store: Store, data: RegisterRequest, settings: Settings | None = None) -> tuple[UserRecord, str]:
    settings = settings or default_settings
    await _ensure_available(store, data.username, data.email)

    if data.role == "admin" and not _admin_code_matches(data.admin_code, settings):
        logger.warning("Rejected admin registration for %s: bad admin code", data.email)
        raise Forbidden("Invalid admin code. Please contact administrator for the correct code.")

    password_hash = await run_in_threadpool(get_password_hash, data.password, settings.BCRYPT_ROUNDS)
    user = await store.create_user(data.username, data.email, password_hash, data.role)
    logger.info("Registered user %s (id=%s, role=%s)", user.username, user.id, user.role)
    return user, create_access_token(user.id, settings=settings)


async def login(store: Store, data: LoginRequest, settings: Settings | None = None) -> tuple[UserRecord, str]:
    user = await store.get_user_by_email(data.email)
    if not user:
        await run_in_threadpool(dummy_verify)
        raise Unauthorized(INVALID_CREDENTIALS)

    if not await run_in_threadpool(verify_password, data.password, user.password_hash):
        raise Unauthorized(INVALID_CREDENTIALS)

    return user, create_access_token(user.id, settings=settings)


async def get_profile(store: Store, user_id: int) -> UserRecord:
    user = await store.get_user_by_id(user_id)
    if not user:
        raise NotFound("User not found")
    return user


async def update_profile(
    store: Store,
    user_id: int,
    data: ProfileUpdate,
    email_taken: str = EMAIL_IN_USE,
) -> UserRecord:
    changes = data.model_dump(exclude_none=True)
    if not changes:
        raise BadRequest("No valid fields provided for update")

    await _ensure_available(store, changes.get("username"), changes.get("email"), user_id, email_taken)

    user = await store.update_user(user_id, changes)
    if not user:
        raise NotFound("User not found")
    return user


async def change_password(
    store: Store,
    user_id: int,
    data: ChangePasswordRequest,
    settings: Settings | None = None,
) -> None:
    settings = settings or default_settings
    user = await get_profile(store, user_id)

    if not await run_in_threadpool(verify_password, data.current_password, user.password_hash):
        raise BadRequest("Current password is incorrect")

    password_hash = await run_in_threadpool(get_password_hash, data.new_password, settings.BCRYPT_ROUNDS)
    await store.update_user(user_id, {"password_hash": password_hash})
    logger.info("Password changed for user id=%s", user_id)


# ── Admin ───────────────────────────────────────────────

async def list_users(store: Store) -> dict:
    return {
        "users": await store.list_users(),
        "stats": await store.user_stats(),
    }


async def delete_user(store: Store, user_id: int, acting_user_id: int) -> None:
    if user_id == acting_user_id:
        raise BadRequest("Cannot delete your own account")

    if not await store.delete_user(user_id):
        raise NotFound("User not found")
    logger.info("User id=%s deleted by admin id=%s", user_id, acting_user_id)
