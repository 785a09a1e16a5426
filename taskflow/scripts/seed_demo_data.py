"""
Demo data for local development.

Creates an admin and a regular account plus a handful of tasks. Safe to run
repeatedly: existing accounts are kept and tasks are only added to an empty
store. Passwords are never built in; pass them on the command line or via
DEMO_ADMIN_PASSWORD / DEMO_USER_PASSWORD.

    python -m taskflow.scripts.seed_demo_data --admin-password ... --user-password ...
"""
import argparse
import asyncio
import logging

from fastapi.concurrency import run_in_threadpool

from taskflow.config import settings
from taskflow.logging_setup import setup_logging
from taskflow.stores.base import Store
from taskflow.stores.factory import create_store
from taskflow.utils.security import get_password_hash

logger = logging.getLogger(__name__)

DEMO_ADMIN = {"username": "admin", "email": "admin@taskflow.dev", "role": "admin"}
DEMO_USER = {"username": "demouser", "email": "user@taskflow.dev", "role": "user"}

# (owner, title, description, status, priority)
DEMO_TASKS = [
    ("admin", "Complete project documentation",
     "Write comprehensive documentation for the task management system", "in_progress", "high"),
    ("admin", "Review code quality",
     "Perform code review and ensure best practices are followed", "pending", "medium"),
    ("admin", "Setup CI/CD pipeline",
     "Configure automated testing and deployment pipeline", "completed", "high"),
    ("user", "Learn async SQLAlchemy",
     "Study sessions, engines and async drivers", "in_progress", "medium"),
    ("user", "Update profile information",
     "Complete personal profile with relevant information", "pending", "low"),
    ("user", "Test API endpoints",
     "Thoroughly test all API endpoints for proper functionality", "completed", "high"),
]


async def _ensure_account(store: Store, account: dict, password: str, rounds: int | None):
    existing = await store.get_user_by_email(account["email"])
    if existing:
        logger.info("Demo account %s already exists", account["email"])
        return existing

    password_hash = await run_in_threadpool(get_password_hash, password, rounds)
    user = await store.create_user(account["username"], account["email"], password_hash, account["role"])
    logger.info("Demo account created: %s (%s)", user.email, user.role)
    return user


async def seed_demo_data(
    store: Store,
    admin_password: str | None,
    user_password: str | None,
    rounds: int | None = None,
) -> bool:
    """Returns False (and seeds nothing) when a password is missing."""
    if not admin_password or not user_password:
        logger.warning("Demo seeding skipped: DEMO_ADMIN_PASSWORD and DEMO_USER_PASSWORD must both be set")
        return False

    owners = {
        "admin": await _ensure_account(store, DEMO_ADMIN, admin_password, rounds),
        "user": await _ensure_account(store, DEMO_USER, user_password, rounds),
    }

    if await store.count_tasks() > 0:
        logger.info("Store already has tasks, demo tasks not added")
        return True

    for owner, title, description, status, priority in DEMO_TASKS:
        await store.create_task(owners[owner].id, title, description, status, priority)
    logger.info("Added %d demo tasks", len(DEMO_TASKS))
    return True


async def _run(admin_password: str | None, user_password: str | None) -> None:
    store = create_store(settings)
    await store.initialize()
    try:
        await seed_demo_data(
            store,
            admin_password or settings.DEMO_ADMIN_PASSWORD,
            user_password or settings.DEMO_USER_PASSWORD,
            settings.BCRYPT_ROUNDS,
        )
    finally:
        await store.close()


def main():
    parser = argparse.ArgumentParser(description="Seed demo accounts and tasks")
    parser.add_argument("--admin-password")
    parser.add_argument("--user-password")
    args = parser.parse_args()

    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    asyncio.run(_run(args.admin_password, args.user_password))


if __name__ == "__main__":
    main()
