import logging

from sqlalchemy import delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select

from taskflow.database import Base, create_engine, create_session_factory
from taskflow.exceptions import Conflict
from taskflow.models.tasks import Task as TaskModel
from taskflow.models.user import User as UserModel, utcnow
from taskflow.schemas.task import Task, TaskStats
from taskflow.schemas.user import UserRecord, UserStats
from taskflow.stores.base import Store, EMAIL_TAKEN, USERNAME_TAKEN

logger = logging.getLogger(__name__)


def _conflict_from(exc: IntegrityError) -> Conflict:
    detail = str(exc.orig).lower()
    if "email" in detail:
        return Conflict(EMAIL_TAKEN)
    if "username" in detail:
        return Conflict(USERNAME_TAKEN)
    return Conflict()


class SqlStore(Store):
    """SQLAlchemy-backed store; cascades are left to the database."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = create_engine(database_url)
        self.session_factory = create_session_factory(self.engine)

    async def initialize(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("SQL store ready (%s)", self.engine.url.render_as_string(hide_password=True))

    async def close(self) -> None:
        await self.engine.dispose()

    # ── Users ───────────────────────────────────────────

    async def _get_user(self, *criteria) -> UserRecord | None:
        async with self.session_factory() as db:
            result = await db.execute(select(UserModel).filter(*criteria))
            user = result.scalars().first()
            return UserRecord.model_validate(user) if user else None

    async def get_user_by_id(self, user_id: int) -> UserRecord | None:
        return await self._get_user(UserModel.id == user_id)

    async def get_user_by_email(self, email: str) -> UserRecord | None:
        return await self._get_user(UserModel.email == email)

    async def get_user_by_username(self, username: str) -> UserRecord | None:
        return await self._get_user(UserModel.username == username)

    async def list_users(self) -> list[UserRecord]:
        async with self.session_factory() as db:
            result = await db.execute(
                select(UserModel).order_by(UserModel.created_at.desc(), UserModel.id.desc())
            )
            return [UserRecord.model_validate(u) for u in result.scalars().all()]

    async def create_user(self, username: str, email: str, password_hash: str, role: str = "user") -> UserRecord:
        async with self.session_factory() as db:
            new_user = UserModel(username=username, email=email, password_hash=password_hash, role=role)
            db.add(new_user)
            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise _conflict_from(exc)
            await db.refresh(new_user)
            return UserRecord.model_validate(new_user)

    async def update_user(self, user_id: int, changes: dict) -> UserRecord | None:
        async with self.session_factory() as db:
            result = await db.execute(select(UserModel).filter(UserModel.id == user_id))
            user = result.scalars().first()
            if not user:
                return None

            for key, value in changes.items():
                setattr(user, key, value)
            user.updated_at = utcnow()

            try:
                await db.commit()
            except IntegrityError as exc:
                await db.rollback()
                raise _conflict_from(exc)
            await db.refresh(user)
            return UserRecord.model_validate(user)

    async def delete_user(self, user_id: int) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(delete(UserModel).where(UserModel.id == user_id))
            await db.commit()
            return result.rowcount > 0

    async def user_stats(self) -> UserStats:
        async with self.session_factory() as db:
            result = await db.execute(select(UserModel.role, func.count()).group_by(UserModel.role))
            counts = dict(result.all())
        return UserStats(
            total=sum(counts.values()),
            admins=counts.get("admin", 0),
            users=counts.get("user", 0),
        )

    # ── Tasks ───────────────────────────────────────────

    @staticmethod
    def _task_filters(owner_id=None, status=None, priority=None, search=None) -> list:
        filters = []
        if owner_id is not None:
            filters.append(TaskModel.owner_id == owner_id)
        if status:
            filters.append(TaskModel.status == status)
        if priority:
            filters.append(TaskModel.priority == priority)
        if search:
            term = search.lower()
            filters.append(or_(
                func.lower(TaskModel.title).contains(term, autoescape=True),
                func.lower(func.coalesce(TaskModel.description, "")).contains(term, autoescape=True),
            ))
        return filters

    async def get_task(self, task_id: int) -> Task | None:
        async with self.session_factory() as db:
            result = await db.execute(select(TaskModel).filter(TaskModel.id == task_id))
            task = result.scalars().first()
            return Task.model_validate(task) if task else None

    async def list_tasks(self, *, owner_id=None, status=None, priority=None, search=None, limit=10, offset=0) -> list[Task]:
        query = (
            select(TaskModel)
            .filter(*self._task_filters(owner_id, status, priority, search))
            .order_by(TaskModel.created_at.desc(), TaskModel.id.desc())
            .limit(limit)
            .offset(offset)
        )
        async with self.session_factory() as db:
            result = await db.execute(query)
            return [Task.model_validate(t) for t in result.scalars().all()]

    async def count_tasks(self, *, owner_id=None, status=None, priority=None, search=None) -> int:
        query = select(func.count(TaskModel.id)).filter(*self._task_filters(owner_id, status, priority, search))
        async with self.session_factory() as db:
            result = await db.execute(query)
            return result.scalar_one()

    async def create_task(self, owner_id, title, description=None, status="pending", priority="medium") -> Task:
        async with self.session_factory() as db:
            new_task = TaskModel(
                title=title,
                description=description,
                status=status,
                priority=priority,
                owner_id=owner_id,
            )
            db.add(new_task)
            await db.commit()
            await db.refresh(new_task)
            return Task.model_validate(new_task)

    async def update_task(self, task_id: int, changes: dict) -> Task | None:
        async with self.session_factory() as db:
            result = await db.execute(select(TaskModel).filter(TaskModel.id == task_id))
            task = result.scalars().first()
            if not task:
                return None

            for key, value in changes.items():
                setattr(task, key, value)
            task.updated_at = utcnow()

            await db.commit()
            await db.refresh(task)
            return Task.model_validate(task)

    async def delete_task(self, task_id: int) -> bool:
        async with self.session_factory() as db:
            result = await db.execute(delete(TaskModel).where(TaskModel.id == task_id))
            await db.commit()
            return result.rowcount > 0

    async def task_stats(self, owner_id: int | None = None) -> TaskStats:
        filters = self._task_filters(owner_id)
        async with self.session_factory() as db:
            by_status = await db.execute(
                select(TaskModel.status, func.count()).filter(*filters).group_by(TaskModel.status)
            )
            by_priority = await db.execute(
                select(TaskModel.priority, func.count()).filter(*filters).group_by(TaskModel.priority)
            )
            return TaskStats.from_counts(dict(by_status.all()), dict(by_priority.all()))
