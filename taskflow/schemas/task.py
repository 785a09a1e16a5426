from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from taskflow.schemas.user import as_utc
from taskflow.utils.sanitization import sanitize_string


Status = Literal["pending", "in_progress", "completed"]
Priority = Literal["low", "medium", "high"]

STATUSES: tuple[str, ...] = ("pending", "in_progress", "completed")
PRIORITIES: tuple[str, ...] = ("low", "medium", "high")


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    status: Status = "pending"
    priority: Priority = "medium"

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class TaskUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    status: Status | None = None
    priority: Priority | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)

    @model_validator(mode="after")
    def at_least_one_field(self):
        if not self.changes():
            raise ValueError("At least one field must be provided for update")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_none=True)


class Task(BaseModel):
    id: int
    title: str
    description: str | None = None
    status: Status
    priority: Priority
    owner_id: int
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v):
        return as_utc(v)

    class Config:
        from_attributes = True


class TaskStats(BaseModel):
    total: int
    byStatus: dict[str, int]
    byPriority: dict[str, int]

    @classmethod
    def from_counts(cls, status_counts: dict[str, int], priority_counts: dict[str, int]) -> "TaskStats":
        by_status = {s: status_counts.get(s, 0) for s in STATUSES}
        by_priority = {p: priority_counts.get(p, 0) for p in PRIORITIES}
        return cls(total=sum(by_status.values()), byStatus=by_status, byPriority=by_priority)
