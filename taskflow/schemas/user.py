from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from taskflow.utils.sanitization import sanitize_string


Role = Literal["user", "admin"]

USERNAME_PATTERN = r"^[A-Za-z0-9]+$"


PASSWORD_RULE = "Password must contain at least one uppercase letter, one lowercase letter, and one number"


def check_password_strength(v: str) -> str:
    if not (any(c.islower() for c in v) and any(c.isupper() for c in v) and any(c.isdigit() for c in v)):
        raise ValueError(PASSWORD_RULE)
    return v


def as_utc(v: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC
    if isinstance(v, datetime) and v.tzinfo is None:
        return v.replace(tzinfo=timezone.utc)
    return v


# ── Requests ────────────────────────────────────────────

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = "user"
    admin_code: str | None = Field(None, alias="adminCode")

    @field_validator("username", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)

    @field_validator("password")
    @classmethod
    def strong_password(cls, v):
        return check_password_strength(v)

    class Config:
        populate_by_name = True


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(BaseModel):
    username: str | None = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    email: EmailStr | None = None

    @field_validator("username", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)

    @model_validator(mode="after")
    def at_least_one_field(self):
        if self.username is None and self.email is None:
            raise ValueError("No valid fields provided for update")
        return self


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, alias="currentPassword")
    new_password: str = Field(..., min_length=6, alias="newPassword")

    @field_validator("new_password")
    @classmethod
    def strong_password(cls, v):
        return check_password_strength(v)

    class Config:
        populate_by_name = True


# ── Stored / returned shapes ────────────────────────────

class UserRecord(BaseModel):
    """A user row as the stores hand it back, password hash included."""
    id: int
    username: str
    email: str
    password_hash: str
    role: Role = "user"
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v):
        return as_utc(v)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class UserStats(BaseModel):
    total: int = 0
    admins: int = 0
    users: int = 0
