from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from .models import PRIORITY_VALUES, STATUS_VALUES

PRIORITY_MESSAGE = "Priority must be High, Medium, or Low"
STATUS_MESSAGE = "Status must be Pending or Completed"
TITLE_MESSAGE = "Task title is required"


def _check_priority(value: Any) -> str:
    if value not in PRIORITY_VALUES:
        raise ValueError(PRIORITY_MESSAGE)
    return value


def _check_status(value: Any) -> str:
    if value not in STATUS_VALUES:
        raise ValueError(STATUS_MESSAGE)
    return value


def _check_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(TITLE_MESSAGE)
    return value.strip()


# PUBLIC_INTERFACE
class RegisterIn(BaseModel):
    """
    Schema for registering a new user.
    """

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "alice@mail.com", "password": "secret1"}}
    )

    email: EmailStr = Field(..., description="Email address, stored lowercased")
    password: str = Field(..., min_length=6, description="Plain password, at least 6 characters")

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


# PUBLIC_INTERFACE
class LoginIn(BaseModel):
    """
    Schema for logging in. Emails are not format-checked here so that any
    mismatch is reported as invalid credentials.
    """

    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a task. Unknown fields (status, userId, ...) are ignored;
    new tasks always start as Pending and belong to the caller.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Complete project",
                "description": "Finish the task tracker",
                "priority": "High",
            }
        }
    )

    title: str = Field(..., description="Short title for the task")
    description: Optional[str] = Field(default="", description="Optional detailed description")
    priority: str = Field(..., description="One of High, Medium, Low")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        return _check_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> str:
        return _check_priority(v)


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for updating a task.
    All fields are optional; only fields present in the body are applied.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Updated title",
                "description": "Updated description",
                "priority": "Medium",
                "status": "Completed",
            }
        }
    )

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    status: Optional[str] = None

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> str:
        return _check_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def clear_description(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v.strip() if isinstance(v, str) else v

    @field_validator("priority", mode="before")
    @classmethod
    def validate_priority(cls, v: Any) -> str:
        return _check_priority(v)

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, v: Any) -> str:
        return _check_status(v)

    def changes(self) -> dict:
        """Return only the fields the client actually sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}


# PUBLIC_INTERFACE
class TaskQuery(BaseModel):
    """Optional filters for listing tasks."""

    status: Optional[str] = None
    priority: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_status(v)

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _check_priority(v)


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Task as returned by the API. Field names follow the client's camelCase/_id
    convention on the wire.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "_id": "665f1c2e9b1d4a0012ab34cd",
                "title": "Complete project",
                "description": "Finish the task tracker",
                "priority": "High",
                "status": "Pending",
                "userId": "665f1b009b1d4a0012ab34aa",
                "createdAt": "2025-01-25T10:15:30.123000Z",
                "updatedAt": "2025-01-25T10:15:30.123000Z",
            }
        },
    )

    id: str = Field(..., alias="_id")
    title: str
    description: str = ""
    priority: str
    status: str
    user_id: str = Field(..., alias="userId")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")


class AuthOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str
    token: str
    user_id: str = Field(..., alias="userId")


class TaskEnvelope(BaseModel):
    success: bool = True
    message: str
    task: TaskOut


class TaskListEnvelope(BaseModel):
    success: bool = True
    count: int
    tasks: List[TaskOut]


class MessageOut(BaseModel):
    success: bool = True
    message: str
