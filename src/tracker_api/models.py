from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import TypedDict


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Status(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


PRIORITY_VALUES = tuple(p.value for p in Priority)
STATUS_VALUES = tuple(s.value for s in Status)


# PUBLIC_INTERFACE
class UserEntity(TypedDict):
    """
    A registered user as kept by the credential store.

    Fields:
    - id: Opaque string identifier (ObjectId hex for MongoDB)
    - email: Lowercased, trimmed, unique email address
    - password_hash: argon2 hash; the raw password is never stored
    - created_at / updated_at: UTC timestamps
    """

    id: str
    email: str
    password_hash: str
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A task record. Always owned by exactly one user (user_id).

    Fields:
    - id: Opaque string identifier
    - title: Non-empty, trimmed title
    - description: Free text, empty string when not provided
    - priority: One of High/Medium/Low
    - status: Pending or Completed
    - user_id: Identifier of the owning user
    - created_at / updated_at: UTC timestamps
    """

    id: str
    title: str
    description: str
    priority: str
    status: str
    user_id: str
    created_at: datetime
    updated_at: datetime
