from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from itertools import count
from threading import RLock
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import DuplicateEmail
from .models import Status, TaskEntity, UserEntity
from .schemas import TaskCreate
from .settings import Settings


@dataclass(frozen=True)
class ListQuery:
    """
    Filters for listing a user's tasks. Results are always newest-created first.
    """
    status: Optional[str] = None
    priority: Optional[str] = None


# PUBLIC_INTERFACE
class UserRepository(ABC):
    """Credential store contract. Email uniqueness is enforced here."""

    @abstractmethod
    def create(self, email: str, password_hash: str) -> UserEntity:
        """Persist a new user. Raise DuplicateEmail if the email is taken."""

    @abstractmethod
    def find_by_email(self, email: str) -> Optional[UserEntity]:
        """Return the user with this (lowercased) email, or None."""


# PUBLIC_INTERFACE
class TaskRepository(ABC):
    """
    Task store contract. Every method takes the owner id and must only ever
    match tasks belonging to that owner.
    """

    @abstractmethod
    def create(self, owner_id: str, data: TaskCreate) -> TaskEntity:
        """Create a Pending task owned by owner_id and return it."""

    @abstractmethod
    def update(self, owner_id: str, task_id: str, changes: Mapping[str, Any]) -> Optional[TaskEntity]:
        """Apply changes to an owned task. Return the updated task or None if not found."""

    @abstractmethod
    def delete(self, owner_id: str, task_id: str) -> bool:
        """Delete an owned task. Return True if deleted, False if not found."""

    @abstractmethod
    def list(self, owner_id: str, query: Optional[ListQuery] = None) -> List[TaskEntity]:
        """Return the owner's tasks matching the query, newest first."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class InMemoryUserRepository(UserRepository):
    """
    Thread-safe in-memory credential store suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, UserEntity] = {}
        self._by_email: Dict[str, str] = {}

    def create(self, email: str, password_hash: str) -> UserEntity:
        now = _now()
        with self._lock:
            if email in self._by_email:
                raise DuplicateEmail()
            entity: UserEntity = {
                "id": _new_id(),
                "email": email,
                "password_hash": password_hash,
                "created_at": now,
                "updated_at": now,
            }
            self._items[entity["id"]] = entity
            self._by_email[email] = entity["id"]
            return entity.copy()  # type: ignore[return-value]

    def find_by_email(self, email: str) -> Optional[UserEntity]:
        with self._lock:
            user_id = self._by_email.get(email)
            return None if user_id is None else self._items[user_id].copy()  # type: ignore[return-value]


class InMemoryTaskRepository(TaskRepository):
    """
    Thread-safe in-memory task store. Insertion order breaks ties between
    tasks created within the same clock tick.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[str, TaskEntity] = {}
        self._seq: Dict[str, int] = {}
        self._counter = count(1)

    def _owned(self, owner_id: str, task_id: str) -> Optional[TaskEntity]:
        item = self._items.get(task_id)
        if item is None or item["user_id"] != owner_id:
            return None
        return item

    def create(self, owner_id: str, data: TaskCreate) -> TaskEntity:
        now = _now()
        entity: TaskEntity = {
            "id": _new_id(),
            "title": data.title,
            "description": data.description or "",
            "priority": data.priority,
            "status": Status.PENDING.value,
            "user_id": owner_id,
            "created_at": now,
            "updated_at": now,
        }
        with self._lock:
            self._items[entity["id"]] = entity
            self._seq[entity["id"]] = next(self._counter)
        return entity.copy()  # type: ignore[return-value]

    def update(self, owner_id: str, task_id: str, changes: Mapping[str, Any]) -> Optional[TaskEntity]:
        with self._lock:
            existing = self._owned(owner_id, task_id)
            if existing is None:
                return None

            updated = existing.copy()
            for key in ("title", "description", "priority", "status"):
                if key in changes:
                    updated[key] = changes[key]  # type: ignore[literal-required]
            updated["updated_at"] = _now()

            self._items[task_id] = updated  # type: ignore[assignment]
            return updated.copy()  # type: ignore[return-value]

    def delete(self, owner_id: str, task_id: str) -> bool:
        with self._lock:
            if self._owned(owner_id, task_id) is None:
                return False
            del self._items[task_id]
            self._seq.pop(task_id, None)
            return True

    def list(self, owner_id: str, query: Optional[ListQuery] = None) -> List[TaskEntity]:
        q = query or ListQuery()
        with self._lock:
            items = [t for t in self._items.values() if t["user_id"] == owner_id]
            if q.status is not None:
                items = [t for t in items if t["status"] == q.status]
            if q.priority is not None:
                items = [t for t in items if t["priority"] == q.priority]

            def sort_key(t: TaskEntity) -> Tuple[datetime, int]:
                return t["created_at"], self._seq.get(t["id"], 0)

            items.sort(key=sort_key, reverse=True)
            # Return copies to avoid external mutation
            return [t.copy() for t in items]  # type: ignore[misc]


# PUBLIC_INTERFACE
def get_repositories(settings: Settings) -> Tuple[UserRepository, TaskRepository]:
    """
    Build the credential and task stores for the configured backend.
    - memory: InMemoryUserRepository / InMemoryTaskRepository
    - mongo: MongoUserRepository / MongoTaskRepository sharing one client
    """
    if settings.persistence_backend == "mongo":
        from .db import connect

        return connect(settings)
    return InMemoryUserRepository(), InMemoryTaskRepository()
