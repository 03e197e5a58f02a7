from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Any, List, Optional

from .errors import AuthenticationError, NotFoundOrForbidden, ValidationError
from .logging_config import get_logger
from .models import Status, TaskEntity
from .repositories import ListQuery, TaskRepository, UserRepository
from .schemas import LoginIn, RegisterIn, TaskCreate, TaskQuery, TaskUpdate
from .security import PasswordHasher
from .tokens import TokenService
from .validation import Invalid, validate

logger = get_logger(__name__)


def _require(schema, payload: Any):
    result = validate(schema, payload)
    if isinstance(result, Invalid):
        raise ValidationError(result.message, result.errors)
    return result.value


@dataclass(frozen=True)
class AuthResult:
    token: str
    user_id: str


class Accounts:
    """Registration and login on top of the credential store and token service."""

    def __init__(self, users: UserRepository, hasher: PasswordHasher, tokens: TokenService) -> None:
        self._users = users
        self._hasher = hasher
        self._tokens = tokens
        self._placeholder_hash: Optional[str] = None

    def _unknown_user_hash(self) -> str:
        # Unknown emails still pay for one argon2 verify.
        if self._placeholder_hash is None:
            self._placeholder_hash = self._hasher.hash(secrets.token_urlsafe(16))
        return self._placeholder_hash

    def register(self, payload: Any) -> AuthResult:
        data: RegisterIn = _require(RegisterIn, payload)
        # Hash before the record exists; the store never sees the raw password.
        password_hash = self._hasher.hash(data.password)
        user = self._users.create(data.email, password_hash)
        logger.info("Registered user %s", user["id"])
        return AuthResult(token=self._tokens.issue(user["id"]), user_id=user["id"])

    def login(self, payload: Any) -> AuthResult:
        data: LoginIn = _require(LoginIn, payload)
        user = self._users.find_by_email(data.email)
        hashed = user["password_hash"] if user is not None else self._unknown_user_hash()
        if not self._hasher.verify(data.password, hashed) or user is None:
            logger.warning("Failed login attempt")
            raise AuthenticationError()
        return AuthResult(token=self._tokens.issue(user["id"]), user_id=user["id"])


class TaskOperations:
    """
    The five task operations. Each one is scoped to the calling identity and
    addresses at most one task; a task owned by someone else is reported
    exactly like a missing one.
    """

    def __init__(self, tasks: TaskRepository) -> None:
        self._tasks = tasks

    def list(self, owner_id: str, filters: Optional[dict] = None) -> List[TaskEntity]:
        query: TaskQuery = _require(TaskQuery, filters or {})
        return self._tasks.list(owner_id, ListQuery(status=query.status, priority=query.priority))

    def create(self, owner_id: str, payload: Any) -> TaskEntity:
        data: TaskCreate = _require(TaskCreate, payload)
        task = self._tasks.create(owner_id, data)
        logger.info("Created task %s for user %s", task["id"], owner_id)
        return task

    def update(self, owner_id: str, task_id: str, payload: Any) -> TaskEntity:
        data: TaskUpdate = _require(TaskUpdate, payload)
        task = self._tasks.update(owner_id, task_id, data.changes())
        if task is None:
            raise NotFoundOrForbidden()
        logger.info("Updated task %s", task_id)
        return task

    def delete(self, owner_id: str, task_id: str) -> None:
        if not self._tasks.delete(owner_id, task_id):
            raise NotFoundOrForbidden()
        logger.info("Deleted task %s", task_id)

    def complete(self, owner_id: str, task_id: str) -> TaskEntity:
        task = self._tasks.update(owner_id, task_id, {"status": Status.COMPLETED.value})
        if task is None:
            raise NotFoundOrForbidden()
        logger.info("Completed task %s", task_id)
        return task
