from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from .errors import DuplicateEmail
from .logging_config import get_logger
from .models import Status, TaskEntity, UserEntity
from .repositories import ListQuery, TaskRepository, UserRepository
from .schemas import TaskCreate
from .settings import Settings

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Fields:
    users: str = "users"
    tasks: str = "tasks"
    id: str = "_id"
    email: str = "email"
    password: str = "password"
    title: str = "title"
    description: str = "description"
    priority: str = "priority"
    status: str = "status"
    user_id: str = "userId"
    created_at: str = "createdAt"
    updated_at: str = "updatedAt"


_F = _Fields()

# entity key -> document key for mutable task fields
_TASK_CHANGES = {
    "title": _F.title,
    "description": _F.description,
    "priority": _F.priority,
    "status": _F.status,
}


def _object_id(value: str) -> Optional[ObjectId]:
    """Parse a client-supplied id; anything that is not an ObjectId matches nothing."""
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _now() -> datetime:
    # BSON dates hold milliseconds; match that so responses equal later reads.
    now = datetime.now(timezone.utc)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def ensure_indexes(db: Database) -> None:
    db[_F.users].create_index([(_F.email, ASCENDING)], unique=True, name="uniq_email")
    db[_F.tasks].create_index(
        [(_F.user_id, ASCENDING), (_F.created_at, DESCENDING)], name="owner_created"
    )


class MongoUserRepository(UserRepository):
    """
    Credential store backed by the `users` collection.
    """

    def __init__(self, collection: Collection) -> None:
        self._col = collection

    def _doc_to_entity(self, doc: Mapping[str, Any]) -> UserEntity:
        return {
            "id": str(doc[_F.id]),
            "email": doc[_F.email],
            "password_hash": doc[_F.password],
            "created_at": doc[_F.created_at],
            "updated_at": doc[_F.updated_at],
        }

    def create(self, email: str, password_hash: str) -> UserEntity:
        now = _now()
        doc: Dict[str, Any] = {
            _F.email: email,
            _F.password: password_hash,
            _F.created_at: now,
            _F.updated_at: now,
        }
        try:
            result = self._col.insert_one(doc)
        except DuplicateKeyError as exc:
            raise DuplicateEmail() from exc
        doc[_F.id] = result.inserted_id
        return self._doc_to_entity(doc)

    def find_by_email(self, email: str) -> Optional[UserEntity]:
        doc = self._col.find_one({_F.email: email})
        return self._doc_to_entity(doc) if doc else None


class MongoTaskRepository(TaskRepository):
    """
    Task store backed by the `tasks` collection. Every filter includes the
    owner's userId alongside the task _id.
    """

    def __init__(self, collection: Collection) -> None:
        self._col = collection

    def _doc_to_entity(self, doc: Mapping[str, Any]) -> TaskEntity:
        return {
            "id": str(doc[_F.id]),
            "title": doc[_F.title],
            "description": doc.get(_F.description) or "",
            "priority": doc[_F.priority],
            "status": doc[_F.status],
            "user_id": str(doc[_F.user_id]),
            "created_at": doc[_F.created_at],
            "updated_at": doc[_F.updated_at],
        }

    def _owned_filter(self, owner_id: str, task_id: str) -> Optional[Dict[str, Any]]:
        task_oid = _object_id(task_id)
        owner_oid = _object_id(owner_id)
        if task_oid is None or owner_oid is None:
            return None
        return {_F.id: task_oid, _F.user_id: owner_oid}

    def create(self, owner_id: str, data: TaskCreate) -> TaskEntity:
        owner_oid = _object_id(owner_id)
        if owner_oid is None:
            raise ValueError(f"invalid owner id: {owner_id!r}")
        now = _now()
        doc: Dict[str, Any] = {
            _F.title: data.title,
            _F.description: data.description or "",
            _F.priority: data.priority,
            _F.status: Status.PENDING.value,
            _F.user_id: owner_oid,
            _F.created_at: now,
            _F.updated_at: now,
        }
        result = self._col.insert_one(doc)
        doc[_F.id] = result.inserted_id
        return self._doc_to_entity(doc)

    def update(self, owner_id: str, task_id: str, changes: Mapping[str, Any]) -> Optional[TaskEntity]:
        flt = self._owned_filter(owner_id, task_id)
        if flt is None:
            return None
        fields = {_TASK_CHANGES[k]: v for k, v in changes.items() if k in _TASK_CHANGES}
        fields[_F.updated_at] = _now()
        # Last write wins; there is no version check.
        doc = self._col.find_one_and_update(
            flt, {"$set": fields}, return_document=ReturnDocument.AFTER
        )
        return self._doc_to_entity(doc) if doc else None

    def delete(self, owner_id: str, task_id: str) -> bool:
        flt = self._owned_filter(owner_id, task_id)
        if flt is None:
            return False
        return self._col.delete_one(flt).deleted_count > 0

    def list(self, owner_id: str, query: Optional[ListQuery] = None) -> List[TaskEntity]:
        q = query or ListQuery()
        owner_oid = _object_id(owner_id)
        if owner_oid is None:
            return []
        flt: Dict[str, Any] = {_F.user_id: owner_oid}
        if q.status is not None:
            flt[_F.status] = q.status
        if q.priority is not None:
            flt[_F.priority] = q.priority
        cursor = self._col.find(flt).sort([(_F.created_at, DESCENDING), (_F.id, DESCENDING)])
        return [self._doc_to_entity(doc) for doc in cursor]


# PUBLIC_INTERFACE
def connect(settings: Settings, client: Optional[MongoClient] = None) -> Tuple[MongoUserRepository, MongoTaskRepository]:
    """
    Open (or reuse) a MongoClient, make sure indexes exist and return the
    user and task repositories bound to the configured database.
    """
    if client is None:
        client = MongoClient(settings.mongodb_uri, tz_aware=True)
    db = client[settings.mongodb_database]
    ensure_indexes(db)
    logger.info("Using MongoDB database %r", settings.mongodb_database)
    return MongoUserRepository(db[_F.users]), MongoTaskRepository(db[_F.tasks])
