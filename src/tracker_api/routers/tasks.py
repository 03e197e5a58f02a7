from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from ..auth import Identity, require_identity
from ..dependencies import get_task_operations
from ..schemas import MessageOut, TaskEnvelope, TaskListEnvelope
from ..services import TaskOperations
from ..utils import task_list_envelope, task_out

# Every route below runs behind the access guard.
router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    dependencies=[Depends(require_identity)],
    responses={401: {"description": "Missing, invalid or expired token"}},
)

_NOT_FOUND = {404: {"description": "Task not found or not owned by the caller"}}


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TaskListEnvelope,
    summary="List Tasks",
    description=(
        "List the caller's tasks, newest first.\n\n"
        "Query parameters:\n"
        "- status: Pending or Completed\n"
        "- priority: High, Medium or Low"
    ),
    responses={400: {"description": "Invalid filter value"}},
)
def list_tasks(
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    priority: Optional[str] = Query(None, description="Filter by priority"),
    identity: Identity = Depends(require_identity),
    ops: TaskOperations = Depends(get_task_operations),
) -> TaskListEnvelope:
    filters = {k: v for k, v in {"status": status_filter, "priority": priority}.items() if v is not None}
    tasks = ops.list(identity.user_id, filters)
    return TaskListEnvelope(**task_list_envelope(tasks))


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TaskEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a Pending task owned by the caller.",
    responses={400: {"description": "Missing title or invalid priority"}},
)
def create_task(
    payload: Optional[Dict[str, Any]] = Body(
        default=None,
        examples=[{"title": "Complete project", "description": "Finish the task tracker", "priority": "High"}],
    ),
    identity: Identity = Depends(require_identity),
    ops: TaskOperations = Depends(get_task_operations),
) -> TaskEnvelope:
    task = ops.create(identity.user_id, payload)
    return TaskEnvelope(message="Task created successfully", task=task_out(task))


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=TaskEnvelope,
    summary="Update Task",
    description="Apply the fields present in the body to one of the caller's tasks.",
    responses={400: {"description": "Invalid field value"}, **_NOT_FOUND},
)
def update_task(
    task_id: str,
    payload: Optional[Dict[str, Any]] = Body(
        default=None, examples=[{"priority": "Medium", "status": "Completed"}]
    ),
    identity: Identity = Depends(require_identity),
    ops: TaskOperations = Depends(get_task_operations),
) -> TaskEnvelope:
    task = ops.update(identity.user_id, task_id, payload)
    return TaskEnvelope(message="Task updated successfully", task=task_out(task))


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=MessageOut,
    summary="Delete Task",
    description="Permanently delete one of the caller's tasks.",
    responses=_NOT_FOUND,
)
def delete_task(
    task_id: str,
    identity: Identity = Depends(require_identity),
    ops: TaskOperations = Depends(get_task_operations),
) -> MessageOut:
    ops.delete(identity.user_id, task_id)
    return MessageOut(message="Task deleted successfully")


# PUBLIC_INTERFACE
@router.patch(
    "/{task_id}/complete",
    response_model=TaskEnvelope,
    summary="Complete Task",
    description="Mark one of the caller's tasks as Completed. Calling it again is harmless.",
    responses=_NOT_FOUND,
)
def complete_task(
    task_id: str,
    identity: Identity = Depends(require_identity),
    ops: TaskOperations = Depends(get_task_operations),
) -> TaskEnvelope:
    task = ops.complete(identity.user_id, task_id)
    return TaskEnvelope(message="Task marked as completed", task=task_out(task))
