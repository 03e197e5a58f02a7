from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from .models import TaskEntity
from .schemas import TaskOut


def task_out(entity: Mapping[str, Any]) -> TaskOut:
    return TaskOut(**entity)


# PUBLIC_INTERFACE
def task_list_envelope(tasks: Union[List[TaskEntity], Iterable[TaskEntity]]) -> Dict[str, Any]:
    """
    Build the list response body.

    Returns:
        Dict with keys: success, count, tasks.
    """
    materialized = [task_out(t) for t in tasks]
    return {"success": True, "count": len(materialized), "tasks": materialized}


def error_body(error: str, message: str, detail: Optional[Any] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error, "message": message}
    if detail is not None:
        body["detail"] = detail
    return body
