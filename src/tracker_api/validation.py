"""
Explicit validation step run before anything is persisted.

Services call validate() on the raw request payload and branch on the tagged
result instead of relying on the store to reject bad records:

    result = validate(TaskCreate, payload)
    if isinstance(result, Invalid):
        raise ValidationError(result.message, result.errors)
    data = result.value
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Type, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Valid(Generic[M]):
    value: M


@dataclass(frozen=True)
class Invalid:
    message: str
    errors: List[Dict[str, Any]] = field(default_factory=list)


ValidationResult = Union[Valid[M], Invalid]


def _describe(error: Dict[str, Any]) -> str:
    # Messages raised by our own validators are already client-facing.
    if error.get("type") == "value_error":
        ctx_error = (error.get("ctx") or {}).get("error")
        if ctx_error is not None:
            return str(ctx_error)
    loc = ".".join(str(part) for part in error.get("loc", ()) if part != "__root__")
    msg = error.get("msg", "Invalid value")
    return f"{loc}: {msg}" if loc else msg


def _simplify(error: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "loc": list(error.get("loc", ())),
        "msg": _describe(error),
        "type": error.get("type", "value_error"),
    }


# PUBLIC_INTERFACE
def validate(schema: Type[M], payload: Any) -> ValidationResult:
    """
    Validate a raw payload against a pydantic schema.

    Returns Valid(model) on success, otherwise Invalid with a human-readable
    message (first error) and the full list of simplified errors.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return Invalid(message="Request body must be a JSON object")
    try:
        return Valid(schema.model_validate(payload))
    except PydanticValidationError as exc:
        errors = [_simplify(e) for e in exc.errors()]
        return Invalid(message=errors[0]["msg"] if errors else "Request validation failed", errors=errors)
