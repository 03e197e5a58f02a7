from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, status

from ..dependencies import get_accounts
from ..schemas import AuthOut
from ..services import Accounts

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)

_CREDENTIALS_EXAMPLE = {"email": "alice@mail.com", "password": "secret1"}


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=AuthOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create a user account and return an access token.",
    responses={
        201: {"description": "User registered successfully"},
        400: {"description": "Missing/invalid fields or email already registered"},
    },
)
def register(
    payload: Optional[Dict[str, Any]] = Body(default=None, examples=[_CREDENTIALS_EXAMPLE]),
    accounts: Accounts = Depends(get_accounts),
) -> AuthOut:
    result = accounts.register(payload)
    return AuthOut(message="User registered successfully", token=result.token, user_id=result.user_id)


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=AuthOut,
    summary="Login",
    description="Exchange email and password for an access token valid for 7 days.",
    responses={
        200: {"description": "Login successful"},
        400: {"description": "Missing fields"},
        401: {"description": "Invalid email or password"},
    },
)
def login(
    payload: Optional[Dict[str, Any]] = Body(default=None, examples=[_CREDENTIALS_EXAMPLE]),
    accounts: Accounts = Depends(get_accounts),
) -> AuthOut:
    result = accounts.login(payload)
    return AuthOut(message="Login successful", token=result.token, user_id=result.user_id)
