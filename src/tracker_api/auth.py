from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import InvalidCredential, InvalidToken, MissingCredential
from .logging_config import get_logger
from .tokens import TokenService

logger = get_logger(__name__)

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, resolved from a verified token."""

    user_id: str


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


# PUBLIC_INTERFACE
async def require_identity(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """
    Access guard for protected routes.

    Behavior:
    - No Authorization header, a non-Bearer scheme or an empty token: MissingCredential (401).
    - Token fails verification (signature, structure, expiry): InvalidCredential (401).
    - Otherwise the identity is stored on request.state.identity and returned.

    Usage:
        router = APIRouter(dependencies=[Depends(require_identity)])
        def handler(identity: Identity = Depends(require_identity)): ...
    """
    if creds is None or not creds.credentials:
        raise MissingCredential()

    try:
        user_id = tokens.verify(creds.credentials)
    except InvalidToken as exc:
        logger.info("Rejected token on %s %s: %s", request.method, request.url.path, exc)
        raise InvalidCredential() from exc

    identity = Identity(user_id=user_id)
    request.state.identity = identity
    return identity
