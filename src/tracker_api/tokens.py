from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from itsdangerous import BadData, URLSafeSerializer

from .errors import InvalidToken

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Issues and verifies signed, time-limited identity tokens.

    A token carries {"userId": <id>, "exp": <unix seconds>} signed with the
    server secret. Verification rejects bad signatures, malformed payloads
    and tokens whose embedded expiry has passed according to the injected
    clock. There is no revocation list; rotating the secret invalidates every
    token.
    """

    salt = "access-token"

    def __init__(self, secret: str, ttl: timedelta = timedelta(days=7), clock: Optional[Clock] = None) -> None:
        if not secret:
            raise ValueError("token secret must not be empty")
        self._serializer = URLSafeSerializer(secret, salt=self.salt)
        self._ttl = ttl
        self._clock = clock or _utcnow

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def issue(self, user_id: str) -> str:
        expires = self._clock() + self._ttl
        return self._serializer.dumps({"userId": user_id, "exp": int(expires.timestamp())})

    def verify(self, token: str) -> str:
        """Return the user id carried by the token or raise InvalidToken."""
        try:
            payload: Any = self._serializer.loads(token)
        except BadData as exc:
            raise InvalidToken(str(exc)) from exc

        if not isinstance(payload, dict):
            raise InvalidToken("malformed token payload")
        user_id = payload.get("userId")
        exp = payload.get("exp")
        if not isinstance(user_id, str) or not user_id or not isinstance(exp, int):
            raise InvalidToken("malformed token payload")
        if self._clock().timestamp() >= exp:
            raise InvalidToken("token expired")
        return user_id
