from __future__ import annotations

from typing import Optional

from passlib.hash import argon2


class PasswordHasher:
    """Salted argon2 hashing. Cost parameters default to passlib's."""

    def __init__(self, time_cost: Optional[int] = None, memory_cost: Optional[int] = None) -> None:
        options = {}
        if time_cost is not None:
            options["time_cost"] = time_cost
        if memory_cost is not None:
            options["memory_cost"] = memory_cost
        self._scheme = argon2.using(**options) if options else argon2

    def hash(self, raw: str) -> str:
        return self._scheme.hash(raw)

    def verify(self, raw: str, hashed: str) -> bool:
        # passlib compares digests in constant time
        try:
            return self._scheme.verify(raw, hashed)
        except (ValueError, TypeError):
            return False
