"""Redis-backed storage for single-use password reset codes."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Final

from redis import Redis

from .domain.credential import VerificationCode


class RedisVerificationCodeStore:
    """Keeps at most one live code per email under a TTL-bound Redis key.

    Concurrent writers for the same email are last-writer-wins: ``SET``
    replaces any previous code atomically.
    """

    _KEY_PREFIX: Final[str] = "verification"

    def __init__(self, client: Redis, *, ttl_seconds: int, key_prefix: str = _KEY_PREFIX) -> None:
        """Store the Redis client and the code lifetime applied on every write."""
        self._client = client
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    def _key(self, email: str) -> str:
        return f"{self._key_prefix}:{email.lower()}"

    def save(self, code: VerificationCode) -> None:
        """Persist ``code``, overwriting any prior code for the same email."""
        payload = json.dumps({"code": code.code, "created_at": code.created_at.isoformat()})
        self._client.set(self._key(code.email), payload, ex=self._ttl_seconds)

    def find(self, email: str) -> VerificationCode | None:
        """Return the live code for ``email``; expired or absent codes yield ``None``."""
        raw = self._client.get(self._key(email))
        if raw is None:
            return None
        data = json.loads(raw)
        return VerificationCode(
            email=email,
            code=data["code"],
            created_at=datetime.fromisoformat(data["created_at"]),
        )

    def delete(self, email: str) -> None:
        self._client.delete(self._key(email))
