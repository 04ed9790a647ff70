"""Password hashing capability injected into the auth service."""

from __future__ import annotations

from typing import Protocol

import bcrypt


class PasswordHasher(Protocol):
    """One-way, salted hashing with verification."""

    def hash(self, password: str) -> str: ...

    def verify(self, password: str, password_hash: str) -> bool: ...


class BcryptPasswordHasher:
    """bcrypt hasher; every call to :meth:`hash` draws a fresh salt."""

    def __init__(self, rounds: int = 12) -> None:
        """Store the bcrypt cost factor (4..31)."""
        self._rounds = rounds

    def hash(self, password: str) -> str:
        """Return the bcrypt hash of ``password`` as text."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Return ``True`` when ``password`` matches, using bcrypt's constant-time check."""
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # malformed stored hash
            return False
