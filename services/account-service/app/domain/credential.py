from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

CODE_DIGITS = 4


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


@dataclass(slots=True)
class Credential:
    """Authentication material keyed by email."""

    email: str
    password_hash: str
    role: Role
    account_id: int | None = None


@dataclass(slots=True, frozen=True)
class VerificationCode:
    """Single-use password reset code; at most one is live per email."""

    email: str
    code: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def generate_verification_code() -> str:
    """Return a uniformly drawn, zero-padded code in ``"0000"``..``"9999"``."""
    return f"{secrets.randbelow(10 ** CODE_DIGITS):0{CODE_DIGITS}d}"
