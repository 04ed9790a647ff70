"""Account-related DTOs shared across services."""

from __future__ import annotations

from datetime import date
from pydantic import BaseModel, EmailStr


class AccountSummary(BaseModel):
    account_id: int
    employee_number: int
    name: str
    email: EmailStr
    join_date: date


class AuthorInfo(BaseModel):
    """Name and email pair served to the Q&A service."""

    name: str
    email: EmailStr
