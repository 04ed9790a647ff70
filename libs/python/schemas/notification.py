"""Notification service payloads."""

from __future__ import annotations

from pydantic import BaseModel, EmailStr


class EmailNotification(BaseModel):
    email: EmailStr
    subject: str
    body: str
