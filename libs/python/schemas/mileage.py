"""Mileage ledger contracts exchanged with the mileage service."""

from __future__ import annotations

from pydantic import BaseModel, Field


class MileageLedger(BaseModel):
    account_id: int
    balance: int = Field(default=0, ge=0)
