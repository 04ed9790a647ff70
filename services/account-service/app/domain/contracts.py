"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class SearchCategory(str, Enum):
    ALL = "ALL"
    EMPLOYEE_NUMBER = "EMPLOYEE_NUMBER"
    EMAIL = "EMAIL"
    NAME = "NAME"


@dataclass(slots=True)
class CreateAccountInput:
    """Validated inputs required to register an account and its profile."""

    email: str
    employee_number: int
    name: str
    join_date: date


@dataclass(slots=True)
class AddressInput:
    """Contact fields a user may overwrite on their profile."""

    phone_number: str
    zip_code: str
    address: str
    detail_address: str


@dataclass(slots=True)
class AccountQuery:
    """Administrative search parameters with offset pagination."""

    category: SearchCategory = SearchCategory.ALL
    keyword: str | None = None
    limit: int = 50
    offset: int = 0
