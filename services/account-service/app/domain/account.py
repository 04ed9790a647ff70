from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum


class AccountStatus(str, Enum):
    ACTIVE = "ACTIVE"
    WITHDRAWN = "WITHDRAWN"


class WithdrawalReason(str, Enum):
    LOW_USAGE = "LOW_USAGE"
    POOR_SERVICE = "POOR_SERVICE"
    PRIVACY_CONCERN = "PRIVACY_CONCERN"
    SWITCHING_SERVICE = "SWITCHING_SERVICE"
    OTHER = "OTHER"


@dataclass(slots=True)
class Profile:
    """Per-account attributes owned exclusively by an ``Account``."""

    employee_number: int
    name: str
    join_date: date
    phone_number: str = ""
    zip_code: str = ""
    address: str = ""
    detail_address: str = ""
    account_id: int | None = None

    def change_address(
        self, phone_number: str, zip_code: str, address: str, detail_address: str
    ) -> None:
        self.phone_number = phone_number
        self.zip_code = zip_code
        self.address = address
        self.detail_address = detail_address


@dataclass(slots=True)
class Account:
    """Aggregate root for a platform identity and its profile."""

    email: str
    status: AccountStatus = AccountStatus.ACTIVE
    account_id: int | None = None
    profile: Profile | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def assign_profile(self, profile: Profile) -> None:
        """Link the profile to this account in both directions."""
        self.profile = profile
        profile.account_id = self.account_id

    def withdraw(self) -> None:
        """Move the account to ``WITHDRAWN``; there is no way back."""
        if self.status is AccountStatus.WITHDRAWN:
            raise ValueError(f"account {self.account_id} already withdrawn")
        self.status = AccountStatus.WITHDRAWN


@dataclass(slots=True, frozen=True)
class WithdrawalRecord:
    """Write-once audit entry produced when an account is withdrawn."""

    account_id: int
    reason: WithdrawalReason
    message: str
    withdrawal_date: date = field(default_factory=date.today)
