"""Shared schema exports."""

from .account import AccountSummary, AuthorInfo
from .mileage import MileageLedger
from .notification import EmailNotification

__all__ = [
    "AccountSummary",
    "AuthorInfo",
    "EmailNotification",
    "MileageLedger",
]
