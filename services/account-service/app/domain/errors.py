"""Exception taxonomy raised by the account and auth services."""

from __future__ import annotations


class AccountServiceError(Exception):
    """Base exception for account service failures."""


class DuplicateIdentity(AccountServiceError):
    """Raised when the email is already registered."""

    def __init__(self, email: str) -> None:
        super().__init__(f"email already registered: {email}")
        self.email = email


class IdentityNotFound(AccountServiceError):
    """Raised when no credential matches the email."""

    def __init__(self, email: str) -> None:
        super().__init__(f"no credential for email: {email}")
        self.email = email


class AccountNotFound(AccountServiceError):
    def __init__(self, account_id: int) -> None:
        super().__init__(f"account not found: {account_id}")
        self.account_id = account_id


class ProfileNotFound(AccountServiceError):
    def __init__(self, account_id: int) -> None:
        super().__init__(f"profile not found for account: {account_id}")
        self.account_id = account_id


class InvalidCredential(AccountServiceError):
    """Raised when a password does not match the stored hash."""

    def __init__(self, email: str) -> None:
        super().__init__(f"invalid credential for email: {email}")
        self.email = email


class CodeNotFound(AccountServiceError):
    """Raised when no live verification code exists for the email."""

    def __init__(self, email: str) -> None:
        super().__init__(f"no verification code for email: {email}")
        self.email = email


class CodeMismatch(AccountServiceError):
    def __init__(self, email: str) -> None:
        super().__init__(f"verification code mismatch for email: {email}")
        self.email = email


class NotificationDeliveryFailed(AccountServiceError):
    """Raised when the notification service answers with a non-2xx status."""

    def __init__(self, email: str, status_code: int) -> None:
        super().__init__(f"verification email to {email} not delivered (status {status_code})")
        self.email = email
        self.status_code = status_code


class OperationNotImplemented(AccountServiceError, NotImplementedError):
    """Raised for operations acknowledged but not provided by this service."""


class GatewayError(AccountServiceError):
    """Raised when a remote collaborator cannot be reached or rejects a call."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotificationGatewayError(GatewayError):
    pass


class LoyaltyGatewayError(GatewayError):
    """Raised when the mileage service fails after local writes were committed."""
