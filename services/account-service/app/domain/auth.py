"""Auth service: credentials, login checks and password recovery."""

from __future__ import annotations

import hmac
import logging
import secrets
from functools import cached_property

from schemas import EmailNotification

from .credential import Credential, Role, VerificationCode, generate_verification_code
from .errors import (
    CodeMismatch,
    CodeNotFound,
    DuplicateIdentity,
    IdentityNotFound,
    InvalidCredential,
    NotificationDeliveryFailed,
    OperationNotImplemented,
)
from ..clients import NotificationClient
from ..repository import CredentialRepository
from ..security.passwords import PasswordHasher
from ..verification import RedisVerificationCodeStore

logger = logging.getLogger(__name__)

RESET_SUBJECT = "Password reset verification code"
RESET_BODY = "Your password reset verification code is {code}."


class AuthService:
    """Identity workflows keyed by email.

    Requests for the same email are not serialised here; the credential
    store's single-row updates and the code store's last-writer-wins ``SET``
    decide the outcome of concurrent calls.
    """

    def __init__(
        self,
        credentials: CredentialRepository,
        codes: RedisVerificationCodeStore,
        notifications: NotificationClient,
        hasher: PasswordHasher,
    ) -> None:
        """Store the collaborators used by every workflow."""
        self._credentials = credentials
        self._codes = codes
        self._notifications = notifications
        self._hasher = hasher

    @cached_property
    def _decoy_hash(self) -> str:
        return self._hasher.hash(secrets.token_urlsafe(16))

    def register(
        self, email: str, password: str, role: Role, account_id: int | None = None
    ) -> Credential:
        """Create a credential with a freshly salted password hash."""
        if self._credentials.find_by_email(email) is not None:
            raise DuplicateIdentity(email)
        credential = Credential(
            email=email,
            password_hash=self._hasher.hash(password),
            role=role,
            account_id=account_id,
        )
        saved = self._credentials.create(credential)
        logger.info("credential registered for account %s", account_id)
        return saved

    def verify_user(self, email: str, password: str) -> int | None:
        """Check a login attempt and return the linked account identifier."""
        credential = self._credentials.find_by_email(email)
        if credential is None:
            # Same hashing cost as a known email.
            self._hasher.verify(password, self._decoy_hash)
            logger.warning("login rejected: no credential for %s", email)
            raise IdentityNotFound(email)
        if not self._hasher.verify(password, credential.password_hash):
            logger.warning("login rejected: password mismatch for %s", email)
            raise InvalidCredential(email)
        return credential.account_id

    def request_password_reset(self, email: str) -> None:
        """Send a fresh verification code and keep it only once delivery succeeded.

        A code that the user never received is never stored: a non-2xx answer
        raises :class:`NotificationDeliveryFailed` and a transport failure
        propagates unchanged.
        """
        code = generate_verification_code()
        notification = EmailNotification(
            email=email,
            subject=RESET_SUBJECT,
            body=RESET_BODY.format(code=code),
        )
        try:
            result = self._notifications.send_email_verification_code(notification)
            if not result.ok:
                raise NotificationDeliveryFailed(email, result.status_code)
            self._codes.save(VerificationCode(email=email, code=code))
        except NotificationDeliveryFailed:
            logger.warning("verification email to %s not delivered", email)
            raise
        except Exception:
            logger.exception("unexpected failure while issuing a reset code for %s", email)
            raise
        logger.info("password reset code issued for %s", email)

    def verify_code_and_reset_password(self, email: str, code: str, new_password: str) -> None:
        """Consume a verification code and set ``new_password``.

        The hash is updated before the code is deleted, so a failed delete
        leaves the user with a working password rather than no recovery path.
        """
        self._require_credential(email)
        stored = self._codes.find(email)
        if stored is None:
            raise CodeNotFound(email)
        if not hmac.compare_digest(stored.code.encode("utf-8"), code.encode("utf-8")):
            raise CodeMismatch(email)

        self._credentials.update_password(email, self._hasher.hash(new_password))
        self._codes.delete(email)
        logger.info("password reset completed for %s", email)

    def change_password(self, email: str, old_password: str, new_password: str) -> None:
        logger.info("password change requested for %s", email)
        credential = self._require_credential(email)
        if not self._hasher.verify(old_password, credential.password_hash):
            logger.warning("password change rejected: mismatch for %s", email)
            raise InvalidCredential(email)
        self._credentials.update_password(email, self._hasher.hash(new_password))
        logger.info("password changed for %s", email)

    def delete_account(self, account_id: int) -> None:
        """Identity teardown is not provided; withdraw through ``AccountService``."""
        raise OperationNotImplemented(
            f"credential teardown for account {account_id} is handled by account withdrawal"
        )

    def _require_credential(self, email: str) -> Credential:
        credential = self._credentials.find_by_email(email)
        if credential is None:
            logger.warning("no credential found for %s", email)
            raise IdentityNotFound(email)
        return credential
