"""HTTP clients for the notification and mileage services."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from schemas import EmailNotification, MileageLedger

from .domain.errors import LoyaltyGatewayError, NotificationGatewayError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class DeliveryResult:
    """Outcome reported by the notification service for one email."""

    status_code: int

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def _new_session() -> requests.Session:
    """Return a session that sends every request at most once."""
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=Retry(total=0, connect=0, read=0, redirect=0, status=0))
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class NotificationClient:
    """Sends verification emails through the notification service."""

    def __init__(self, base_url: str, *, timeout: float = 5.0) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout
        self._session = _new_session()

    def send_email_verification_code(self, notification: EmailNotification) -> DeliveryResult:
        """Deliver ``notification`` and report the remote status code.

        Raises
        ------
        NotificationGatewayError
            If the request could not be completed at all.
        """
        url = urljoin(self._base_url, "api/notifications/email")
        try:
            response = self._session.post(
                url, json=notification.model_dump(), timeout=self._timeout
            )
        except requests.exceptions.RequestException as exc:
            raise NotificationGatewayError(f"notification service unreachable: {exc}") from exc
        logger.debug("notification service responded with status %s", response.status_code)
        return DeliveryResult(status_code=response.status_code)

    def close(self) -> None:
        self._session.close()


class MileageClient:
    """Provisions and deprovisions per-account mileage ledgers."""

    def __init__(self, base_url: str, *, timeout: float = 5.0) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout
        self._session = _new_session()

    def create_ledger(self, account_id: int, acting_account_id: int) -> None:
        """Create a zero-balance ledger for ``account_id``."""
        ledger = MileageLedger(account_id=account_id)
        self._call("POST", account_id, acting_account_id, json=ledger.model_dump())

    def delete_ledger(self, account_id: int, acting_account_id: int) -> None:
        """Remove the ledger belonging to ``account_id``."""
        self._call("DELETE", account_id, acting_account_id)

    def _call(self, method: str, account_id: int, acting_account_id: int, **kwargs) -> None:
        url = urljoin(self._base_url, f"api/mileage/{account_id}")
        try:
            response = self._session.request(
                method,
                url,
                headers={"X-User-Id": str(acting_account_id)},
                timeout=self._timeout,
                **kwargs,
            )
        except requests.exceptions.RequestException as exc:
            raise LoyaltyGatewayError(f"mileage service unreachable: {exc}") from exc
        if not response.ok:
            raise LoyaltyGatewayError(
                f"mileage service rejected {method} for account {account_id}",
                status_code=response.status_code,
            )

    def close(self) -> None:
        self._session.close()
