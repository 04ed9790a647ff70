from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

import fakeredis
import pytest

from app.clients import DeliveryResult
from app.domain.account import Account, Profile, WithdrawalRecord
from app.domain.auth import AuthService
from app.domain.contracts import AccountQuery, SearchCategory
from app.domain.credential import Credential
from app.domain.errors import LoyaltyGatewayError
from app.domain.service import AccountService
from app.security.passwords import BcryptPasswordHasher
from app.verification import RedisVerificationCodeStore


class FakeAccountRepository:
    """In-memory repository mimicking the Postgres account/profile tables."""

    def __init__(self) -> None:
        self.accounts: dict[int, Account] = {}
        self.profiles: dict[int, Profile] = {}
        self.withdrawals: list[WithdrawalRecord] = []
        self._seq = 0

    def find_by_email(self, email: str):
        for account in self.accounts.values():
            if account.email.lower() == email.lower():
                return self._load(account)
        return None

    def get_account(self, account_id: int):
        account = self.accounts.get(account_id)
        return self._load(account) if account else None

    def create_account(self, account: Account) -> Account:
        self._seq += 1
        now = datetime.now(timezone.utc)
        account.account_id = self._seq
        account.created_at = now
        account.updated_at = now
        account.assign_profile(account.profile)
        self.accounts[self._seq] = replace(account, profile=None)
        self.profiles[self._seq] = replace(account.profile)
        return account

    def get_profile(self, account_id: int):
        profile = self.profiles.get(account_id)
        return replace(profile) if profile else None

    def save_profile(self, profile: Profile) -> None:
        self.profiles[profile.account_id] = replace(profile)

    def delete_account(self, account_id: int) -> None:
        self.accounts.pop(account_id, None)

    def delete_profile(self, account_id: int) -> None:
        self.profiles.pop(account_id, None)

    def write_withdrawal(self, record: WithdrawalRecord) -> None:
        self.withdrawals.append(record)

    def search_accounts(self, query: AccountQuery):
        results = [self._load(account) for account in sorted(self.accounts.values(), key=lambda a: a.account_id)]
        results = [account for account in results if account.profile is not None]
        if query.keyword is not None:
            if query.category is SearchCategory.EMPLOYEE_NUMBER:
                results = [a for a in results if a.profile.employee_number == int(query.keyword)]
            elif query.category is SearchCategory.EMAIL:
                results = [a for a in results if query.keyword.lower() in a.email.lower()]
            elif query.category is SearchCategory.NAME:
                results = [a for a in results if query.keyword.lower() in a.profile.name.lower()]
        limit = max(1, min(query.limit, 100))
        return results[query.offset : query.offset + limit]

    def find_accounts(self, account_ids: list[int]):
        return [self._load(self.accounts[i]) for i in sorted(set(account_ids)) if i in self.accounts]

    def _load(self, account: Account) -> Account:
        loaded = replace(account, profile=None)
        profile = self.profiles.get(account.account_id)
        if profile is not None:
            loaded.assign_profile(replace(profile))
        return loaded


class FakeCollectionRepository:
    """Stands in for the cart and wishlist stores."""

    def __init__(self) -> None:
        self.account_ids: set[int] = set()
        self.deleted: list[int] = []

    def delete_by_account(self, account_id: int) -> None:
        self.account_ids.discard(account_id)
        self.deleted.append(account_id)


class FakeCredentialRepository:
    def __init__(self) -> None:
        self.credentials: dict[str, Credential] = {}

    def find_by_email(self, email: str):
        credential = self.credentials.get(email.lower())
        return replace(credential) if credential else None

    def create(self, credential: Credential) -> Credential:
        self.credentials[credential.email.lower()] = replace(credential)
        return credential

    def update_password(self, email: str, password_hash: str) -> None:
        self.credentials[email.lower()].password_hash = password_hash


class FakeNotificationClient:
    """Records every notification and answers with a configurable status."""

    def __init__(self) -> None:
        self.sent = []
        self.status_code = 200
        self.error: Exception | None = None

    def send_email_verification_code(self, notification):
        self.sent.append(notification)
        if self.error is not None:
            raise self.error
        return DeliveryResult(status_code=self.status_code)


class FakeMileageClient:
    def __init__(self) -> None:
        self.created: list[tuple[int, int]] = []
        self.deleted: list[tuple[int, int]] = []
        self.fail = False

    def create_ledger(self, account_id: int, acting_account_id: int) -> None:
        if self.fail:
            raise LoyaltyGatewayError("mileage service unavailable", status_code=503)
        self.created.append((account_id, acting_account_id))

    def delete_ledger(self, account_id: int, acting_account_id: int) -> None:
        if self.fail:
            raise LoyaltyGatewayError("mileage service unavailable", status_code=503)
        self.deleted.append((account_id, acting_account_id))


@pytest.fixture()
def redis_client() -> fakeredis.FakeStrictRedis:
    client = fakeredis.FakeStrictRedis()
    client.flushall()
    return client


@pytest.fixture()
def code_store(redis_client) -> RedisVerificationCodeStore:
    return RedisVerificationCodeStore(redis_client, ttl_seconds=300, key_prefix="test")


@pytest.fixture()
def notifications() -> FakeNotificationClient:
    return FakeNotificationClient()


@pytest.fixture()
def credentials() -> FakeCredentialRepository:
    return FakeCredentialRepository()


@pytest.fixture()
def auth_service(credentials, code_store, notifications) -> AuthService:
    """Auth service with a cheap bcrypt cost factor."""
    return AuthService(credentials, code_store, notifications, BcryptPasswordHasher(rounds=4))


@pytest.fixture()
def accounts() -> FakeAccountRepository:
    return FakeAccountRepository()


@pytest.fixture()
def carts() -> FakeCollectionRepository:
    return FakeCollectionRepository()


@pytest.fixture()
def wishlists() -> FakeCollectionRepository:
    return FakeCollectionRepository()


@pytest.fixture()
def mileage() -> FakeMileageClient:
    return FakeMileageClient()


@pytest.fixture()
def account_service(accounts, carts, wishlists, mileage) -> AccountService:
    return AccountService(accounts, carts, wishlists, mileage)

