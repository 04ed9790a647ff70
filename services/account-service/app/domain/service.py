"""Account service orchestrating persistence, profiles and mileage provisioning."""

from __future__ import annotations

import logging
import re

from .account import Account, Profile, WithdrawalReason, WithdrawalRecord
from .contracts import AccountQuery, AddressInput, CreateAccountInput, SearchCategory
from .errors import AccountNotFound, DuplicateIdentity, LoyaltyGatewayError, ProfileNotFound
from ..clients import MileageClient
from ..repository import AccountRepository, CartRepository, WishlistRepository

logger = logging.getLogger(__name__)


class AccountService:
    """Account lifecycle workflows.

    Local stores and the mileage service share no transaction. When the
    mileage call fails after the local writes, those writes stay committed
    and :class:`LoyaltyGatewayError` reaches the caller, who may retry the
    remote step on its own.
    """

    def __init__(
        self,
        accounts: AccountRepository,
        carts: CartRepository,
        wishlists: WishlistRepository,
        mileage: MileageClient,
    ) -> None:
        """Store dependencies used to orchestrate the account lifecycle."""
        self._accounts = accounts
        self._carts = carts
        self._wishlists = wishlists
        self._mileage = mileage

    def register(self, payload: CreateAccountInput) -> Account:
        """Create an active account with its profile, then provision its ledger.

        The account is persisted first because the mileage ledger is keyed by
        the identifier the store assigns.
        """
        if self._accounts.find_by_email(payload.email) is not None:
            raise DuplicateIdentity(payload.email)

        account = Account(email=payload.email)
        account.assign_profile(
            Profile(
                employee_number=payload.employee_number,
                name=payload.name,
                join_date=payload.join_date,
            )
        )
        account = self._accounts.create_account(account)

        try:
            self._mileage.create_ledger(account.account_id, account.account_id)
        except LoyaltyGatewayError:
            logger.exception(
                "mileage ledger not provisioned for account %s; local rows kept",
                account.account_id,
            )
            raise

        logger.info("account created: %s", account.account_id)
        return account

    def delete_account(
        self, account_id: int, reason: WithdrawalReason, message: str
    ) -> WithdrawalRecord:
        """Withdraw an account and tear down everything it owns."""
        account = self._accounts.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)

        record = WithdrawalRecord(account_id=account_id, reason=reason, message=message)
        account.withdraw()

        self._accounts.delete_account(account_id)
        self._accounts.delete_profile(account_id)
        self._carts.delete_by_account(account_id)
        self._wishlists.delete_by_account(account_id)
        self._accounts.write_withdrawal(record)

        try:
            self._mileage.delete_ledger(account_id, account_id)
        except LoyaltyGatewayError:
            logger.exception(
                "mileage ledger not removed for withdrawn account %s", account_id
            )
            raise

        logger.info("account %s withdrawn (reason=%s)", account_id, reason.value)
        return record

    def update_address(self, account_id: int, address: AddressInput) -> None:
        """Overwrite the contact fields on the account's profile."""
        profile = self.get_profile(account_id)
        profile.change_address(
            address.phone_number, address.zip_code, address.address, address.detail_address
        )
        self._accounts.save_profile(profile)
        logger.info("address updated for account %s", account_id)

    def get_account(self, account_id: int) -> Account:
        account = self._accounts.get_account(account_id)
        if account is None:
            raise AccountNotFound(account_id)
        return account

    def get_profile(self, account_id: int) -> Profile:
        account = self.get_account(account_id)
        if account.profile is None:
            raise ProfileNotFound(account_id)
        return account.profile

    def list_accounts(self, query: AccountQuery) -> list[Account]:
        """Search accounts by category; a non-numeric employee number matches nothing."""
        if (
            query.category is SearchCategory.EMPLOYEE_NUMBER
            and query.keyword is not None
            and re.fullmatch(r"[0-9]+", query.keyword) is None
        ):
            return []
        accounts = self._accounts.search_accounts(query)
        logger.info(
            "account search returned %s rows (category=%s)", len(accounts), query.category.value
        )
        return accounts

    def delete_accounts(self, account_ids: list[int]) -> None:
        """Administrative removal of several accounts; stops at the first unknown id."""
        for account_id in account_ids:
            if self._accounts.get_account(account_id) is None:
                raise AccountNotFound(account_id)
            self._accounts.delete_account(account_id)
            logger.info("account %s deleted by administrator", account_id)

    def get_author(self, account_id: int) -> tuple[str, str]:
        """Return the ``(name, email)`` pair shown next to Q&A posts."""
        account = self.get_account(account_id)
        if account.profile is None:
            raise ProfileNotFound(account_id)
        return account.profile.name, account.email

    def get_accounts(self, account_ids: list[int]) -> list[Account]:
        return self._accounts.find_accounts(account_ids)
