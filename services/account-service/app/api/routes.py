"""HTTP route definitions for the account service."""

from __future__ import annotations

import logging

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, EmailStr, Field

from schemas import AccountSummary, AuthorInfo

from ..domain.account import Account, WithdrawalReason
from ..domain.auth import AuthService
from ..domain.contracts import AccountQuery, AddressInput, CreateAccountInput, SearchCategory
from ..domain.credential import Role
from ..domain.errors import (
    AccountNotFound,
    AccountServiceError,
    CodeMismatch,
    CodeNotFound,
    DuplicateIdentity,
    GatewayError,
    IdentityNotFound,
    InvalidCredential,
    NotificationDeliveryFailed,
    OperationNotImplemented,
    ProfileNotFound,
)
from ..domain.service import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


class AccountResponse(BaseModel):
    """Serialised representation of an `Account` aggregate."""

    account_id: int
    email: EmailStr
    status: str
    employee_number: int
    name: str
    join_date: date

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        """Build a response model from the domain aggregate."""
        return cls(
            account_id=account.account_id,
            email=account.email,
            status=account.status.value,
            employee_number=account.profile.employee_number,
            name=account.profile.name,
            join_date=account.profile.join_date,
        )


class CreateAccountRequest(BaseModel):
    """Payload accepted when registering an account and its profile."""

    email: EmailStr
    employee_number: int = Field(..., ge=0)
    name: str = Field(..., min_length=1)
    join_date: date


class WithdrawalRequest(BaseModel):
    reason: WithdrawalReason
    message: str = ""


class WithdrawalResponse(BaseModel):
    account_id: int
    reason: WithdrawalReason
    withdrawal_date: date


class AddressPayload(BaseModel):
    """Contact fields shown and edited on the address page."""

    phone_number: str
    zip_code: str
    address: str
    detail_address: str


class DeleteAccountsRequest(BaseModel):
    account_ids: list[int] = Field(..., min_length=1)


class RegisterCredentialRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: Role = Role.USER
    account_id: int | None = None


class CredentialResponse(BaseModel):
    email: EmailStr
    role: Role
    account_id: int | None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    account_id: int | None


class ResetRequest(BaseModel):
    email: EmailStr


class ResetConfirmRequest(BaseModel):
    """Verification code plus the password that replaces the forgotten one."""

    email: EmailStr
    code: str = Field(..., pattern=r"^\d{4}$")
    new_password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    email: EmailStr
    old_password: str
    new_password: str = Field(..., min_length=1)


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def get_auth_service(request: Request) -> AuthService:
    """Resolve the `AuthService` stored on the FastAPI application state."""
    service: AuthService = request.app.state.auth_service
    return service


def _summary(account: Account) -> AccountSummary:
    return AccountSummary(
        account_id=account.account_id,
        employee_number=account.profile.employee_number,
        name=account.profile.name,
        email=account.email,
        join_date=account.profile.join_date,
    )


@router.post("/accounts", response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account(
    payload: CreateAccountRequest,
    service: AccountService = Depends(get_service),
) -> AccountResponse:
    """Register an account, its profile and its mileage ledger."""
    try:
        account = service.register(
            CreateAccountInput(
                email=payload.email,
                employee_number=payload.employee_number,
                name=payload.name,
                join_date=payload.join_date,
            )
        )
    except AccountServiceError as exc:
        raise _http_error(exc) from exc
    return AccountResponse.from_domain(account)


@router.get("/accounts/{account_id}", response_model=AccountResponse)
def get_account(
    account_id: int,
    service: AccountService = Depends(get_service),
) -> AccountResponse:
    try:
        account = service.get_account(account_id)
        if account.profile is None:
            raise ProfileNotFound(account_id)
    except AccountServiceError as exc:
        raise _http_error(exc) from exc
    return AccountResponse.from_domain(account)


@router.delete("/accounts/{account_id}", response_model=WithdrawalResponse)
def withdraw_account(
    account_id: int,
    payload: WithdrawalRequest,
    service: AccountService = Depends(get_service),
) -> WithdrawalResponse:
    """Withdraw an account and remove its profile, cart, wishlist and ledger."""
    try:
        record = service.delete_account(account_id, payload.reason, payload.message)
    except AccountServiceError as exc:
        raise _http_error(exc) from exc
    return WithdrawalResponse(
        account_id=record.account_id,
        reason=record.reason,
        withdrawal_date=record.withdrawal_date,
    )


@router.get("/accounts/{account_id}/address", response_model=AddressPayload)
def get_address(
    account_id: int,
    service: AccountService = Depends(get_service),
) -> AddressPayload:
    try:
        profile = service.get_profile(account_id)
    except AccountServiceError as exc:
        raise _http_error(exc) from exc
    return AddressPayload(
        phone_number=profile.phone_number,
        zip_code=profile.zip_code,
        address=profile.address,
        detail_address=profile.detail_address,
    )


@router.patch("/accounts/{account_id}/address", status_code=status.HTTP_204_NO_CONTENT)
def update_address(
    account_id: int,
    payload: AddressPayload,
    service: AccountService = Depends(get_service),
) -> None:
    try:
        service.update_address(
            account_id,
            AddressInput(
                phone_number=payload.phone_number,
                zip_code=payload.zip_code,
                address=payload.address,
                detail_address=payload.detail_address,
            ),
        )
    except AccountServiceError as exc:
        raise _http_error(exc) from exc


@router.get("/admin/accounts", response_model=list[AccountSummary])
def search_accounts(
    category: SearchCategory = Query(default=SearchCategory.ALL),
    keyword: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    service: AccountService = Depends(get_service),
) -> list[AccountSummary]:
    """Return a page of accounts filtered by category and keyword."""
    accounts = service.list_accounts(
        AccountQuery(category=category, keyword=keyword, limit=limit, offset=offset)
    )
    return [_summary(account) for account in accounts if account.profile is not None]


@router.post("/admin/accounts/delete", status_code=status.HTTP_204_NO_CONTENT)
def delete_accounts(
    payload: DeleteAccountsRequest,
    service: AccountService = Depends(get_service),
) -> None:
    try:
        service.delete_accounts(payload.account_ids)
    except AccountServiceError as exc:
        raise _http_error(exc) from exc


@router.get("/internal/accounts", response_model=list[AccountSummary])
def lookup_accounts(
    ids: list[int] = Query(...),
    service: AccountService = Depends(get_service),
) -> list[AccountSummary]:
    """Batch lookup used by other services."""
    return [_summary(account) for account in service.get_accounts(ids) if account.profile]


@router.get("/internal/accounts/{account_id}/author", response_model=AuthorInfo)
def get_author(
    account_id: int,
    service: AccountService = Depends(get_service),
) -> AuthorInfo:
    try:
        name, email = service.get_author(account_id)
    except AccountServiceError as exc:
        raise _http_error(exc) from exc
    return AuthorInfo(name=name, email=email)


@router.post(
    "/auth/register", response_model=CredentialResponse, status_code=status.HTTP_201_CREATED
)
def register_credential(
    payload: RegisterCredentialRequest,
    auth: AuthService = Depends(get_auth_service),
) -> CredentialResponse:
    try:
        credential = auth.register(
            payload.email, payload.password, payload.role, payload.account_id
        )
    except AccountServiceError as exc:
        raise _http_error(exc) from exc
    return CredentialResponse(
        email=credential.email, role=credential.role, account_id=credential.account_id
    )


@router.post("/auth/login", response_model=LoginResponse)
def login(
    payload: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Verify an email/password pair and return the linked account identifier."""
    try:
        account_id = auth.verify_user(payload.email, payload.password)
    except AccountServiceError as exc:
        raise _http_error(exc) from exc
    return LoginResponse(account_id=account_id)


@router.post("/auth/password/reset-request", status_code=status.HTTP_202_ACCEPTED)
def request_password_reset(
    payload: ResetRequest,
    auth: AuthService = Depends(get_auth_service),
) -> dict[str, str]:
    try:
        auth.request_password_reset(payload.email)
    except AccountServiceError as exc:
        raise _http_error(exc) from exc
    return {"status": "sent"}


@router.post("/auth/password/reset", status_code=status.HTTP_204_NO_CONTENT)
def reset_password(
    payload: ResetConfirmRequest,
    auth: AuthService = Depends(get_auth_service),
) -> None:
    try:
        auth.verify_code_and_reset_password(payload.email, payload.code, payload.new_password)
    except AccountServiceError as exc:
        raise _http_error(exc) from exc


@router.post("/auth/password/change", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    payload: ChangePasswordRequest,
    auth: AuthService = Depends(get_auth_service),
) -> None:
    try:
        auth.change_password(payload.email, payload.old_password, payload.new_password)
    except AccountServiceError as exc:
        raise _http_error(exc) from exc


_STATUS_BY_ERROR: list[tuple[type[AccountServiceError], int]] = [
    (DuplicateIdentity, status.HTTP_409_CONFLICT),
    (IdentityNotFound, status.HTTP_404_NOT_FOUND),
    (AccountNotFound, status.HTTP_404_NOT_FOUND),
    (ProfileNotFound, status.HTTP_404_NOT_FOUND),
    (InvalidCredential, status.HTTP_401_UNAUTHORIZED),
    (CodeNotFound, status.HTTP_400_BAD_REQUEST),
    (CodeMismatch, status.HTTP_400_BAD_REQUEST),
    (NotificationDeliveryFailed, status.HTTP_502_BAD_GATEWAY),
    (GatewayError, status.HTTP_502_BAD_GATEWAY),
    (OperationNotImplemented, status.HTTP_501_NOT_IMPLEMENTED),
]


def _http_error(exc: AccountServiceError) -> HTTPException:
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, mapped in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            status_code = mapped
            break
    if status_code >= 500:
        logger.error("request failed: %s", exc)
    return HTTPException(status_code=status_code, detail=str(exc))
