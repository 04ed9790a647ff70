from __future__ import annotations

import re

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api import routes


@pytest.fixture
def api_client(account_service, auth_service):
    """Provide a FastAPI test client wired to in-memory collaborators."""
    app = FastAPI()
    app.include_router(routes.router)
    app.state.account_service = account_service
    app.state.auth_service = auth_service

    with TestClient(app) as client:
        yield client


def _create(client, email="kim@shopmall.com", employee_number=1001, name="Kim"):
    response = client.post(
        "/v1/accounts",
        json={
            "email": email,
            "employee_number": employee_number,
            "name": name,
            "join_date": "2024-03-01",
        },
    )
    assert response.status_code == 201
    return response.json()


def test_create_and_fetch_account(api_client, mileage):
    created = _create(api_client)

    assert created["status"] == "ACTIVE"
    assert mileage.created == [(created["account_id"], created["account_id"])]

    response = api_client.get(f"/v1/accounts/{created['account_id']}")
    assert response.status_code == 200
    assert response.json()["email"] == "kim@shopmall.com"

    duplicate = api_client.post(
        "/v1/accounts",
        json={
            "email": "kim@shopmall.com",
            "employee_number": 1,
            "name": "Other",
            "join_date": "2024-03-01",
        },
    )
    assert duplicate.status_code == 409


def test_missing_account_returns_404(api_client):
    assert api_client.get("/v1/accounts/404").status_code == 404


def test_address_update_flow(api_client):
    account_id = _create(api_client)["account_id"]
    address = {
        "phone_number": "010-1234-5678",
        "zip_code": "461831",
        "address": "Main street 495",
        "detail_address": "Room 411",
    }

    assert api_client.patch(f"/v1/accounts/{account_id}/address", json=address).status_code == 204
    response = api_client.get(f"/v1/accounts/{account_id}/address")
    assert response.json() == address


def test_withdraw_account(api_client, mileage):
    account_id = _create(api_client)["account_id"]

    response = api_client.request(
        "DELETE",
        f"/v1/accounts/{account_id}",
        json={"reason": "PRIVACY_CONCERN", "message": "please forget me"},
    )
    assert response.status_code == 200
    assert response.json()["reason"] == "PRIVACY_CONCERN"
    assert mileage.deleted == [(account_id, account_id)]

    again = api_client.request(
        "DELETE", f"/v1/accounts/{account_id}", json={"reason": "OTHER"}
    )
    assert again.status_code == 404


def test_withdraw_reports_mileage_failure(api_client, mileage):
    account_id = _create(api_client)["account_id"]
    mileage.fail = True

    response = api_client.request(
        "DELETE", f"/v1/accounts/{account_id}", json={"reason": "OTHER"}
    )
    assert response.status_code == 502


def test_admin_search_and_bulk_delete(api_client):
    kim = _create(api_client, email="kim@shopmall.com", employee_number=1001, name="Kim")
    _create(api_client, email="lee@shopmall.com", employee_number=1002, name="Lee")

    response = api_client.get(
        "/v1/admin/accounts", params={"category": "NAME", "keyword": "le"}
    )
    assert response.status_code == 200
    assert [item["name"] for item in response.json()] == ["Lee"]

    deleted = api_client.post(
        "/v1/admin/accounts/delete", json={"account_ids": [kim["account_id"]]}
    )
    assert deleted.status_code == 204
    remaining = api_client.get("/v1/admin/accounts").json()
    assert [item["email"] for item in remaining] == ["lee@shopmall.com"]


def test_internal_lookups(api_client):
    kim = _create(api_client)

    author = api_client.get(f"/v1/internal/accounts/{kim['account_id']}/author")
    assert author.json() == {"name": "Kim", "email": "kim@shopmall.com"}

    batch = api_client.get("/v1/internal/accounts", params={"ids": [kim["account_id"], 99]})
    assert [item["account_id"] for item in batch.json()] == [kim["account_id"]]


def test_login_and_password_reset_flow(api_client, notifications):
    registered = api_client.post(
        "/v1/auth/register",
        json={"email": "kim@shopmall.com", "password": "old-pass", "account_id": 1},
    )
    assert registered.status_code == 201
    assert registered.json()["role"] == "USER"

    login = api_client.post(
        "/v1/auth/login", json={"email": "kim@shopmall.com", "password": "old-pass"}
    )
    assert login.json() == {"account_id": 1}
    bad_login = api_client.post(
        "/v1/auth/login", json={"email": "kim@shopmall.com", "password": "nope"}
    )
    assert bad_login.status_code == 401

    requested = api_client.post(
        "/v1/auth/password/reset-request", json={"email": "kim@shopmall.com"}
    )
    assert requested.status_code == 202
    code = re.search(r"\b(\d{4})\b", notifications.sent[-1].body).group(1)
    wrong = "0000" if code != "0000" else "1111"

    mismatch = api_client.post(
        "/v1/auth/password/reset",
        json={"email": "kim@shopmall.com", "code": wrong, "new_password": "new-pass"},
    )
    assert mismatch.status_code == 400

    reset = api_client.post(
        "/v1/auth/password/reset",
        json={"email": "kim@shopmall.com", "code": code, "new_password": "new-pass"},
    )
    assert reset.status_code == 204

    reused = api_client.post(
        "/v1/auth/password/reset",
        json={"email": "kim@shopmall.com", "code": code, "new_password": "again"},
    )
    assert reused.status_code == 400

    changed = api_client.post(
        "/v1/auth/password/change",
        json={"email": "kim@shopmall.com", "old_password": "new-pass", "new_password": "third"},
    )
    assert changed.status_code == 204
    login = api_client.post(
        "/v1/auth/login", json={"email": "kim@shopmall.com", "password": "third"}
    )
    assert login.status_code == 200


def test_reset_request_surfaces_delivery_failure(api_client, notifications):
    notifications.status_code = 500

    response = api_client.post(
        "/v1/auth/password/reset-request", json={"email": "kim@shopmall.com"}
    )
    assert response.status_code == 502
