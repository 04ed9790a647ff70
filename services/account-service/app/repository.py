"""Database repositories for account, profile, credential and collection data."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from psycopg import errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from .domain.account import Account, AccountStatus, Profile, WithdrawalRecord
from .domain.contracts import AccountQuery, SearchCategory
from .domain.credential import Credential, Role
from .domain.errors import DuplicateIdentity

_ACCOUNT_COLUMNS = """
    a.account_id, a.email, a.status, a.created_at, a.updated_at,
    p.employee_number, p.name, p.join_date, p.phone_number, p.zip_code,
    p.address, p.detail_address
"""


class AccountRepository:
    """Postgres-backed persistence for accounts, their profiles and withdrawals."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def find_by_email(self, email: str) -> Account | None:
        """Return the account registered under ``email`` or ``None``."""
        return self._fetch_one("lower(a.email) = lower(%s)", (email,))

    def get_account(self, account_id: int) -> Account | None:
        """Fetch an account together with its profile or return ``None``."""
        return self._fetch_one("a.account_id = %s", (account_id,))

    def create_account(self, account: Account) -> Account:
        """Insert the account and its profile in one transaction.

        The store assigns ``account_id``; the returned aggregate carries it along
        with the database timestamps.
        """
        profile = account.profile
        if profile is None:
            raise ValueError("account must carry a profile before it is persisted")
        now = datetime.now(timezone.utc)
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        """
                        INSERT INTO accounts (email, status, created_at, updated_at)
                        VALUES (%s, %s, %s, %s)
                        RETURNING account_id, created_at, updated_at
                        """,
                        (account.email, account.status.value, now, now),
                    )
                    account_id, created_at, updated_at = cur.fetchone()
                    cur.execute(
                        """
                        INSERT INTO profiles (
                            account_id, employee_number, name, join_date,
                            phone_number, zip_code, address, detail_address
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
                        """,
                        (
                            account_id,
                            profile.employee_number,
                            profile.name,
                            profile.join_date,
                            profile.phone_number,
                            profile.zip_code,
                            profile.address,
                            profile.detail_address,
                        ),
                    )
                    conn.commit()
        except errors.UniqueViolation as exc:
            raise DuplicateIdentity(account.email) from exc

        account.account_id = account_id
        account.created_at = created_at
        account.updated_at = updated_at
        account.assign_profile(profile)
        return account

    def save_profile(self, profile: Profile) -> None:
        """Persist the contact fields of an existing profile."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE profiles
                    SET phone_number = %s, zip_code = %s, address = %s, detail_address = %s
                    WHERE account_id = %s
                    """,
                    (
                        profile.phone_number,
                        profile.zip_code,
                        profile.address,
                        profile.detail_address,
                        profile.account_id,
                    ),
                )
                cur.execute(
                    "UPDATE accounts SET updated_at = NOW() WHERE account_id = %s",
                    (profile.account_id,),
                )
                conn.commit()

    def delete_account(self, account_id: int) -> None:
        self._execute("DELETE FROM accounts WHERE account_id = %s", (account_id,))

    def delete_profile(self, account_id: int) -> None:
        self._execute("DELETE FROM profiles WHERE account_id = %s", (account_id,))

    def write_withdrawal(self, record: WithdrawalRecord) -> None:
        """Record why an account was withdrawn."""
        self._execute(
            """
            INSERT INTO account_withdrawals (account_id, reason, message, withdrawal_date)
            VALUES (%s, %s, %s, %s)
            """,
            (record.account_id, record.reason.value, record.message, record.withdrawal_date),
        )

    def search_accounts(self, query: AccountQuery) -> list[Account]:
        """Return a page of accounts filtered by the query's category and keyword."""
        limit = max(1, min(query.limit, 100))
        clauses: list[str] = []
        params: list[Any] = []

        if query.keyword is not None and query.category is not SearchCategory.ALL:
            if query.category is SearchCategory.EMPLOYEE_NUMBER:
                clauses.append("p.employee_number = %s")
                params.append(int(query.keyword))
            elif query.category is SearchCategory.EMAIL:
                clauses.append("a.email ILIKE %s")
                params.append(f"%{query.keyword}%")
            elif query.category is SearchCategory.NAME:
                clauses.append("p.name ILIKE %s")
                params.append(f"%{query.keyword}%")

        where_sql = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        sql = f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM accounts a
            JOIN profiles p ON p.account_id = a.account_id
            {where_sql}
            ORDER BY a.account_id
            LIMIT %s OFFSET %s
        """
        params.extend([limit, max(0, query.offset)])

        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(sql, params)
                return [self._map_record(row) for row in cur.fetchall()]

    def find_accounts(self, account_ids: list[int]) -> list[Account]:
        """Return the accounts whose identifiers are in ``account_ids``."""
        if not account_ids:
            return []
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_ACCOUNT_COLUMNS}
                    FROM accounts a
                    JOIN profiles p ON p.account_id = a.account_id
                    WHERE a.account_id = ANY(%s)
                    ORDER BY a.account_id
                    """,
                    (list(account_ids),),
                )
                return [self._map_record(row) for row in cur.fetchall()]

    def _fetch_one(self, condition: str, params: tuple) -> Account | None:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_ACCOUNT_COLUMNS}
                    FROM accounts a
                    LEFT JOIN profiles p ON p.account_id = a.account_id
                    WHERE {condition}
                    """,
                    params,
                )
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_record(row)

    def _execute(self, sql: str, params: tuple) -> None:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                conn.commit()

    def _map_record(self, row: tuple) -> Account:
        """Convert a joined account/profile tuple into the ``Account`` aggregate."""
        account = Account(
            account_id=row[0],
            email=row[1],
            status=AccountStatus(row[2]),
            created_at=row[3],
            updated_at=row[4],
        )
        if row[5] is not None:
            account.assign_profile(
                Profile(
                    employee_number=row[5],
                    name=row[6],
                    join_date=row[7],
                    phone_number=row[8],
                    zip_code=row[9],
                    address=row[10],
                    detail_address=row[11],
                )
            )
        return account


class CartRepository:
    """Cart persistence; only the per-account teardown is used here."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def delete_by_account(self, account_id: int) -> None:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM carts WHERE account_id = %s", (account_id,))
                conn.commit()


class WishlistRepository:
    """Wishlist persistence; only the per-account teardown is used here."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def delete_by_account(self, account_id: int) -> None:
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM wishlists WHERE account_id = %s", (account_id,))
                conn.commit()


class CredentialRepository:
    """Postgres-backed credential storage keyed by email."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def find_by_email(self, email: str) -> Credential | None:
        """Return the credential for ``email`` or ``None`` when absent."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    SELECT email, password_hash, role, account_id
                    FROM credentials
                    WHERE lower(email) = lower(%s)
                    """,
                    (email,),
                )
                row = cur.fetchone()
                if not row:
                    return None
        return Credential(email=row[0], password_hash=row[1], role=Role(row[2]), account_id=row[3])

    def create(self, credential: Credential) -> Credential:
        """Insert a new credential; the unique email index rejects duplicates."""
        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        """
                        INSERT INTO credentials (email, password_hash, role, account_id, created_at)
                        VALUES (%s, %s, %s, %s, NOW())
                        """,
                        (
                            credential.email,
                            credential.password_hash,
                            credential.role.value,
                            credential.account_id,
                        ),
                    )
                    conn.commit()
        except errors.UniqueViolation as exc:
            raise DuplicateIdentity(credential.email) from exc
        return credential

    def update_password(self, email: str, password_hash: str) -> None:
        """Replace the stored hash in a single-row update."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE credentials
                    SET password_hash = %s, updated_at = NOW()
                    WHERE lower(email) = lower(%s)
                    """,
                    (password_hash, email),
                )
                conn.commit()
