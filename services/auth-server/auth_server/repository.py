"""Postgres-backed document store adapters for accounts and reports."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

import psycopg
from psycopg import errors as pg_errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool, PoolTimeout

from .domain.account import Account, Report
from .domain.contracts import AccountByEmail, AccountById, NewAccount, ReportsByOwner
from .errors import AccountExists, PersistenceError

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS users (
        user_id TEXT PRIMARY KEY,
        email TEXT NOT NULL,
        password_hash TEXT NOT NULL,
        first_name TEXT NOT NULL DEFAULT '',
        last_name TEXT NOT NULL DEFAULT '',
        created_at TIMESTAMPTZ NOT NULL,
        updated_at TIMESTAMPTZ NOT NULL
    )
    """,
    "CREATE UNIQUE INDEX IF NOT EXISTS users_email_key ON users (email)",
    """
    CREATE TABLE IF NOT EXISTS reports (
        report_id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        document JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    "CREATE INDEX IF NOT EXISTS reports_user_id_idx ON reports (user_id)",
)


class _PoolStore:
    """Shared connection handling: bounded checkout, statement timeout, error mapping."""

    def __init__(self, pool: ConnectionPool, timeout_seconds: float) -> None:
        self._pool = pool
        self._timeout = timeout_seconds

    @contextmanager
    def _cursor(self, operation: str) -> Iterator[psycopg.Cursor]:
        """Yield a cursor inside a transaction whose statements are cancelled after the timeout."""
        try:
            with self._pool.connection(timeout=self._timeout) as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        "SELECT set_config('statement_timeout', %s, true)",
                        (str(int(self._timeout * 1000)),),
                    )
                    yield cur
        except PoolTimeout as exc:
            logger.error("%s: no store connection within %ss", operation, self._timeout)
            raise PersistenceError(f"{operation}: connection checkout timed out") from exc
        except pg_errors.QueryCanceled as exc:
            logger.error("%s: statement cancelled after %ss", operation, self._timeout)
            raise PersistenceError(f"{operation}: statement timed out") from exc
        except psycopg.Error as exc:
            logger.error("%s failed: %s", operation, exc)
            raise PersistenceError(f"{operation}: {exc}") from exc


def ensure_schema(pool: ConnectionPool) -> None:
    """Create the collections and the unique email index when missing."""
    with pool.connection() as conn:
        with conn.cursor() as cur:
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
        conn.commit()


class AccountRepository(_PoolStore):
    """Account persistence keyed by email or identifier."""

    def find_by_email(self, query: AccountByEmail) -> Account | None:
        """Return the account registered under ``query.email`` or ``None``."""
        with self._cursor("find account by email") as cur:
            cur.execute(
                """
                SELECT user_id, email, password_hash, first_name, last_name, created_at, updated_at
                FROM users
                WHERE email = %s
                """,
                (query.email,),
            )
            row = cur.fetchone()
        return self._map_record(row) if row else None

    def get_by_id(self, query: AccountById) -> Account | None:
        """Return the account with identifier ``query.account_id`` or ``None``."""
        with self._cursor("get account by id") as cur:
            cur.execute(
                """
                SELECT user_id, email, password_hash, first_name, last_name, created_at, updated_at
                FROM users
                WHERE user_id = %s
                """,
                (query.account_id,),
            )
            row = cur.fetchone()
        return self._map_record(row) if row else None

    def create_account(self, payload: NewAccount) -> Account:
        """Insert a new account and return it with its store-assigned identifier.

        Raises
        ------
        AccountExists
            When the unique email index rejects the insert.
        PersistenceError
            On any other store failure or timeout.
        """
        account_id = str(uuid.uuid4())
        try:
            with self._cursor("create account") as cur:
                cur.execute(
                    """
                    INSERT INTO users (user_id, email, password_hash, first_name, last_name, created_at, updated_at)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                    RETURNING user_id, email, password_hash, first_name, last_name, created_at, updated_at
                    """,
                    (
                        account_id,
                        payload.email,
                        payload.password_hash,
                        payload.first_name,
                        payload.last_name,
                        payload.created_at,
                        payload.updated_at,
                    ),
                )
                record = cur.fetchone()
                cur.connection.commit()
        except PersistenceError as exc:
            if isinstance(exc.__cause__, pg_errors.UniqueViolation):
                raise AccountExists("email taken by a concurrent signup") from exc.__cause__
            raise
        return self._map_record(record)

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw row into the domain ``Account`` dataclass."""
        return Account(
            account_id=row[0],
            email=row[1],
            password_hash=row[2],
            first_name=row[3],
            last_name=row[4],
            created_at=row[5],
            updated_at=row[6],
        )


class ReportRepository(_PoolStore):
    """Read-only access to reports owned by an account."""

    def list_by_owner(self, query: ReportsByOwner) -> list[Report]:
        """Return every report owned by ``query.user_id`` in insertion order."""
        with self._cursor("list reports") as cur:
            cur.execute(
                """
                SELECT report_id, user_id, created_at, document
                FROM reports
                WHERE user_id = %s
                ORDER BY created_at, report_id
                """,
                (query.user_id,),
            )
            rows = cur.fetchall()
        return [self._map_record(row) for row in rows]

    def count_by_owner(self, query: ReportsByOwner) -> int:
        """Return how many reports ``query.user_id`` owns."""
        with self._cursor("count reports") as cur:
            cur.execute("SELECT COUNT(*) FROM reports WHERE user_id = %s", (query.user_id,))
            row = cur.fetchone()
        return int(row[0]) if row else 0

    def _map_record(self, row: tuple) -> Report:
        document: dict[str, Any] = row[3] or {}
        return Report(report_id=row[0], user_id=row[1], created_at=row[2], document=document)
