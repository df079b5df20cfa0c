"""Store adapter tests against a scripted stand-in for the psycopg pool."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone

import pytest
from psycopg import errors as pg_errors
from psycopg_pool import PoolTimeout

from auth_server.domain.contracts import AccountByEmail, AccountById, NewAccount, ReportsByOwner
from auth_server.errors import AccountExists, PersistenceError
from auth_server.repository import AccountRepository, ReportRepository

NOW = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class ScriptedCursor:
    def __init__(self, conn: "ScriptedConnection") -> None:
        self.connection = conn
        self._rows: list[tuple] = []

    def __enter__(self) -> "ScriptedCursor":
        return self

    def __exit__(self, *exc) -> None:
        return None

    def execute(self, query: str, params=None) -> None:
        self.connection.executed.append((" ".join(query.split()), params))
        for fragment, error in self.connection.failures.items():
            if fragment in query:
                raise error
        for fragment, rows in self.connection.results.items():
            if fragment in query:
                self._rows = list(rows)
                return
        self._rows = []

    def fetchone(self):
        return self._rows[0] if self._rows else None

    def fetchall(self):
        return list(self._rows)


class ScriptedConnection:
    def __init__(self) -> None:
        self.executed: list[tuple[str, object]] = []
        self.results: dict[str, list[tuple]] = {}
        self.failures: dict[str, Exception] = {}
        self.commits = 0

    def cursor(self, row_factory=None) -> ScriptedCursor:
        return ScriptedCursor(self)

    def commit(self) -> None:
        self.commits += 1


class ScriptedPool:
    def __init__(self) -> None:
        self.conn = ScriptedConnection()
        self.exhausted = False
        self.checkout_timeouts: list[float | None] = []

    @contextmanager
    def connection(self, timeout: float | None = None):
        self.checkout_timeouts.append(timeout)
        if self.exhausted:
            raise PoolTimeout(f"couldn't get a connection after {timeout} sec")
        yield self.conn


USER_ROW = ("2b0f3c1e-8a52-4c55-9a3c-7b2d2f7f6e10", "a@x.com", "$2b$04$digest", "A", "B", NOW, NOW)


@pytest.fixture
def pool() -> ScriptedPool:
    return ScriptedPool()


def test_lookup_by_email_maps_row(pool):
    pool.conn.results["FROM users"] = [USER_ROW]
    account = AccountRepository(pool, 25).find_by_email(AccountByEmail(email="a@x.com"))

    assert account.account_id == USER_ROW[0]
    assert account.display_name == "A B"
    assert pool.conn.executed[-1][1] == ("a@x.com",)


def test_lookup_without_row_returns_none(pool):
    repository = AccountRepository(pool, 25)

    assert repository.find_by_email(AccountByEmail(email="a@x.com")) is None
    assert repository.get_by_id(AccountById(account_id=USER_ROW[0])) is None


def test_every_call_is_bounded_by_the_store_timeout(pool):
    AccountRepository(pool, 25).get_by_id(AccountById(account_id=USER_ROW[0]))

    assert pool.checkout_timeouts == [25]
    statement, params = pool.conn.executed[0]
    assert "statement_timeout" in statement
    assert params == ("25000",)


def test_insert_rejected_by_unique_index_is_account_exists(pool):
    pool.conn.failures["INSERT INTO users"] = pg_errors.UniqueViolation("duplicate key value")
    payload = NewAccount("a@x.com", "$2b$04$digest", "A", "B", NOW, NOW)

    with pytest.raises(AccountExists):
        AccountRepository(pool, 25).create_account(payload)


def test_insert_returns_store_assigned_identifier(pool):
    pool.conn.results["INSERT INTO users"] = [USER_ROW]
    payload = NewAccount("a@x.com", "$2b$04$digest", "A", "B", NOW, NOW)

    account = AccountRepository(pool, 25).create_account(payload)

    assert account.account_id == USER_ROW[0]
    assert pool.conn.commits == 1


@pytest.mark.parametrize(
    "error",
    [pg_errors.QueryCanceled("canceling statement due to statement timeout"), pg_errors.OperationalError("gone")],
)
def test_store_failures_become_persistence_errors(pool, error):
    pool.conn.failures["FROM reports"] = error

    with pytest.raises(PersistenceError):
        ReportRepository(pool, 25).count_by_owner(ReportsByOwner(user_id="u"))


def test_pool_exhaustion_is_persistence_error(pool):
    pool.exhausted = True

    with pytest.raises(PersistenceError):
        AccountRepository(pool, 0.5).find_by_email(AccountByEmail(email="a@x.com"))


def test_reports_listing_and_count(pool):
    pool.conn.results["SELECT report_id"] = [
        ("r1", "u", NOW, {"target": "10.0.0.1"}),
        ("r2", "u", NOW, None),
    ]
    pool.conn.results["COUNT(*)"] = [(2,)]
    repository = ReportRepository(pool, 25)

    reports = repository.list_by_owner(ReportsByOwner(user_id="u"))

    assert [r.report_id for r in reports] == ["r1", "r2"]
    assert reports[0].document == {"target": "10.0.0.1"}
    assert reports[1].document == {}
    assert repository.count_by_owner(ReportsByOwner(user_id="u")) == 2


def test_reports_listing_without_rows_is_empty(pool):
    assert ReportRepository(pool, 25).list_by_owner(ReportsByOwner(user_id="u")) == []
