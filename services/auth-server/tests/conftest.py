from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from auth_server.api import routes
from auth_server.api.errors import register_error_handlers
from auth_server.domain.account import Account, Report
from auth_server.domain.contracts import AccountByEmail, AccountById, NewAccount, ReportsByOwner
from auth_server.domain.profile import ProfileService
from auth_server.domain.service import IdentityService
from auth_server.errors import AccountExists, PersistenceError
from auth_server.security.passwords import PasswordHasher
from auth_server.security.tokens import TokenService

TEST_SECRET = "test-signing-key-with-at-least-32-bytes!"
TEST_ISSUER = "vulnora.auth.test"


class FakeAccountRepository:
    """In-memory account store enforcing the unique email index."""

    def __init__(self) -> None:
        self.accounts: dict[str, Account] = {}
        self.fail_with: Exception | None = None

    def find_by_email(self, query: AccountByEmail) -> Account | None:
        self._maybe_fail()
        return next((a for a in self.accounts.values() if a.email == query.email), None)

    def get_by_id(self, query: AccountById) -> Account | None:
        self._maybe_fail()
        return self.accounts.get(query.account_id)

    def create_account(self, payload: NewAccount) -> Account:
        self._maybe_fail()
        if any(a.email == payload.email for a in self.accounts.values()):
            raise AccountExists("unique index violated")
        account = Account(
            account_id=str(uuid.uuid4()),
            email=payload.email,
            password_hash=payload.password_hash,
            first_name=payload.first_name,
            last_name=payload.last_name,
            created_at=payload.created_at,
            updated_at=payload.updated_at,
        )
        self.accounts[account.account_id] = account
        return account

    def count_email(self, email: str) -> int:
        return sum(1 for a in self.accounts.values() if a.email == email)

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with


class FakeReportRepository:
    """In-memory report store preserving insertion order."""

    def __init__(self) -> None:
        self.reports: list[Report] = []
        self.count_error: PersistenceError | None = None
        self.list_error: PersistenceError | None = None

    def add(self, user_id: str, **document: Any) -> Report:
        report = Report(
            report_id=str(uuid.uuid4()),
            user_id=user_id,
            created_at=datetime.now(timezone.utc) + timedelta(microseconds=len(self.reports)),
            document=document,
        )
        self.reports.append(report)
        return report

    def list_by_owner(self, query: ReportsByOwner) -> list[Report]:
        if self.list_error is not None:
            raise self.list_error
        return [r for r in self.reports if r.user_id == query.user_id]

    def count_by_owner(self, query: ReportsByOwner) -> int:
        if self.count_error is not None:
            raise self.count_error
        return len(self.list_by_owner(query))


@pytest.fixture
def token_service() -> TokenService:
    return TokenService(TEST_SECRET, issuer=TEST_ISSUER, ttl_seconds=3600)


@pytest.fixture
def hasher() -> PasswordHasher:
    # Minimum bcrypt cost keeps the suite fast.
    return PasswordHasher(rounds=4)


@pytest.fixture
def account_repository() -> FakeAccountRepository:
    return FakeAccountRepository()


@pytest.fixture
def report_repository() -> FakeReportRepository:
    return FakeReportRepository()


@pytest.fixture
def identity_service(account_repository, hasher, token_service) -> IdentityService:
    return IdentityService(account_repository, hasher, token_service)


@pytest.fixture
def api_client(identity_service, token_service, account_repository, report_repository):
    """Provide a FastAPI test client wired to in-memory stores."""
    app = FastAPI()
    app.include_router(routes.router)
    register_error_handlers(app)
    app.state.token_service = token_service
    app.state.identity_service = identity_service
    app.state.profile_service = ProfileService(account_repository, report_repository)

    with TestClient(app) as client:
        yield client


@pytest.fixture
def make_token_service():
    """Build token services that differ from the app's in key, TTL or clock."""

    def factory(
        secret: str = TEST_SECRET,
        *,
        issuer: str = TEST_ISSUER,
        ttl_seconds: int = 3600,
        clock=None,
    ) -> TokenService:
        kwargs = {"clock": clock} if clock is not None else {}
        return TokenService(secret, issuer=issuer, ttl_seconds=ttl_seconds, **kwargs)

    return factory
