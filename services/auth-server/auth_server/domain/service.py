"""Identity service orchestrating signup and login."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Protocol

from .account import Account
from .contracts import AccountByEmail, NewAccount, SignupInput
from ..errors import AccountExists, InvalidCredentials
from ..security.passwords import PasswordHasher
from ..security.tokens import TokenService

logger = logging.getLogger(__name__)


class AccountStore(Protocol):
    def find_by_email(self, query: AccountByEmail) -> Account | None: ...

    def create_account(self, payload: NewAccount) -> Account: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class AuthResult:
    """An authenticated account together with its freshly issued session token."""

    account: Account
    token: str


class IdentityService:
    """Account registration and credential checks backed by the account store."""

    def __init__(
        self,
        accounts: AccountStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Store the collaborators used to orchestrate persistence and token issuance."""
        self._accounts = accounts
        self._hasher = hasher
        self._tokens = tokens
        self._clock = clock

    def signup(self, payload: SignupInput) -> AuthResult:
        """Register a new account and sign the caller in.

        Raises ``AccountExists`` when the email is already registered, whether
        detected by the lookup or by the store's unique index on insert.
        ``HashingError``, ``PersistenceError`` and ``TokenIssueError`` propagate.
        """
        if self._accounts.find_by_email(AccountByEmail(email=payload.email)) is not None:
            raise AccountExists("email already registered")

        password_hash = self._hasher.hash(payload.password)
        now = self._clock()
        try:
            account = self._accounts.create_account(
                NewAccount(
                    email=payload.email,
                    password_hash=password_hash,
                    first_name=payload.first_name,
                    last_name=payload.last_name,
                    created_at=now,
                    updated_at=now,
                )
            )
        except AccountExists:
            logger.info("signup lost a concurrent race for the same email")
            raise

        token = self._tokens.issue(account.account_id)
        logger.info("account created", extra={"user_id": account.account_id})
        return AuthResult(account=account, token=token)

    def login(self, email: str, password: str) -> AuthResult:
        """Check credentials and issue a session token.

        Unknown email and wrong password both raise ``InvalidCredentials``.
        """
        account = self._accounts.find_by_email(AccountByEmail(email=email))
        if account is None:
            self._hasher.verify(password, self._hasher.dummy_digest)
            raise InvalidCredentials("no account for email")
        if not self._hasher.verify(password, account.password_hash):
            raise InvalidCredentials("password mismatch")

        token = self._tokens.issue(account.account_id)
        logger.info("login succeeded", extra={"user_id": account.account_id})
        return AuthResult(account=account, token=token)
