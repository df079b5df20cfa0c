"""Read paths for an authenticated user's own profile and reports."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from .account import Account, Report
from .contracts import AccountById, ReportsByOwner
from ..errors import AccountNotFound, InvalidIdentifier, PersistenceError

logger = logging.getLogger(__name__)


class AccountLookup(Protocol):
    def get_by_id(self, query: AccountById) -> Account | None: ...


class ReportStore(Protocol):
    def list_by_owner(self, query: ReportsByOwner) -> list[Report]: ...

    def count_by_owner(self, query: ReportsByOwner) -> int: ...


@dataclass(slots=True)
class Profile:
    """Account fields merged with the derived report count."""

    user_id: str
    email: str
    first_name: str
    last_name: str
    username: str
    attacks_count: int
    created_at: datetime


class ProfileService:
    def __init__(self, accounts: AccountLookup, reports: ReportStore) -> None:
        self._accounts = accounts
        self._reports = reports

    def get_profile(self, user_id: str) -> Profile:
        """Return the profile for ``user_id``.

        A failure to count reports is logged and reported as zero so the
        profile stays available while the report store is degraded.
        """
        account_id = _parse_identifier(user_id)
        account = self._accounts.get_by_id(AccountById(account_id=account_id))
        if account is None:
            raise AccountNotFound(f"token subject {account_id} has no account")

        try:
            attacks_count = self._reports.count_by_owner(ReportsByOwner(user_id=account_id))
        except PersistenceError as exc:
            logger.error("failed to count reports for %s: %s", account_id, exc.detail)
            attacks_count = 0

        return Profile(
            user_id=account.account_id,
            email=account.email,
            first_name=account.first_name,
            last_name=account.last_name,
            username=account.display_name,
            attacks_count=attacks_count,
            created_at=account.created_at,
        )

    def list_reports(self, user_id: str) -> list[Report]:
        """Return every report owned by ``user_id``; an empty list is a normal result."""
        account_id = _parse_identifier(user_id)
        return self._reports.list_by_owner(ReportsByOwner(user_id=account_id))


def _parse_identifier(user_id: str) -> str:
    try:
        return str(uuid.UUID(user_id))
    except (ValueError, TypeError, AttributeError) as exc:
        raise InvalidIdentifier(f"malformed identifier {user_id!r}") from exc
