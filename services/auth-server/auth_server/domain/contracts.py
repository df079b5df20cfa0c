"""Domain-level request contracts and typed store queries."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class SignupInput:
    """Validated inputs required to register a new account."""

    email: str
    password: str
    first_name: str
    last_name: str


@dataclass(slots=True)
class NewAccount:
    """Fields persisted for a freshly registered account; the store assigns the id."""

    email: str
    password_hash: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime


@dataclass(slots=True, frozen=True)
class AccountByEmail:
    email: str


@dataclass(slots=True, frozen=True)
class AccountById:
    account_id: str


@dataclass(slots=True, frozen=True)
class ReportsByOwner:
    user_id: str
