from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(slots=True)
class Account:
    """Aggregate root for a user identity and its credential digest."""

    account_id: str
    email: str
    password_hash: str
    first_name: str
    last_name: str
    created_at: datetime
    updated_at: datetime

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(slots=True)
class Report:
    """Scan report owned by an account; the document body is opaque here."""

    report_id: str
    user_id: str
    created_at: datetime
    document: dict[str, Any] = field(default_factory=dict)
