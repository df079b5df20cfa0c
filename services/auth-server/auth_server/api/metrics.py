from __future__ import annotations

from prometheus_client import Counter

AUTH_EVENTS = Counter(
    "auth_events_total",
    "Signup, login and session validation outcomes.",
    ["event", "outcome"],
)
