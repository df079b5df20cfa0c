"""Bearer-token session dependency for protected routes."""

from __future__ import annotations

import logging

from fastapi import Header, Request

from ..errors import TokenError, Unauthenticated
from ..security.tokens import TokenService
from .metrics import AUTH_EVENTS

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise Unauthenticated("missing authorization header")
    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != BEARER_SCHEME or not token:
        raise Unauthenticated("authorization header is not a bearer token")
    return token


def require_session(
    request: Request,
    authorization: str | None = Header(default=None),
) -> str:
    """Validate the bearer token and attach the resolved user id to ``request.state``."""
    tokens: TokenService = request.app.state.token_service
    try:
        user_id = tokens.validate(extract_bearer_token(authorization))
    except Unauthenticated as exc:
        AUTH_EVENTS.labels(event="session", outcome="missing").inc()
        logger.info("rejected request to %s: %s", request.url.path, exc.detail)
        raise
    except TokenError as exc:
        AUTH_EVENTS.labels(event="session", outcome=type(exc).__name__).inc()
        logger.info("rejected request to %s: %s (%s)", request.url.path, type(exc).__name__, exc)
        raise Unauthenticated(type(exc).__name__) from exc

    request.state.user_id = user_id
    return user_id
