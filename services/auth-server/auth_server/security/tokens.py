"""Issuing and validating signed session tokens."""

from __future__ import annotations

import time
from typing import Any, Callable

import jwt

from ..errors import TokenExpired, TokenInvalid, TokenIssueError, TokenSignatureMismatch


class TokenService:
    """Stateless HS256 session tokens bound to an account identifier.

    Parameters
    ----------
    secret:
        Process-wide signing key loaded from configuration at startup.
    issuer:
        Value written to and required in the ``iss`` claim.
    ttl_seconds:
        Lifetime of every issued token.
    clock:
        Source of the current UNIX time used when stamping ``iat``/``exp``.
    """

    def __init__(
        self,
        secret: str,
        *,
        issuer: str,
        ttl_seconds: int,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._secret = secret
        self._issuer = issuer
        self._algorithm = algorithm
        self._clock = clock
        self.ttl_seconds = ttl_seconds

    def issue(self, user_id: str) -> str:
        """Create a signed token embedding ``user_id`` and an absolute expiry.

        Raises
        ------
        TokenIssueError
            When the payload cannot be signed with the configured key.
        """
        now = int(self._clock())
        payload: dict[str, Any] = {
            "iss": self._issuer,
            "sub": user_id,
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        try:
            return jwt.encode(payload, self._secret, algorithm=self._algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise TokenIssueError(f"signing failed: {type(exc).__name__}") from exc

    def validate(self, token: str) -> str:
        """Verify ``token`` and return the account identifier it carries.

        Raises
        ------
        TokenSignatureMismatch
            The signature was not produced by the configured key.
        TokenExpired
            The token is authentic but its ``exp`` has passed.
        TokenInvalid
            The token is malformed, has the wrong issuer or lacks claims.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.InvalidSignatureError as exc:
            raise TokenSignatureMismatch(str(exc)) from exc
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpired(str(exc)) from exc
        except jwt.PyJWTError as exc:
            raise TokenInvalid(str(exc)) from exc

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise TokenInvalid("token subject is empty")
        return subject
