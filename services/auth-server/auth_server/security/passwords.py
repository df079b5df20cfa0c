"""bcrypt-backed password hashing."""

from __future__ import annotations

import logging

import bcrypt

from ..errors import HashingError

logger = logging.getLogger(__name__)

# bcrypt ignores everything past this many bytes of input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted, adaptive one-way hashing of account passwords.

    The salt and cost factor are embedded in the produced digest, so a digest
    is all that needs to be stored to verify a password later.
    """

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds
        # Checked against when no stored digest exists, so the miss costs a full verify.
        self.dummy_digest = bcrypt.hashpw(b"", bcrypt.gensalt(rounds=rounds)).decode("utf-8")

    def hash(self, plaintext: str) -> str:
        """Return the bcrypt digest for ``plaintext``.

        Raises
        ------
        HashingError
            When salt generation or hashing fails inside bcrypt.
        """
        try:
            salt = bcrypt.gensalt(rounds=self._rounds)
            digest = bcrypt.hashpw(plaintext.encode("utf-8"), salt)
        except (ValueError, TypeError, OSError) as exc:
            logger.error("password hashing failed: %s", type(exc).__name__)
            raise HashingError(f"bcrypt failure: {type(exc).__name__}") from exc
        return digest.decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """Return ``True`` when ``plaintext`` matches ``digest``; never raises on mismatch."""
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("utf-8"))
        except (ValueError, TypeError):
            logger.warning("stored password digest could not be checked")
            return False
