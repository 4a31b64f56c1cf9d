"""
Nonce helpers for Sign in with Apple.

The authorization request carries only the SHA-256 digest of a random
nonce; the raw nonce is kept and presented to the identity backend with the
returned token, which checks that the token's nonce claim matches it.
"""

import hashlib
import secrets
from dataclasses import dataclass


NONCE_CHARSET = "0123456789ABCDEFGHIJKLMNOPQRSTUVXYZabcdefghijklmnopqrstuvwxyz-._"
NONCE_LENGTH = 32


def generate_nonce(length: int = NONCE_LENGTH) -> str:
    """Return a cryptographically random nonce drawn from NONCE_CHARSET."""
    if length <= 0:
        raise ValueError("nonce length must be positive")
    return "".join(secrets.choice(NONCE_CHARSET) for _ in range(length))


def sha256_hex(value: str) -> str:
    """Lowercase hex SHA-256 digest of the UTF-8 encoded value."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class NonceChallenge:
    """A raw nonce and the digest sent in its place."""

    raw: str
    hashed: str

    @classmethod
    def create(cls, length: int = NONCE_LENGTH) -> "NonceChallenge":
        raw = generate_nonce(length)
        return cls(raw=raw, hashed=sha256_hex(raw))

    def matches(self, hashed: object) -> bool:
        """Constant-time check; non-string and non-ASCII claims never match."""
        if not isinstance(hashed, str) or not hashed.isascii():
            return False
        return secrets.compare_digest(self.hashed.encode("ascii"), hashed.encode("ascii"))
