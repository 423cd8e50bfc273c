# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Central security module.  Password hashing lives here; no other module
should touch raw crypto directly.

Responsibilities
----------------
1. Password hashing / verification          (passlib pbkdf2_sha256)
2. Opaque token generation                  (secrets)
"""

import secrets

from passlib.hash import pbkdf2_sha256 as _pbkdf2  # pure Python, no binary deps

from core.config import settings

# ---------------------------------------------------------------------------
# 1.  pbkdf2_sha256 – password hashing
# ---------------------------------------------------------------------------
# passlib embeds the per-hash random salt and the round count in the hash
# string, so a stored hash stays verifiable after the configured round count
# changes.  Default is 600 000 rounds; tests lower it via PASSWORD_HASH_ROUNDS.
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """
    Hash a plaintext password with PBKDF2-SHA256.

    Returns the full passlib hash string, e.g. ``"$pbkdf2-sha256$600000$..."``.
    Two calls with the same input return different strings (fresh salt).
    """
    if not isinstance(plain, str) or not plain:
        raise ValueError("password must be a non-empty string")
    return _pbkdf2.using(rounds=settings.password_hash_rounds).hash(plain)


def verify_password(plain: str, stored_hash: str) -> bool:
    """
    Constant-time verification of a plaintext password against a
    pbkdf2_sha256 hash produced by :func:`hash_password`.

    A missing or malformed stored hash verifies as ``False``.
    """
    if not plain or not stored_hash:
        return False
    try:
        return _pbkdf2.verify(plain, stored_hash)
    except ValueError:
        # not a pbkdf2_sha256 hash string
        return False


# ---------------------------------------------------------------------------
# 2.  Opaque tokens
# ---------------------------------------------------------------------------


def generate_token(nbytes: int = 48) -> str:
    """URL-safe random token, used for refresh and verification tokens."""
    return secrets.token_urlsafe(nbytes)
