"""
Integration API token helpers.

Tokens are random url-safe strings with a recognizable prefix. Only the
SHA-256 hash is stored; the plaintext is shown once, at creation.
"""

import hashlib
import secrets

TOKEN_PREFIX = "pos_"
TOKEN_BYTES = 32
# Characters kept in clear to identify a token in listings
DISPLAY_PREFIX_LENGTH = 12


def generate_api_token() -> str:
    """Generate a new cryptographically secure API token."""
    return TOKEN_PREFIX + secrets.token_urlsafe(TOKEN_BYTES)


def hash_api_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def display_prefix(token: str) -> str:
    return token[:DISPLAY_PREFIX_LENGTH]
