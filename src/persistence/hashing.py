"""Hashing and signing helpers for persistence."""

from __future__ import annotations

import hashlib
import hmac


def sha256_bytes(data: bytes) -> str:
    """Return hex sha256 of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def hash_token(token: str) -> str:
    """Return the stored form of an API token."""
    return sha256_bytes(token.encode("utf-8"))


def sign_payload(secret: str, payload: str) -> str:
    """Return hex HMAC-SHA256 of payload under secret."""
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def signatures_match(expected: str, provided: str) -> bool:
    # compare_digest rejects non-ASCII str, so compare the encoded forms
    return hmac.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


__all__ = ["hash_token", "sha256_bytes", "sign_payload", "signatures_match"]
