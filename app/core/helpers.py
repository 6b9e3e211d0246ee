"""
Helper functions for token handling.

Pass redemption tokens and transfer codes are handed to fans in the
clear exactly once; only their hash is stored.

Usage:
    from core.helpers import generate_token, hash_string

    token = generate_token(8)         # 16 hex chars
    token_hash = hash_string(token)   # sha256 hex digest
"""

from __future__ import annotations

import hashlib
import secrets


def generate_token(length: int = 32) -> str:
    """
    Generate a cryptographically secure random token.

    Args:
        length: Number of bytes (resulting string is 2x length in hex)

    Returns:
        Hexadecimal token string
    """
    return secrets.token_hex(length)


def hash_string(value: str, algorithm: str = "sha256") -> str:
    """
    Hash a string using the specified algorithm.

    Args:
        value: String to hash
        algorithm: Hash algorithm (sha256, sha512, ...)

    Returns:
        Hexadecimal hash string
    """
    hasher = hashlib.new(algorithm)
    hasher.update(value.encode("utf-8"))
    return hasher.hexdigest()
