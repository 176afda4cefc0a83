"""
Feedback token codec: mint a secret and derive the digest that gets stored
"""
import hashlib
import secrets

TOKEN_BYTES = 32  # 256 bits -> 64 hex characters


def generate_token() -> str:
    """Return a new hex-encoded secret from the OS CSPRNG"""
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(secret: str) -> str:
    """One-way digest of a token secret (unsalted SHA-256, hex)"""
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()
