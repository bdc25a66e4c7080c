"""Password hashing utilities.

Learn: Uses bcrypt for password hashing. bcrypt salts automatically and
its work factor (AUTHEX_PASSWORD_HASH_ROUNDS, default 12) makes each hash
take ~100ms on modern hardware. Tests lower it to keep the suite fast.
"""

import bcrypt

from authex.config import settings


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Learn: Produces hashes starting with "$2b$". Passwords are truncated
    to 72 bytes (bcrypt's limit).
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=settings.password_hash_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its bcrypt hash.

    Malformed hashes and non-string input verify as False.
    """
    if not isinstance(password, str) or not isinstance(password_hash, str):
        return False
    try:
        pw_bytes = password.encode("utf-8")[:72]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False

