"""Password hashing.

Learn: The autouse fast_hashing fixture sets the bcrypt work factor to 4,
which shows up in the hash prefix.
"""

from authex.auth.password import hash_password, verify_password


def test_hash_is_bcrypt_with_configured_rounds():
    hashed = hash_password("password123")
    assert hashed.startswith("$2b$04$")
    assert hashed != hash_password("password123")  # salted


def test_verify_password():
    hashed = hash_password("password123")
    assert verify_password("password123", hashed) is True
    assert verify_password("password124", hashed) is False


def test_long_passwords_truncate_at_72_bytes():
    hashed = hash_password("x" * 72 + "tail")
    assert verify_password("x" * 72, hashed) is True


def test_malformed_hash_is_rejected():
    assert verify_password("password123", "not-a-bcrypt-hash") is False
    assert verify_password("password123", "") is False


def test_non_string_input_is_rejected():
    hashed = hash_password("password123")
    assert verify_password(None, hashed) is False
    assert verify_password("password123", None) is False
