"""
Shared-Credential Login

A single username and a bcrypt password hash, both from configuration.
This is a gate, not an identity system.
"""

import bcrypt


def hash_password(password: str) -> str:
    """Hash a password for APP_PASSWORD_HASH."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_credentials(
    username: str,
    password: str,
    expected_username: str,
    expected_password_hash: str,
) -> bool:
    """
    Check a login attempt against the configured credential.

    Never raises: an unset or malformed hash simply fails the check.
    """
    if not expected_username or username != expected_username:
        return False
    if not expected_password_hash:
        return False

    try:
        return bcrypt.checkpw(
            password.encode("utf-8"),
            expected_password_hash.encode("utf-8"),
        )
    except ValueError:
        return False
