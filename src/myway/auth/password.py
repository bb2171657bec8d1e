"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor comes from settings (12 in production, lower in tests);
at 12 a hash takes ~100ms on modern hardware.
"""

import functools

import bcrypt

# bcrypt only looks at the first 72 bytes; newer releases raise instead of truncating.
_MAX_BYTES = 72


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with bcrypt. Hashes start with "$2b$"."""
    pw_bytes = password.encode("utf-8")[:_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash. Malformed hashes never verify."""
    try:
        pw_bytes = password.encode("utf-8")[:_MAX_BYTES]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


@functools.lru_cache(maxsize=None)
def dummy_hash(rounds: int) -> str:
    """A throwaway hash at the configured cost.

    Sign-in checks against it when the email is unknown, so both failure
    paths spend the same bcrypt time.
    """
    return hash_password("myway-dummy-password", rounds=rounds)
