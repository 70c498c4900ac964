"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt generates a fresh
random salt per call and embeds it (with the work factor) in its output,
so the "$2b$..." string is all that needs storing. Hashing the same
password twice gives two different strings; both verify.
"""

import functools

import bcrypt

from plannora.config import settings

# bcrypt ignores everything past 72 bytes; truncate explicitly so newer
# bcrypt releases (which raise on long input) behave the same.
_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password with bcrypt.

    Errors (e.g. no entropy source) propagate: the caller must abort the
    write rather than store anything else.
    """
    pw_bytes = password.encode("utf-8")[:_MAX_BYTES]
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time check of a password against a stored bcrypt hash.

    A malformed stored hash verifies as False rather than raising.
    """
    try:
        pw_bytes = password.encode("utf-8")[:_MAX_BYTES]
        hash_bytes = password_hash.encode("utf-8")
        return bcrypt.checkpw(pw_bytes, hash_bytes)
    except (ValueError, TypeError):
        return False


@functools.lru_cache(maxsize=1)
def dummy_hash() -> str:
    """A throwaway hash at the configured work factor.

    Logins for unknown emails verify against this so they cost the same
    bcrypt time as logins with a wrong password.
    """
    return hash_password("plannora-timing-equalizer")
