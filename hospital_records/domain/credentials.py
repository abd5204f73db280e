"""Password hashing for user accounts.

Passwords are stored as a plain SHA-256 hex digest of their UTF-8 bytes.
There is no per-user salt and no key stretching, so equal passwords produce
equal hashes. Login only ever compares digests.
"""

import hashlib
import hmac
from typing import Optional


def hash_password(plain: str) -> str:
    """Return the lowercase hex SHA-256 digest of ``plain``."""
    return hashlib.sha256(plain.encode("utf-8")).hexdigest()


def verify_password(stored_hash: Optional[str], candidate: Optional[str]) -> bool:
    """Check ``candidate`` against a digest produced by :func:`hash_password`."""
    if not stored_hash or candidate is None:
        return False
    return hmac.compare_digest(stored_hash, hash_password(candidate))
