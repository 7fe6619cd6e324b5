"""Password hashing and field-level encryption."""

from __future__ import annotations

import base64
import hashlib
import logging
from functools import lru_cache
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from passlib.context import CryptContext

from hrms.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ── Passwords ───────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time bcrypt check; malformed hashes count as a mismatch."""
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        logger.warning("Stored password hash could not be parsed")
        return False


# ── Field encryption (SSN) ──────────────────────────────────────────

@lru_cache(maxsize=1)
def _cipher() -> Fernet:
    key = settings.ENCRYPTION_KEY
    if not key:
        # Stable fallback so dev/test databases stay readable across restarts
        key = base64.urlsafe_b64encode(
            hashlib.sha256(settings.JWT_SECRET.encode()).digest()
        ).decode()
    return Fernet(key)


def encrypt_value(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return _cipher().encrypt(value.encode()).decode()


def decrypt_value(token: Optional[str]) -> Optional[str]:
    """Decrypt a stored value. Raises ``ValueError`` when the token is corrupt."""
    if not token:
        return None
    try:
        return _cipher().decrypt(token.encode()).decode()
    except InvalidToken as exc:
        raise ValueError("Encrypted value could not be decrypted") from exc
