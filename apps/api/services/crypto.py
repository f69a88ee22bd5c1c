"""
Fernet encryption for refresh tokens stored on the user row.
"""

import base64
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from config import settings

_REFRESH_TOKEN_SALT = b"vidtube_refresh_token_salt"


def _fernet_key(secret: str) -> bytes:
    # Fernet wants 32 raw bytes; anything else is stretched with PBKDF2.
    if len(secret) == 32:
        return base64.urlsafe_b64encode(secret.encode())
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=_REFRESH_TOKEN_SALT,
        iterations=100000,
    )
    return base64.urlsafe_b64encode(kdf.derive(secret.encode()))


def _get_fernet() -> Fernet:
    return Fernet(_fernet_key(settings.ENCRYPTION_KEY))


def encrypt_token(token: str) -> str:
    return _get_fernet().encrypt(token.encode()).decode()


def decrypt_token(encrypted_token: str) -> Optional[str]:
    """Return the plain token, or None if it was sealed with another key or is garbage."""
    try:
        return _get_fernet().decrypt(encrypted_token.encode()).decode()
    except InvalidToken:
        return None
