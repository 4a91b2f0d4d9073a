"""
Security utilities for token verification and credential encryption.

Access tokens are issued by Supabase Auth; this module only verifies them.
Doctor-supplied provider secrets (Twilio auth tokens) are encrypted before
storage using these utilities.
"""

import base64
from typing import Any, Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from jose import JWTError, jwt

from .config import settings


# =============================================================================
# JWT Verification
# =============================================================================

ALGORITHM = "HS256"


def decode_token(token: str) -> Optional[dict[str, Any]]:
    """
    Decode and verify a Supabase access token.

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        return jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=[ALGORITHM],
            audience=settings.supabase_jwt_audience,
        )
    except JWTError:
        return None


# =============================================================================
# Credential Encryption
# =============================================================================

def _get_fernet_key() -> bytes:
    """
    Derive a Fernet-compatible key from the configured encryption key.

    Returns:
        Fernet-compatible encryption key
    """
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=b"patientpathway_credentials_salt",
        iterations=100000,
    )
    return base64.urlsafe_b64encode(
        kdf.derive(settings.encryption_key.encode())
    )


_fernet = Fernet(_get_fernet_key())


def encrypt_secret(plaintext: Optional[str]) -> Optional[bytes]:
    """Encrypt a provider secret for storage. Empty values are stored as NULL."""
    if not plaintext:
        return None
    return _fernet.encrypt(plaintext.encode("utf-8"))


def decrypt_secret(ciphertext: Optional[bytes]) -> Optional[str]:
    """
    Decrypt a stored provider secret.

    Raises:
        ValueError: If the stored value cannot be decrypted
    """
    if not ciphertext:
        return None
    try:
        return _fernet.decrypt(ciphertext).decode("utf-8")
    except InvalidToken as e:
        raise ValueError("Failed to decrypt stored credential") from e


# =============================================================================
# Log Redaction
# =============================================================================

def mask_phone(phone: Optional[str]) -> str:
    """Return only the last four digits of a phone number for log output."""
    if not phone:
        return "<none>"
    return f"***{phone[-4:]}"
