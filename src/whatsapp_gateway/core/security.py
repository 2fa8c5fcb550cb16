import logging
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
from cryptography.fernet import Fernet, InvalidToken
from jose import JWTError, jwt

from whatsapp_gateway.core.settings import get_settings

logger = logging.getLogger(__name__)


def generate_client_secret() -> str:
    """Generate a random client secret (shown once, stored hashed)."""
    return secrets.token_urlsafe(32)


def hash_secret(secret: str) -> str:
    """Generate a bcrypt hash for a client secret."""
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(secret.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_secret(plain_secret: str, hashed_secret: str | None) -> bool:
    """Verify a client secret against a bcrypt hash."""
    if not hashed_secret:
        return False
    return bcrypt.checkpw(plain_secret.encode("utf-8"), hashed_secret.encode("utf-8"))


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    settings = get_settings()
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def encrypt_credential(value: str, encryption_key: str | None = None) -> str:
    """
    Encrypt a provider credential for storage.

    Without an encryption key the value is stored as-is (development).
    """
    key = encryption_key or get_settings().WHATSAPP_ENCRYPTION_KEY
    if not key:
        return value
    return Fernet(key.encode()).encrypt(value.encode()).decode()


def decrypt_credential(value: str | None, encryption_key: str | None = None) -> str | None:
    """
    Decrypt a stored provider credential.

    Returns None if the value cannot be decrypted with the configured key.
    """
    if not value:
        return None

    key = encryption_key or get_settings().WHATSAPP_ENCRYPTION_KEY
    if not key:
        return value

    try:
        return Fernet(key.encode()).decrypt(value.encode()).decode()
    except InvalidToken:
        logger.error("Failed to decrypt stored credential")
        return None
