"""Password hashing, one-time passwords and access tokens."""

import secrets
from datetime import datetime, timedelta
from typing import Any

import jwt
from jwt import PyJWTError
from passlib.context import CryptContext

from .config import settings
from .exceptions import AuthenticationError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plain password (also used for OTP codes)."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """Check a plain password against a stored hash."""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def generate_otp(length: int | None = None) -> str:
    """Generate a numeric one-time password."""
    length = length or settings.otp_length
    return "".join(secrets.choice("0123456789") for _ in range(length))


def create_access_token(
    subject: str,
    email: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed bearer token.

    Args:
        subject: User ID stored in the ``sub`` claim
        email: User email
        role: User role (USER, ADMIN or GUIDE)
        expires_delta: Token lifetime, defaults to the configured value

    Returns:
        Encoded JWT
    """
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": subject,
        "email": email,
        "role": role,
        "exp": expire,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and validate a bearer token.

    Raises:
        AuthenticationError: If the token is malformed, expired or has no subject
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError(detail="Token has expired") from e
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {e}") from e

    if not payload.get("sub"):
        raise AuthenticationError(detail="Invalid token payload")

    return payload
