"""
JWT token utilities for authentication.

Access tokens are issued by the hosted auth provider and signed with the
project's shared JWT secret. This module verifies them, and can mint
compatible tokens for local development and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from backend.app.core.config import settings


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token in the hosted provider's format.

    Args:
        data: Data payload to encode in the token (should include: sub, email)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "6f1c0a52-3f0e-4c1e-9d7e-0c2b9b7f1a10",
            "email": "dispatch@example.com",
            "aud": "authenticated",
            "exp": 1234567890
        }
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.setdefault("aud", settings.jwt_audience)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)

    return encoded_jwt


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.

    Checks signature, expiry and audience.

    Args:
        token: JWT token string to decode

    Returns:
        Decoded token payload if valid (includes: sub, email, aud, exp), None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
        return payload
    except JWTError:
        return None
