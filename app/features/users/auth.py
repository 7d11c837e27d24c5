"""
Bearer token issuing and verification.

Tokens are HS256 JWTs signed with JWT_SECRET. They carry the holder's
effective permission names as claims, so authorization checks never touch the
database; a token reflects the permissions resolved when it was issued.
"""
import uuid
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

import jwt
from fastapi import HTTPException, status

from app.core import config


ALGORITHM = "HS256"


def create_access_token(
    user_id: int,
    username: str,
    permissions: Iterable[str],
    expires_minutes: Optional[int] = None,
) -> str:
    """
    Build a signed access token for a user.

    Args:
        user_id: Subject of the token
        username: Stored in the "name" claim
        permissions: Permission names granted to the holder
        expires_minutes: Lifetime, defaults to JWT_EXPIRATION_MINUTES

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    lifetime = timedelta(minutes=expires_minutes if expires_minutes is not None else config.JWT_EXPIRATION_MINUTES)
    payload = {
        "sub": str(user_id),
        "name": username,
        "jti": str(uuid.uuid4()),
        "permissions": sorted(set(permissions)),
        "iss": config.JWT_ISSUER,
        "aud": config.JWT_AUDIENCE,
        "iat": now,
        "exp": now + lifetime,
    }
    return jwt.encode(payload, config.JWT_SECRET, algorithm=ALGORITHM)


def verify_jwt_token(token: str) -> dict:
    """
    Verify signature, issuer, audience and expiry of a token and return its payload.

    Raises:
        HTTPException: 401 if the token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            config.JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=config.JWT_AUDIENCE,
            issuer=config.JWT_ISSUER,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
