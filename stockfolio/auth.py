"""Bearer-token authentication for user endpoints."""

import os
from datetime import datetime, timedelta, UTC

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from stockfolio.database import get_session
from stockfolio.models import User
from stockfolio.services import users as user_service

JWT_SECRET = os.getenv("JWT_SECRET", "stockfolio-dev-secret-change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_SECONDS = int(os.getenv("ACCESS_TOKEN_EXPIRE_SECONDS", "3600"))

# Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(user_id: str, expires_in: int | None = None) -> str:
    """Issue a signed token for a user.

    Args:
        user_id: Stored in the ``sub`` claim
        expires_in: Lifetime in seconds (defaults to ACCESS_TOKEN_EXPIRE_SECONDS)
    """
    lifetime = ACCESS_TOKEN_EXPIRE_SECONDS if expires_in is None else expires_in
    expire = datetime.now(UTC) + timedelta(seconds=lifetime)
    return jwt.encode({"sub": user_id, "exp": expire}, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> str | None:
    """Return the user ID from a valid token, or None."""
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None
    return payload.get("sub")


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Validate the bearer token and return the user it belongs to.

    Raises:
        HTTPException: If the token is missing, invalid, expired or the user
            no longer exists
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = decode_access_token(credentials.credentials)
    user = await user_service.get_user(session, user_id) if user_id else None

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user
