"""
Bearer token authentication.

Accounts live in the hosted auth provider; this service only verifies the
provider's HS256 JWTs and reads the account id from the ``sub`` claim.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from famcare.domain.imports.errors import AuthenticationError
from .config import settings

ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 24 hours

security = HTTPBearer(auto_error=False)


def _utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


def create_access_token(account_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a token shaped like the provider's; used by local tooling and tests."""
    expire = _utcnow() + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {"sub": account_id, "aud": settings.jwt_audience, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_account_id(token: str) -> str:
    """Return the account id carried by ``token``; AuthenticationError when it cannot be trusted."""
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as e:
        raise AuthenticationError(f"Invalid token: {e}") from e

    account_id = payload.get("sub")
    if not account_id:
        raise AuthenticationError("Token has no account id")
    return account_id


def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> str:
    """FastAPI dependency resolving the authenticated account id."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User is not authenticated.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_account_id(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
