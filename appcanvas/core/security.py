"""
Bearer token verification.

Tokens are HS256 JWTs issued by the identity service; this service only
verifies them. ``sub`` carries the user id.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger

from appcanvas.config import settings


bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated principal resolved from a bearer token"""
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


def create_access_token(
    user_id: str,
    name: Optional[str] = None,
    email: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign a token for ``user_id`` (tooling and tests)."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.jwt_token_expire_minutes)
    )
    payload = {"sub": user_id, "exp": expire}
    if name:
        payload["name"] = name
    if email:
        payload["email"] = email
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> CurrentUser:
    """
    Verify ``token`` and return its principal.

    Raises:
        jwt.InvalidTokenError: bad signature, expired, or missing subject
    """
    payload = jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
    )
    user_id = payload.get("sub") or payload.get("userId")
    if not user_id:
        raise jwt.InvalidTokenError("Token missing subject")
    return CurrentUser(
        id=str(user_id),
        name=payload.get("name"),
        email=payload.get("email"),
    )


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": "unauthorized", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> CurrentUser:
    """Require a valid bearer token."""
    if credentials is None:
        raise _unauthorized("Access token required")

    try:
        return decode_access_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected bearer token: {e}")
        raise _unauthorized("Invalid token")


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[CurrentUser]:
    """Resolve the caller if a valid token is present, else None."""
    if credentials is None:
        return None

    try:
        return decode_access_token(credentials.credentials)
    except jwt.InvalidTokenError:
        return None
