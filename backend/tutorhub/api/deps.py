"""
Request dependencies: database session, authenticated user, admin gate.

Login lives in the accounts service. This API only verifies the JWT it
issues (`sub` = user id) and loads the user row, so the role checked by
`require_admin` is always the stored one, never a token claim.
"""

from typing import Annotated

from fastapi import Cookie, Depends, Header, HTTPException, status
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from tutorhub.config import get_settings
from tutorhub.db.models import User
from tutorhub.db.session import get_db

settings = get_settings()

AUTH_COOKIE = "access_token"


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# =============================================================================
# TOKENS
# =============================================================================


def decode_access_token(token: str) -> int | None:
    """User id carried by a valid token, None for a bad or expired one."""
    try:
        claims = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        return int(claims["sub"])
    except (JWTError, KeyError, TypeError, ValueError):
        return None


async def get_token_from_request(
    authorization: Annotated[str | None, Header()] = None,
    access_token: Annotated[str | None, Cookie(alias=AUTH_COOKIE)] = None,
) -> str:
    """The session cookie wins over an `Authorization: Bearer` header."""
    if access_token:
        return access_token
    if authorization:
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
    raise _unauthorized("Not authenticated")


# =============================================================================
# USERS
# =============================================================================


async def get_current_user(
    token: Annotated[str, Depends(get_token_from_request)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    user_id = decode_access_token(token)
    user = await db.get(User, user_id) if user_id is not None else None
    if user is None:
        raise _unauthorized("Could not validate credentials")
    return user


async def require_admin(user: Annotated[User, Depends(get_current_user)]) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="insufficient role")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_admin)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
