"""Authentication utilities and dependencies.

Accounts live in the external auth service; this module only verifies
the bearer tokens it issues.
"""

import typing as t
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from smartshelf.core.config import SETTINGS
from smartshelf.schemas.auth import TokenData

HTTP_BEARER: HTTPBearer = HTTPBearer(auto_error=False)


def create_access_token(
    user_id: str,
    email: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token shaped like the auth service's tokens.

    Args:
        user_id (str):
            The user id to place in the ``sub`` claim.
        email (str | None):
            Optional email claim.
        expires_delta (timedelta | None):
            Optional expiration time for the token.

    Returns:
        str: The encoded JWT token.
    """
    to_encode: t.Dict[str, t.Any] = {
        "sub": user_id,
        "exp": datetime.now(timezone.utc)
        + (expires_delta or timedelta(hours=1)),
    }
    if email is not None:
        to_encode["email"] = email
    if SETTINGS.jwt_audience is not None:
        to_encode["aud"] = SETTINGS.jwt_audience
    return str(
        jwt.encode(
            to_encode, SETTINGS.jwt_secret, algorithm=SETTINGS.jwt_algorithm
        )
    )


def decode_access_token(token: str) -> TokenData | None:
    """Extract claims from a JWT token.

    Args:
        token (str): The JWT token.

    Returns:
        TokenData | None: The claims if the token is valid, else None.
    """
    try:
        payload: t.Dict[str, t.Any] = jwt.decode(
            token,
            SETTINGS.jwt_secret,
            algorithms=[SETTINGS.jwt_algorithm],
            audience=SETTINGS.jwt_audience,
            options={"verify_aud": SETTINGS.jwt_audience is not None},
        )
    except JWTError:
        return None

    user_id: str | None = payload.get("sub")
    if not user_id:
        return None
    return TokenData(user_id=user_id, email=payload.get("email"))


async def get_current_user(
    credentials: t.Annotated[
        HTTPAuthorizationCredentials | None, Depends(HTTP_BEARER)
    ],
) -> TokenData:
    """Get the current authenticated user from the bearer token.

    Args:
        credentials (HTTPAuthorizationCredentials | None):
            The bearer credentials from the Authorization header.

    Returns:
        TokenData: The authenticated user.
    """
    user: TokenData | None = None
    if credentials is not None:
        user = decode_access_token(credentials.credentials)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user
