"""Pydantic schemas for authenticated sessions."""

from pydantic import BaseModel


class TokenData(BaseModel):
    """Claims extracted from an access token."""

    user_id: str
    email: str | None = None


class SignOutResult(BaseModel):
    """Result of the sign-out cleanup."""

    success: bool
    message: str
