"""
Authentication boundary.

Token verification happens upstream (the auth gateway); by the time a
request reaches this service the caller's id is carried in the X-User-Id
header. Routers depend on get_current_user_id and never read the header
themselves, so tests can override the dependency.
"""

from typing import Optional
from fastapi import Header


class AuthError(Exception):
    """Raised when a request arrives without a usable user id."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> int:
    """FastAPI dependency that returns the authenticated user's id."""
    if not x_user_id:
        raise AuthError("Access denied. No token provided.")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise AuthError("Invalid token: User ID not found")
    if user_id <= 0:
        raise AuthError("Invalid token: User ID not found")
    return user_id
