from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyCookie

from shared.config import settings

from .jwt_handler import verify_session_token

# Reads the admin_session cookie set at login
session_cookie = APIKeyCookie(name=settings.SESSION_COOKIE_NAME, auto_error=False)


def read_admin_session(token: str | None) -> str | None:
    """Returns the admin username carried by a session token, if it is valid."""
    if not token:
        return None
    payload = verify_session_token(token)
    if payload is None:
        return None
    return payload.get("sub")


async def get_optional_admin(token: str | None = Depends(session_cookie)) -> str | None:
    return read_admin_session(token)


async def require_admin_session(
    request: Request, token: str | None = Depends(session_cookie)
) -> str:
    """Dependency guarding every admin endpoint. Returns the admin username."""
    username = read_admin_session(token)
    if username is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    # Store in request state for downstream use (like logging)
    request.state.admin_username = username
    return username
