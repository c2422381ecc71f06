from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from shared.config import settings

ALGORITHM = "HS256"


def create_session_token(username: str, expires_delta: timedelta = None) -> str:
    """Creates the signed admin session token with a UTC expiration."""
    if expires_delta is None:
        expires_delta = timedelta(seconds=settings.SESSION_MAX_AGE_SECONDS)

    to_encode = {
        "sub": username,
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    return jwt.encode(to_encode, settings.SESSION_SECRET_KEY, algorithm=ALGORITHM)


def verify_session_token(token: str) -> dict | None:
    """Decodes and verifies the session token. Returns payload if valid, None if invalid/expired."""
    try:
        return jwt.decode(token, settings.SESSION_SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
