from .jwt_handler import create_session_token, verify_session_token
from .setup_key import verify_setup_key
from .dependencies import get_optional_admin, read_admin_session, require_admin_session
from .rate_limiter import limiter

__all__ = [
    "create_session_token",
    "verify_session_token",
    "verify_setup_key",
    "get_optional_admin",
    "read_admin_session",
    "require_admin_session",
    "limiter",
]
