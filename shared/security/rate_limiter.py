from slowapi import Limiter
from slowapi.util import get_remote_address

from shared.config import settings

# Credential endpoints are throttled per client IP
# (handles proxies if X-Forwarded-For is set correctly by Uvicorn)
limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
