import secrets

from shared.config import settings


def verify_setup_key(provided_key: str | None) -> bool:
    """Checks the bootstrap key that allows creating extra admins, in constant time."""
    if not provided_key or not settings.INTERNAL_SETUP_KEY:
        return False
    return secrets.compare_digest(str(provided_key), str(settings.INTERNAL_SETUP_KEY))
