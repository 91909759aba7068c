"""Rate limits for public intake, token links and login."""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import settings

logger = logging.getLogger(__name__)

AUTH_LIMIT = f"{settings.RATE_LIMIT_AUTH}/minute"
PUBLIC_LIMIT = f"{settings.RATE_LIMIT_PUBLIC}/minute"


def _default_limits() -> list[str]:
    if settings.TESTING or settings.RATE_LIMIT_API <= 0:
        return []
    return [f"{settings.RATE_LIMIT_API}/minute"]


def _storage_uri() -> str:
    """Redis when it answers a ping, process memory otherwise."""
    try:
        import redis

        redis.from_url(settings.REDIS_URL, socket_connect_timeout=1).ping()
        return settings.REDIS_URL
    except Exception as e:
        logger.warning("Redis unavailable for rate limiting, counting in memory: %s", e)
        return "memory://"


def _build_limiter() -> Limiter:
    if settings.TESTING:
        return Limiter(key_func=get_remote_address, storage_uri="memory://", enabled=False)
    return Limiter(
        key_func=get_remote_address,
        storage_uri=_storage_uri(),
        default_limits=_default_limits(),
    )


limiter = _build_limiter()
