"""Login throttling with throttled-py"""
from datetime import timedelta
from typing import Tuple

from throttled import Throttled, RateLimiterType, store, rate_limiter

from core.config import logger, LOGIN_RATE_LIMIT, REDIS_URL

LOGIN_WINDOW = timedelta(minutes=15)


def _make_store():
    if not REDIS_URL:
        logger.warning("[rate_limit] REDIS_URL not set, login attempts are counted per process")
        return store.MemoryStore()
    try:
        redis_store = store.RedisStore(server=REDIS_URL)
        logger.info("[rate_limit] counting login attempts in Redis")
        return redis_store
    except Exception as ex:
        logger.warning(f"[rate_limit] Redis store unavailable, using memory: {ex}")
        return store.MemoryStore()


def make_login_throttle(limit: int = LOGIN_RATE_LIMIT, storage=None) -> Throttled:
    return Throttled(
        using=RateLimiterType.FIXED_WINDOW.value,
        quota=rate_limiter.per_duration(LOGIN_WINDOW, limit=limit),
        store=storage if storage is not None else _make_store(),
    )


login_throttle = make_login_throttle()


def client_ip(request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def check_login_rate_limit(ip: str, throttle: Throttled = None) -> Tuple[bool, str]:
    """
    Consume one login attempt for this IP.

    Returns:
        Tuple of (allowed: bool, error_message: str)
    """
    throttle = throttle or login_throttle
    try:
        result = throttle.limit(f"login:{ip}", cost=1)
    except Exception as ex:
        # The attempt is let through when the store is down
        logger.exception(f"[rate_limit] login check failed ip={ip}: {ex}")
        return True, ""
    if result.limited:
        return False, "Too many login attempts. Please try again later."
    return True, ""
