"""
Thread-safe rate-limited logging utilities.

Discovery polls the host every 100 ms and codec lookups can miss on every
message of an unknown type, so both log through here to keep the log
readable while still showing the event once per window.
"""
import logging
import threading
from typing import Optional

from cachetools import TTLCache

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60

# Keys live for the interval they were logged with; one cache per interval
_log_caches = {}
_log_caches_lock = threading.RLock()


def _cache_for(interval: int) -> TTLCache:
    cache = _log_caches.get(interval)
    if cache is None:
        cache = TTLCache(maxsize=256, ttl=interval)
        _log_caches[interval] = cache
    return cache


def rate_limited_log(
    message: str,
    *args,
    level: str = "warning",
    interval: int = DEFAULT_INTERVAL,
    logger_instance: Optional[logging.Logger] = None
) -> bool:
    """
    Log a message at most once per ``interval`` seconds.

    The message template (not the formatted text) together with the level
    is the rate-limiting key, so the same event with different arguments
    is still only logged once per window.

    Args:
        message: Message template to log
        *args: Arguments for the template
        level: Log level (debug, info, warning, error, critical)
        interval: Minimum interval between logs in seconds
        logger_instance: Logger to use (defaults to module logger)

    Returns:
        True if the message was emitted, False if it was suppressed
    """
    log_instance = logger_instance or logger
    log_method = getattr(log_instance, level.lower(), log_instance.warning)
    key = f"{level}:{message}"

    with _log_caches_lock:
        cache = _cache_for(interval)
        if key in cache:
            return False
        cache[key] = True

    log_method(message, *args)
    return True


def reset_rate_limits() -> None:
    """Forget every suppressed key (for testing)"""
    with _log_caches_lock:
        _log_caches.clear()
