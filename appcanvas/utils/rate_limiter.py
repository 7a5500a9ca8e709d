"""
Per-user budget for the AI assistant endpoints.

Counters live in Redis so the budget holds across service instances.
"""
from loguru import logger
from typing import Optional, Tuple, Dict, Any

from appcanvas.core.cache import cache_manager
from appcanvas.config import settings


class RateLimiter:
    """
    Fixed window limiter: at most ``limit`` requests per user per
    ``rate_limit_window_seconds``. Fails open when Redis is unavailable.
    """

    def __init__(self, scope: str = "ai"):
        self.prefix = f"rate_limit:{scope}:"
        self.window_seconds = settings.rate_limit_window_seconds

    async def check_rate_limit(
        self,
        user_id: str,
        limit: Optional[int] = None
    ) -> Tuple[bool, Dict[str, Any]]:
        """
        Count this request against ``user_id``'s budget.

        Returns:
            ``(allowed, info)``; ``info`` carries ``limit``, ``remaining`` and,
            when blocked, ``retry_after`` in seconds
        """
        if not settings.rate_limit_enabled:
            return True, {'limited': False, 'reason': 'Rate limiting disabled'}

        limit = limit or settings.rate_limit_ai_requests_per_hour

        try:
            counter = await cache_manager.increment_window(f"{self.prefix}{user_id}", self.window_seconds)
        except Exception as e:
            logger.error(f"Rate limit check error for {user_id}: {e}")
            return True, {'limited': False, 'error': str(e)}

        if counter is None:
            return True, {'limited': False, 'reason': 'Counter store unavailable'}

        count, reset_in = counter
        if count > limit:
            logger.warning(f"Rate limit exceeded for {user_id}: {count}/{limit}")
            return False, {
                'limited': True,
                'remaining': 0,
                'limit': limit,
                'retry_after': reset_in,
            }

        logger.debug(f"Rate limit for {user_id}: {count}/{limit}")
        return True, {
            'limited': False,
            'remaining': limit - count,
            'limit': limit,
            'reset_in': reset_in,
        }

    async def reset_rate_limit(self, user_id: str) -> bool:
        """Forget ``user_id``'s current window"""
        removed = await cache_manager.delete(f"{self.prefix}{user_id}")
        if removed:
            logger.info(f"Rate limit reset for {user_id}")
        return removed


rate_limiter = RateLimiter()
