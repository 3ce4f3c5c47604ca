import redis

from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

# compare-and-delete in one step, so a guard is only released by its owner
_RELEASE_LUA = """
if redis.call('GET', KEYS[1]) == ARGV[1] then
    return redis.call('DEL', KEYS[1])
else
    return 0
end
"""


class LockService:
    """
    Short-lived redis guards.
    - SET NX EX to take a guard
    - atomic compare-and-delete in lua to release it
    """

    def __init__(self, url: str | None = None, client: redis.Redis | None = None):
        self.redis = client or redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @staticmethod
    def _merge_key(session_id: str) -> str:
        return f"cart-merge:{session_id}"

    @redis_retry()
    def acquire_merge_lock(self, session_id: str, user_id: str, ttl: int) -> bool:
        key = self._merge_key(session_id)
        logger.info(f"Acquire guard {key} for user {user_id}")
        return bool(
            self.redis.set(
                name=key,
                value=str(user_id),
                nx=True,  # only if nobody holds it
                ex=ttl,  # expires on its own
            )
        )

    @redis_retry()
    def release_merge_lock(self, session_id: str, user_id: str) -> bool:
        key = self._merge_key(session_id)
        logger.info(f"Release guard {key} for user {user_id}")
        res = self.redis.eval(_RELEASE_LUA, 1, key, str(user_id))
        return bool(res)
