# eatery/services/event_guard.py
import redis
from redis.exceptions import RedisError

from eatery.utils.logging import get_logger
from eatery.utils.retry import redis_retry
from eatery.utils.settings import PROCESSED_EVENT_TTL_SECONDS, REDIS_URL

logger = get_logger(__name__)


class EventGuard:
    """
    Szybka sciezka dla powtornie dostarczonych webhookow:
    -pamieta id przetworzonych eventow (SET NX EX)
    -nie jest gwarancja idempotencji, to robi warunkowy update w bazie
    -awaria redisa = log i przetwarzamy normalnie
    """

    def __init__(self, url: str | None = None, ttl: int = PROCESSED_EVENT_TTL_SECONDS, client=None):
        self.redis = client or redis.Redis.from_url(url or REDIS_URL, decode_responses=True)
        self.ttl = ttl

    @staticmethod
    def _key(event_id: str) -> str:
        return f"payment-event:{event_id}:processed"

    @redis_retry()
    def _exists(self, key: str) -> bool:
        return bool(self.redis.exists(key))

    @redis_retry()
    def _set(self, key: str) -> bool:
        return bool(self.redis.set(name=key, value="1", nx=True, ex=self.ttl))

    def already_processed(self, event_id: str) -> bool:
        try:
            return self._exists(self._key(event_id))
        except RedisError as e:
            logger.warning(f"Event guard lookup failed for {event_id}: {e}")
            return False

    def remember(self, event_id: str) -> bool:
        try:
            return self._set(self._key(event_id))
        except RedisError as e:
            logger.warning(f"Event guard could not record {event_id}: {e}")
            return False
