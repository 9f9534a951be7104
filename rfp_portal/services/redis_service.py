import redis
from ..core.config import get_settings

settings = get_settings()


class RedisService:
    """Revoked bearer tokens, shared with the identity store."""

    def __init__(self):

        self.redis = redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=0
        )

    def is_blacklisted(self, token: str) -> bool:
        return bool(self.redis.get(f"blacklist:{token}"))


redis_service = RedisService()
