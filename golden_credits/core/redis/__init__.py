from golden_credits.core.redis.service import RedisService

__all__ = ["RedisService"]
