from clickshortener.dao.redis.redis_key_schema import RedisKeySchema
from clickshortener.dao.redis.short_url_redis_dao import ShortURLRedisDAO
from clickshortener.dao.redis.mixins import RedisClientMixin


__all__ = [
    'RedisKeySchema',
    'ShortURLRedisDAO',
    'RedisClientMixin',
]
