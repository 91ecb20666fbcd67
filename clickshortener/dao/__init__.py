from clickshortener.dao.base import ShortURLBaseDAO
from clickshortener.dao.file import ShortURLFileDAO
from clickshortener.dao.redis import ShortURLRedisDAO


__all__ = [
    'ShortURLBaseDAO',
    'ShortURLFileDAO',
    'ShortURLRedisDAO',
]
