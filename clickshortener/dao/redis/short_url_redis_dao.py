"""Data Access Object (DAO) implementation for managing shortened URLs in Redis

This module provides a Redis-based implementation of ShortURLBaseDAO for
UrlRecord instances.

Responsibilities:
    - Insert and retrieve link records from Redis;
    - Atomically record visits (click counter + visit log);
    - Provide defensive error handling and raise appropriate DAO exceptions.

Key layout (see RedisKeySchema):
    <prefix>:links:<shortcode>          -> JSON document (target, shortcode, created_at, expiry)
    <prefix>:links:<shortcode>:clicks   -> integer click counter
    <prefix>:links:<shortcode>:visits   -> list of JSON visit events, oldest first

Classes:
    ShortURLRedisDAO:
        DAO for storing and retrieving UrlRecord in a Redis datastore.

Example:
    >>> from clickshortener.models import UrlRecord, VisitEvent
    >>> from clickshortener.dao.redis import ShortURLRedisDAO

    >>> dao = ShortURLRedisDAO(prefix="app:dev")

    >>> record = UrlRecord(
    ...     target="https://example.com/page",
    ...     shortcode="abc123",
    ...     created_at=datetime.now(UTC),
    ... )
    >>> dao.insert(record)
    <ShortURLRedisDAO>

    >>> dao.record_visit("abc123", VisitEvent(timestamp=datetime.now(UTC), origin="203.0.113.7"))
    1

    >>> retrieved = dao.get("abc123")
    >>> retrieved.target
    'https://example.com/page'
    >>> retrieved.clicks
    1
"""

import json

from beartype import beartype

from clickshortener.models import UrlRecord, VisitEvent
from clickshortener.dao.base import ShortURLBaseDAO
from clickshortener.dao.redis.mixins import RedisClientMixin
from clickshortener.dao.redis.helpers import handle_redis_connection_error
from clickshortener.dao.exceptions import DataStoreError, ShortURLAlreadyExistsError, ShortURLNotFoundError


class ShortURLRedisDAO(RedisClientMixin, ShortURLBaseDAO):
    """Redis-based Data Access Object (DAO) for managing short URL mappings

    This class implements the ShortURLBaseDAO interface using Redis as a data store.

    Attributes (see RedisClientMixin):
        redis (redis.Redis):
            Redis client used to communicate with the Redis datastore.
        keys (RedisKeySchema):
            Key schema helper for generating namespaced Redis keys.

    Methods:
        insert(record: UrlRecord, **kwargs) -> ShortURLRedisDAO:
            Insert a link record. Uniqueness is enforced by a single SET NX.
            Raises ShortURLAlreadyExistsError when a link with the same shortcode exists.
            Raises DataStoreError on connectivity issues with Redis.

        get(shortcode: str, **kwargs) -> UrlRecord:
            Retrieve a link record with its click counter and visit log.
            Raises ShortURLNotFoundError when the shortcode doesn't exist.
            Raises DataStoreError on connectivity issues with Redis.

        record_visit(shortcode: str, visit: VisitEvent, **kwargs) -> int:
            Increment the click counter and append the visit in one transaction.
            Returns the click count after the visit.
            Raises ShortURLNotFoundError when the shortcode doesn't exist.
            Raises DataStoreError on connectivity issues with Redis.

    Example:
        >>> dao = ShortURLRedisDAO(redis_host="localhost", prefix="shortener:test")
        >>> record = UrlRecord(target="https://example.com", shortcode="abc123", created_at=datetime.now(UTC))
        >>> dao.insert(record)
        <ShortURLRedisDAO>
        >>> dao.get("abc123").target
        'https://example.com'
    """

    @handle_redis_connection_error
    @beartype
    def insert(self, record: UrlRecord, **kwargs) -> 'ShortURLRedisDAO':
        """Insert a link record into Redis

        The record document is written with a single SET NX command, which is
        both the uniqueness check and the write. Two concurrent inserts of the
        same shortcode therefore yield exactly one success, and a record is
        either fully visible or not visible at all.

        NOTE: The click counter and visit log keys are NOT initialized here.
              A missing counter reads as 0 and a missing list reads as [],
              so no multi-key write is needed to create a record.

        Args:
            record (UrlRecord):
                UrlRecord instance representing the shortened URL mapping.
            **kwargs:
                Optional keyword arguments (for future use).

        Returns:
            ShortURLRedisDAO: self (for method chaining)

        Raises:
            ShortURLAlreadyExistsError:
                If a link with the same shortcode already exists.
            DataStoreError:
                If a Redis connection issue occurs.
        """
        link_record_key = self.keys.link_record_key(record.shortcode)
        created = self.redis.set(link_record_key, json.dumps(record.to_document()), nx=True)
        if not created:
            raise ShortURLAlreadyExistsError(f"Short URL with code '{record.shortcode}' already exists.")
        return self

    @handle_redis_connection_error
    @beartype
    def get(self, shortcode: str, **kwargs) -> UrlRecord:
        """Retrieve a stored link record by shortcode

        Fetches the record document, its click counter and its visit log
        using a single Redis transaction, so the returned record always
        satisfies clicks == len(visits).

        Args:
            shortcode (str):
                The shortcode identifier for the shortened URL.
            **kwargs:
                Optional keyword arguments (for future use).

        Returns:
            UrlRecord:
                The retrieved UrlRecord instance if found.

        Raises:
            ShortURLNotFoundError:
                If the link does not exist in Redis.
            DataStoreError:
                If Redis connectivity issues occur or the stored document is corrupt.

        Example:
            >>> dao.get('abc123')
            UrlRecord(target='https://example.com', shortcode='abc123', ...)
        """
        link_record_key = self.keys.link_record_key(shortcode)
        link_clicks_key = self.keys.link_clicks_key(shortcode)
        link_visits_key = self.keys.link_visits_key(shortcode)

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.get(link_record_key)
            pipe.get(link_clicks_key)
            pipe.lrange(link_visits_key, 0, -1)
            document, clicks, visits = pipe.execute()

        if document is None:
            raise ShortURLNotFoundError(f"Short URL with code '{shortcode}' not found.")

        try:
            return UrlRecord.from_document(
                json.loads(document),
                visits=[VisitEvent.from_document(json.loads(visit)) for visit in visits],
                clicks=int(clicks or 0),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise DataStoreError(f"Short URL with code '{shortcode}' has a corrupt record in Redis.") from e

    @handle_redis_connection_error
    @beartype
    def record_visit(self, shortcode: str, visit: VisitEvent, **kwargs) -> int:
        """Record a visit: increment the click counter and append to the visit log

        NOTE: Records are never deleted, so once the EXISTS check passes the
              record is guaranteed to still exist when the transaction runs.

        NOTE: INCR and RPUSH are executed as one MULTI/EXEC transaction. Redis
              executes transactions serially, so concurrent visits to the same
              link never lose updates, and a concurrent get() (also a transaction)
              never observes the counter and the visit log out of step:

              (request 1): ShortURLRedisDAO.record_visit():
                           -> MULTI
                           -> INCR  <app>:links:<shortcode>:clicks
                           -> RPUSH <app>:links:<shortcode>:visits <visit>
                           -> EXEC  (applied atomically)
              (request 2): ShortURLRedisDAO.get():
                           -> MULTI / GET / GET / LRANGE / EXEC
                           => sees either none or both of request 1's writes

              Visits to different links touch different keys and share no lock.

        Args:
            shortcode (str):
                The shortcode of the visited link.
            visit (VisitEvent):
                The visit to append.
            **kwargs:
                Additional keyword arguments, used by data store.

        Return:
            int:
                click count after this visit.

        Raises:
            ShortURLNotFoundError:
                If no link with the given shortcode exists.
            DataStoreError:
                If Redis connectivity issues occur.

        Example:
            >>> dao.record_visit('abc123', VisitEvent(timestamp=datetime.now(UTC), origin='203.0.113.7'))
            1
        """
        link_record_key = self.keys.link_record_key(shortcode)
        link_clicks_key = self.keys.link_clicks_key(shortcode)
        link_visits_key = self.keys.link_visits_key(shortcode)

        if not self.redis.exists(link_record_key):
            raise ShortURLNotFoundError(f"Short URL with code '{shortcode}' not found.")

        with self.redis.pipeline(transaction=True) as pipe:
            pipe.incr(link_clicks_key)
            pipe.rpush(link_visits_key, json.dumps(visit.to_document()))
            clicks, _ = pipe.execute()

        return clicks
