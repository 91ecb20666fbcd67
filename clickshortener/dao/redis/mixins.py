"""Redis mixin providing shared client initialization, connectivity and durability checks.

Responsibilities:
    - Initialize Redis client
    - Healthcheck Redis client
    - Verify the server persists every write to its AOF before replying

Classes:
    - RedisClientMixin: Base mixin to inject Redis key management, client setup & healthcheck.

Example:
    Typical usage with a DAO implementation:

        >>> class ShortURLRedisDAO(RedisClientMixin, ShortURLBaseDAO):
        ...     pass
        ...
        >>> dao = ShortURLRedisDAO(prefix="myapp:prod")
        >>> dao._healthcheck()
        True
"""

import logging
from typing import Optional

import redis

from clickshortener.constants import Defaults
from clickshortener.dao.redis.redis_key_schema import RedisKeySchema
from clickshortener.dao.exceptions import DataStoreError


logger = logging.getLogger(__name__)


class RedisClientMixin:
    """Mixin Redis client setup and health check for Redis-backed DAOs.

    Attributes:
        redis (redis.Redis):
            Active Redis client instance used by subclasses.

        keys (RedisKeySchema):
            Helper class for generating namespaced Redis key names.

        durable_writes (bool):
            If True, the server must run with `appendonly yes` and
            `appendfsync always`, so every acknowledged write is on disk.

    Methods:
        _healthcheck(raise_error: bool = True) -> bool:
            Ping Redis to verify connectivity.
            Optionally raise a DataStoreError if unreachable.

        _check_durability() -> None:
            Verify the server fsyncs its AOF before acknowledging writes.
            Raise a DataStoreError if it does not.
    """

    def __init__(
        self,
        redis_host: Optional[str] = 'localhost',
        redis_port: Optional[int] = 6379,
        redis_db: Optional[int] = 0,
        redis_decode_responses: Optional[bool] = True,
        redis_username: Optional[str] = None,
        redis_password: Optional[str] = None,
        redis_client: Optional[redis.Redis] = None,
        prefix: Optional[str] = None,
        durable_writes: bool = True,
    ):
        """Initialize a Redis-based DAO

        The option is given to either use an existing Redis client instance or
        create one via the appropriate Redis connection parameters.

        Args:
            redis_host (Optional[str]):
                Hostname of the Redis server. Defaults to 'localhost'.

            redis_port (Optional[int]):
                Redis server port. Defaults to 6379.

            redis_db (Optional[int]):
                Redis database index. Defaults to 0.

            redis_decode_responses (Optional[bool]):
                If True, decodes Redis responses. Defaults to True.

            redis_username (Optional[str]):
                Username for Redis authentication (if required).

            redis_password (Optional[str]):
                Password for Redis authentication (if required).

            redis_client (Optional[redis.Redis]):
                Pre-initialized Redis client. If None, a new client is created.

            prefix (Optional[str]):
                Namespace prefix for all Redis keys, e.g. 'app:env'.

            durable_writes (bool):
                Require the server to fsync every write. Defaults to True.

        Raises:
            DataStoreError:
                If Redis healthcheck fails (connectivity issues) or durable
                writes are required but the server doesn't provide them.
        """
        if redis_client is None:
            redis_client = redis.Redis(
                host=redis_host,
                port=int(redis_port),
                db=int(redis_db),
                decode_responses=redis_decode_responses,
                username=redis_username,
                password=redis_password,
            )

        self.redis = redis_client
        self.keys = RedisKeySchema(prefix=prefix)
        self.durable_writes = durable_writes

        self._healthcheck()
        if self.durable_writes:
            self._check_durability()

    def _connection_info(self) -> str:
        info = self.redis.connection_pool.connection_kwargs
        return f'{info.get("host")}:{info.get("port")}/{info.get("db")}'

    def _healthcheck(self, raise_error: bool = True) -> bool:
        """PING Redis to healthcheck connectivity

        Args:
            raise_error (bool):
                If True, raises DataStoreError on failure. Defaults to True.

        Returns:
            bool:
                True if Redis is reachable, False otherwise (only if raise_error=False).

        Raises:
            DataStoreError:
                If Redis connection cannot be established and raise_error=True.
        """
        try:
            self.redis.ping()
        except redis.exceptions.ConnectionError as e:
            if raise_error:
                raise DataStoreError(
                    f"Can't connect to Redis at {self._connection_info()}. Check the provided configuration parameters."
                ) from e
            return False  # pragma: no cover
        else:
            return True

    def _check_durability(self) -> None:
        """Verify Redis persists every write to its AOF before replying

        With `appendonly yes` and `appendfsync always`, Redis fsyncs the AOF
        before sending the reply to a write command, so an acknowledged
        insert or visit survives a server crash.

        NOTE: Managed Redis offerings often disable CONFIG. In that case the
              check can't be performed and the deployment's persistence settings
              are trusted (a warning is logged).

        Raises:
            DataStoreError:
                If the server reports a weaker persistence configuration.
        """
        try:
            settings = self.redis.config_get('append*')
        except redis.exceptions.ResponseError:
            logger.warning(
                'Redis rejected CONFIG GET; unable to verify AOF persistence settings.',
                extra={'redis': self._connection_info()},
            )
            return
        except redis.exceptions.ConnectionError as e:
            raise DataStoreError(f"Can't connect to Redis at {self._connection_info()}.") from e

        appendonly = str(settings.get('appendonly', '')).lower()
        appendfsync = str(settings.get('appendfsync', '')).lower()
        if appendonly != 'yes' or appendfsync != Defaults.REDIS_APPENDFSYNC:
            raise DataStoreError(
                f'Redis at {self._connection_info()} does not fsync every write '
                f'(appendonly={appendonly or "?"}, appendfsync={appendfsync or "?"}). '
                "Set 'appendonly yes' and 'appendfsync always', or disable durable_writes."
            )
