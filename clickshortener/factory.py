"""Wire data access objects and services from the application configuration.

Functions:
    create_dao(config) -> ShortURLBaseDAO
        Build the DAO of the configured active backend.
    create_geo_lookup(config) -> GeoLookup | None
        Build the geo lookup, if enabled.
    create_shortener_service(config=None) -> ShortenerService
    create_redirect_service(config=None) -> RedirectService
        Build a service, loading the configuration when not given.

Example:
    Typical usage in the HTTP layer's start-up code:

        >>> from clickshortener.factory import create_dao, create_redirect_service, create_shortener_service
        >>> config = load_config()
        >>> dao = create_dao(config)
        >>> shortener = create_shortener_service(config, dao=dao)
        >>> redirects = create_redirect_service(config, dao=dao)
"""

import logging

from clickshortener.dao.base import ShortURLBaseDAO
from clickshortener.dao.file import ShortURLFileDAO
from clickshortener.dao.redis import ShortURLRedisDAO
from clickshortener.exceptions import BadConfigurationError
from clickshortener.services.geo import GeoLookup, HttpGeoLookup
from clickshortener.services.redirect import RedirectService
from clickshortener.services.shortener import ShortenerService
from clickshortener.utils.config import app_prefix, load_config


logger = logging.getLogger(__name__)


def create_dao(config: dict) -> ShortURLBaseDAO:
    backend = config['active_backend']
    backend_config = dict(config['backends'][backend])

    if backend == 'redis':
        logger.debug('Using Redis as the backend database for short URLs.')
        redis_config = {f'redis_{k}': v for k, v in backend_config.items() if k != 'durable_writes'}
        return ShortURLRedisDAO(
            **redis_config,
            prefix=app_prefix(),
            durable_writes=bool(backend_config.get('durable_writes', True)),
        )

    if backend == 'file':
        logger.debug('Using a local directory as the backend database for short URLs.')
        return ShortURLFileDAO(backend_config['directory'], fsync=bool(backend_config.get('fsync', True)))

    raise BadConfigurationError(f'Unknown active_backend {backend!r}.')


def create_geo_lookup(config: dict) -> GeoLookup | None:
    geo_config = config['redirect']['geo']
    if not geo_config.get('enabled'):
        return None
    if not geo_config.get('url'):
        raise BadConfigurationError("Missing 'redirect.geo.url' while geo lookup is enabled.")
    try:
        return HttpGeoLookup(geo_config['url'], timeout=float(geo_config['timeout']))
    except ValueError as e:
        raise BadConfigurationError(f'Invalid geo lookup configuration: {e}') from e


def create_shortener_service(config: dict | None = None, dao: ShortURLBaseDAO | None = None) -> ShortenerService:
    config = config if config is not None else load_config()
    settings = config['shortener']
    return ShortenerService(
        dao if dao is not None else create_dao(config),
        base_url=settings['base_url'],
        shortcode_length=int(settings['shortcode_length']),
        max_attempts=int(settings['max_attempts']),
    )


def create_redirect_service(config: dict | None = None, dao: ShortURLBaseDAO | None = None) -> RedirectService:
    config = config if config is not None else load_config()
    return RedirectService(
        dao if dao is not None else create_dao(config),
        geo=create_geo_lookup(config),
    )
