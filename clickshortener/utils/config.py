"""Utility functions for application configuration management.

Configuration is stored as one YAML document per application environment
(`APP_ENV`), by default under `<project root>/config/<env>.yml`. The document
selects the active data store backend and carries per-service settings:

    active_backend: redis           # or "file"
    backends:
      redis:
        host: localhost
        port: 6379
        db: 0
        durable_writes: true
      file:
        directory: /var/lib/clickshortener
    shortener:
      base_url: https://sho.rt/go
      shortcode_length: 7
      max_attempts: 10
    redirect:
      geo:
        enabled: false
        url: http://ip-api.com/json/{ip}
        timeout: 1.0

Functions:
    app_env() -> str
        Return the current application environment (`APP_ENV`) value,
        defaulting to `'local'`.

    app_name() -> str | None
        Return the application name (`APP_NAME`), or None if not set.

    app_prefix() -> str | None
        Return application prefix for DAOs, or None if `APP_NAME` is not set.

    project_root() -> Path
        Return the absolute path to the project root directory, using
        `PROJECT_ROOT` when available.

    config_path() -> Path
        Return the configuration file path, using `CONFIG_PATH` when available.

    load_config(path: str | Path | None = None) -> dict
        Load and validate the YAML configuration document.

Example:
    >>> from clickshortener.utils.config import load_config
    >>> config = load_config()
    >>> config['active_backend']
    'redis'
    >>> config['backends']['redis']['host']
    'localhost'
"""

import os
import copy
import logging
from pathlib import Path

import yaml

from clickshortener.constants import ENV, Defaults
from clickshortener.exceptions import BadConfigurationError


logger = logging.getLogger(__name__)

BACKENDS = frozenset({'redis', 'file'})

DEFAULT_SECTIONS = {
    'shortener': {
        'base_url': Defaults.BASE_URL,
        'shortcode_length': Defaults.SHORTCODE_LENGTH,
        'max_attempts': Defaults.MAX_SHORTCODE_ATTEMPTS,
    },
    'redirect': {
        'geo': {
            'enabled': False,
            'url': None,
            'timeout': Defaults.GEO_TIMEOUT,
        },
    },
}


def app_env() -> str:
    """Return the current application environment by reading 'APP_ENV'

    Returns:
        str:
            Value of `APP_ENV` environment variable, `'local'` by default.

    Example:
        >>> os.environ['APP_ENV'] = 'dev'
        >>> app_env()
        'dev'
    """
    return os.environ.get(ENV.App.APP_ENV, 'local').lower()


def app_name() -> str | None:
    """Return the current application name by reading 'APP_NAME'

    Example:
        >>> os.environ['APP_NAME'] = 'clickshortener'
        >>> app_name()
        'clickshortener'
    """
    return os.environ.get(ENV.App.APP_NAME)


def project_root() -> Path:
    """Return the absolute path to the project root directory

    Reads PROJECT_ROOT, falling back to the current working directory.
    """
    return Path(os.environ.get(ENV.App.PROJECT_ROOT, os.getcwd()))


def app_prefix() -> str | None:
    """Return application prefix for DAOs

    Returns:
        str: app prefix as <app name>:<app env>.
             None if APP_NAME is not set.

    Example:
        >>> os.environ['APP_NAME'] = 'clickshortener'
        >>> os.environ['APP_ENV'] = 'local'
        >>> app_prefix()
        'clickshortener:local'
    """
    return None if app_name() is None else f'{app_name()}:{app_env()}'


def config_path() -> Path:
    """Return the configuration file path

    `CONFIG_PATH` wins if set; otherwise `<project root>/config/<app env>.yml`.
    """
    explicit = os.environ.get(ENV.App.CONFIG_PATH)
    if explicit:
        return Path(explicit)
    return project_root() / 'config' / f'{app_env()}.yml'


def _merge_defaults(defaults: dict, overrides: dict) -> dict:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_defaults(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: str | Path | None = None) -> dict:
    """Load the application configuration from a YAML document

    Args:
        path (str | Path | None):
            Configuration file. Defaults to config_path().

    Returns:
        dict: The validated configuration, with the `shortener` and
              `redirect` sections completed from defaults.

    Raises:
        FileNotFoundError:
            If the configuration file doesn't exist.
        BadConfigurationError:
            If the document isn't a mapping, names an unknown backend, or
            lacks the settings of its active backend.

    Example:
        >>> config = load_config('config/local.yml')
        >>> config['shortener']['base_url']
        'http://localhost:8080/go'
    """
    path = Path(path) if path is not None else config_path()
    logger.debug('Loading configuration.', extra={'configPath': str(path)})

    with open(path, encoding='utf-8') as f:
        try:
            document = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise BadConfigurationError(f'Configuration file {path} is not valid YAML.') from e

    if not isinstance(document, dict):
        raise BadConfigurationError(f'Configuration file {path} must contain a mapping.')

    backend = document.get('active_backend')
    if backend not in BACKENDS:
        raise BadConfigurationError(f"Unknown active_backend {backend!r} (expected one of: {', '.join(sorted(BACKENDS))}).")

    backend_config = (document.get('backends') or {}).get(backend)
    if not isinstance(backend_config, dict):
        raise BadConfigurationError(f"Missing 'backends.{backend}' section for the active backend.")
    if backend == 'file' and not backend_config.get('directory'):
        raise BadConfigurationError("Missing 'backends.file.directory' for the file backend.")

    config = _merge_defaults(DEFAULT_SECTIONS, document)
    logger.debug('Loaded configuration.', extra={'configPath': str(path), 'activeBackend': backend})
    return config
