from enum import StrEnum


class Defaults:
    """Default application settings."""

    SHORTCODE_LENGTH = 7  # 62^7 ~ 3.5e12 generated codes
    MAX_SHORTCODE_ATTEMPTS = 10  # Generated shortcode collisions tolerated per request
    MAX_SHORTCODE_LENGTH = 64  # Longest accepted custom shortcode
    MAX_URL_LENGTH = 2048
    BASE_URL = 'http://localhost:8080/go'
    GEO_TIMEOUT = 1.0  # seconds
    REDIS_APPENDFSYNC = 'always'  # AOF fsync policy required for durable writes


class ENV:
    """Environment variable names."""

    class App(StrEnum):
        APP_ENV = 'APP_ENV'
        APP_NAME = 'APP_NAME'
        PROJECT_ROOT = 'PROJECT_ROOT'
        CONFIG_PATH = 'CONFIG_PATH'
        LOG_LEVEL = 'LOG_LEVEL'


class Event(StrEnum):
    """Structured log event names."""

    LINK_CREATED = 'LINK_CREATED'
    SHORTCODE_TAKEN = 'SHORTCODE_TAKEN'
    SHORTCODE_COLLISION = 'SHORTCODE_COLLISION'
    SHORTCODE_NOT_FOUND = 'SHORTCODE_NOT_FOUND'
    SHORTCODE_EXPIRED = 'SHORTCODE_EXPIRED'
    REDIRECT_SUCCESS = 'REDIRECT_SUCCESS'
    STATS_RETRIEVED = 'STATS_RETRIEVED'
    GEO_LOOKUP_FAILED = 'GEO_LOOKUP_FAILED'
    DATA_STORE_FAILURE = 'DATA_STORE_FAILURE'
