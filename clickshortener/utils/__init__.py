from clickshortener.utils.config import app_env, app_name, project_root, app_prefix, config_path, load_config
from clickshortener.utils.helpers import (
    utcnow,
    isoformat,
    parse_timestamp,
    parse_expiry,
    is_valid_url,
    is_valid_shortcode,
    get_short_url,
    extract_origin,
)
from clickshortener.utils.shortener import generate_shortcode
from clickshortener.utils.logging import initialize_logging


__all__ = [
    'generate_shortcode',
    'app_env',
    'app_name',
    'app_prefix',
    'project_root',
    'config_path',
    'load_config',
    'utcnow',
    'isoformat',
    'parse_timestamp',
    'parse_expiry',
    'is_valid_url',
    'is_valid_shortcode',
    'get_short_url',
    'extract_origin',
    'initialize_logging',
]
