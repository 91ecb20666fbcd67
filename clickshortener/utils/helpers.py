"""Helper utilities shared by the services and the data access layer.

Functions:
    utcnow() -> datetime
        Current time as a timezone-aware UTC datetime
    isoformat(dt) -> str
        Serialize a datetime as an ISO-8601 UTC string
    parse_timestamp(value) -> datetime
        Parse an ISO-8601 string (or datetime) into an aware UTC datetime
    parse_expiry(value) -> datetime | None
        Normalize an optional expiry given as a datetime or ISO-8601 string
    is_valid_url(url) -> bool
        Check that a string is a syntactically valid absolute http(s) URL
    is_valid_shortcode(shortcode) -> bool
        Check that a string is an acceptable custom shortcode
    get_short_url(shortcode, base_url) -> str
        Get string representation of short URL for a given shortcode
    extract_origin(headers, remote_addr) -> str
        Resolve the visitor's origin from proxy headers or the socket address

Example:
    >>> from clickshortener.utils.helpers import get_short_url, is_valid_url
    >>> is_valid_url('https://example.com/a')
    True
    >>> get_short_url('abc123', 'http://localhost:8080/go/')
    'http://localhost:8080/go/abc123'
"""

import re
from datetime import datetime, UTC
from typing import Any
from urllib.parse import urlsplit
from collections.abc import Mapping

from clickshortener.constants import Defaults


SHORTCODE_PATTERN = re.compile(rf'^[A-Za-z0-9]{{1,{Defaults.MAX_SHORTCODE_LENGTH}}}$')
URL_SCHEMES = frozenset({'http', 'https'})


def utcnow() -> datetime:
    return datetime.now(UTC)


def isoformat(dt: datetime) -> str:
    """Serialize a datetime as ISO-8601 in UTC with a trailing 'Z'

    Example:
        >>> isoformat(datetime(2025, 10, 15, 12, 0, tzinfo=UTC))
        '2025-10-15T12:00:00Z'
    """
    return dt.astimezone(UTC).isoformat().replace('+00:00', 'Z')


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp into a timezone-aware UTC datetime

    Naive values are interpreted as UTC.

    Raises:
        TypeError: If value is neither a string nor a datetime.
        ValueError: If the string isn't valid ISO-8601, or its UTC equivalent
            falls outside the datetime range.
    """
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.strip())
    else:
        raise TypeError(f'Timestamp must be a string or datetime (given type: {type(value)}).')

    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    try:
        return dt.astimezone(UTC)
    except OverflowError as e:
        raise ValueError(f'Timestamp {value} is out of range once converted to UTC.') from e


def parse_expiry(value: str | datetime | None) -> datetime | None:
    """Normalize an optional expiry instant

    Past instants are accepted: a link created with an expiry in the past
    is valid and simply never redirects.

    Args:
        value (str | datetime | None):
            ISO-8601 string (e.g. '2026-01-01T00:00:00Z'), datetime, or None.

    Returns:
        datetime | None: aware UTC datetime, or None for "never expires".

    Raises:
        TypeError / ValueError: If the value can't be parsed.

    Example:
        >>> parse_expiry('2026-01-01T00:00:00Z')
        datetime.datetime(2026, 1, 1, 0, 0, tzinfo=datetime.timezone.utc)
        >>> parse_expiry(None) is None
        True
    """
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        raise ValueError('Expiry must be a non-empty ISO-8601 string.')
    return parse_timestamp(value)


def is_valid_url(url: Any) -> bool:
    """Check that url is a syntactically valid absolute http(s) URL

    Example:
        >>> is_valid_url('https://example.com/a?b=c')
        True
        >>> is_valid_url('not-a-url')
        False
    """
    if not isinstance(url, str) or not url or len(url) > Defaults.MAX_URL_LENGTH:
        return False
    if any(ch.isspace() for ch in url):
        return False

    try:
        components = urlsplit(url)
        # Accessing .port validates it (raises ValueError on garbage)
        components.port
    except ValueError:
        return False

    return components.scheme.lower() in URL_SCHEMES and bool(components.hostname)


def is_valid_shortcode(shortcode: Any) -> bool:
    return isinstance(shortcode, str) and SHORTCODE_PATTERN.fullmatch(shortcode) is not None


def get_short_url(shortcode: str, base_url: str) -> str:
    """Get string representation of shortened URL

    Args:
        shortcode (str): shortcode
        base_url (str): public base URL the redirect endpoint is mounted at

    Returns:
        str: short url string representation
    """
    return f'{base_url.rstrip("/")}/{shortcode}'


def extract_origin(headers: Mapping[str, str] | None, remote_addr: str | None = None) -> str:
    """Resolve the visitor's origin (IP address) for a visit

    The left-most 'X-Forwarded-For' entry wins (the client as seen by the
    first proxy). Falls back to the socket's remote address, then ''.

    Example:
        >>> extract_origin({'X-Forwarded-For': '203.0.113.7, 10.0.0.1'}, '10.0.0.2')
        '203.0.113.7'
        >>> extract_origin({}, '198.51.100.4')
        '198.51.100.4'
    """
    for name, value in (headers or {}).items():
        if name.lower() == 'x-forwarded-for' and value:
            first = value.split(',')[0].strip()
            if first:
                return first
    return remote_addr or ''

