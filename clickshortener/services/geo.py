"""Best-effort geo annotation of visits.

Classes:
    GeoLookup:
        Interface of a geo lookup capability.
    HttpGeoLookup:
        Geo lookup against a JSON HTTP endpoint (e.g. ip-api.com).

The redirect path treats every lookup as optional: RedirectService absorbs
any exception raised here, so implementations may simply let errors propagate.

Example:
    >>> geo = HttpGeoLookup('http://ip-api.com/json/{ip}', timeout=0.5)
    >>> geo.locate('8.8.8.8')
    {'status': 'success', 'country': 'United States', ...}
    >>> geo.locate('127.0.0.1') is None
    True
"""

import json
import logging
import ipaddress
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from typing import Any

from clickshortener.constants import Defaults


logger = logging.getLogger(__name__)


class GeoLookup(ABC):
    @abstractmethod
    def locate(self, origin: str) -> dict[str, Any] | None:
        """Return a geo annotation for a visitor origin, or None if unknown."""
        pass


class HttpGeoLookup(GeoLookup):
    """Geo lookup against a JSON HTTP endpoint

    Args:
        url (str):
            Endpoint template with an `{ip}` placeholder, e.g. 'http://ip-api.com/json/{ip}'.
        timeout (float):
            Request timeout in seconds. Bounds how long a redirect can wait on the lookup.

    NOTE: The timeout applies to connecting and reading, not to resolving the
          endpoint's host name. A slow resolver can stall a redirect past it;
          point `url` at an IP literal where that matters.
    """

    def __init__(self, url: str, timeout: float = Defaults.GEO_TIMEOUT):
        components = urllib.parse.urlparse(url)
        if components.scheme not in {'http', 'https'}:
            raise ValueError(f'Bad scheme {url}')
        if '{ip}' not in url:
            raise ValueError(f"Geo lookup URL must contain an '{{ip}}' placeholder (given value: {url}).")

        self.url = url
        self.timeout = timeout

    def locate(self, origin: str) -> dict[str, Any] | None:
        try:
            address = ipaddress.ip_address(origin)
        except ValueError:
            return None
        # Addresses without a public location aren't worth a network round trip
        if address.is_private or address.is_loopback or address.is_link_local or address.is_unspecified:
            return None

        url = self.url.format(ip=urllib.parse.quote(str(address)))
        logger.debug('Looking up visitor location.', extra={'origin': origin})
        with urllib.request.urlopen(url, timeout=self.timeout) as r:  # noqa: S310
            payload = json.load(r)

        return payload if isinstance(payload, dict) else None
