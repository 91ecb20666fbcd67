from clickshortener.services.geo import GeoLookup, HttpGeoLookup
from clickshortener.services.redirect import RedirectService
from clickshortener.services.shortener import ShortenerService


__all__ = [
    'GeoLookup',
    'HttpGeoLookup',
    'RedirectService',
    'ShortenerService',
]
