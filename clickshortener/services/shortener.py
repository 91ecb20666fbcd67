"""Shortener service: turn long URLs into persisted short links.

Classes:
    ShortenerService:
        Validate shorten requests, allocate shortcodes and persist UrlRecords.

Example:
    >>> service = ShortenerService(dao, base_url='https://sho.rt/go')
    >>> service.shorten('https://example.com/a', shortcode='abc123').to_dict()
    {'shortcode': 'abc123', 'url': 'https://example.com/a', 'shortUrl': 'https://sho.rt/go/abc123'}
    >>> service.shorten('https://example.com/a', shortcode='abc123')
    Traceback (most recent call last):
        ...
    clickshortener.exceptions.ShortcodeTakenError: Shortcode 'abc123' is already taken.
"""

import logging
from datetime import datetime
from collections.abc import Callable

from clickshortener.constants import Defaults, Event
from clickshortener.dao.base import ShortURLBaseDAO
from clickshortener.dao.exceptions import DataStoreError, ShortURLAlreadyExistsError
from clickshortener.exceptions import (
    InvalidUrlError,
    InvalidShortcodeError,
    InvalidExpiryError,
    ShortcodeTakenError,
    StoreUnavailableError,
)
from clickshortener.models import ShortenResult, UrlRecord
from clickshortener.utils.helpers import get_short_url, is_valid_shortcode, is_valid_url, parse_expiry, utcnow
from clickshortener.utils.shortener import generate_shortcode


logger = logging.getLogger(__name__)


class ShortenerService:
    """Create short links

    Attributes:
        dao (ShortURLBaseDAO):
            Data store of link records. Its insert() is the authority on shortcode uniqueness.
        base_url (str):
            Public base URL the redirect endpoint is mounted at.
        generator (Callable[[int], str]):
            Shortcode generator, called with the desired length.
        shortcode_length (int):
            Length of generated shortcodes.
        max_attempts (int):
            Maximum number of generated shortcodes tried per request.
        clock (Callable[[], datetime]):
            Source of the current UTC time.
    """

    def __init__(
        self,
        dao: ShortURLBaseDAO,
        base_url: str = Defaults.BASE_URL,
        generator: Callable[[int], str] = generate_shortcode,
        shortcode_length: int = Defaults.SHORTCODE_LENGTH,
        max_attempts: int = Defaults.MAX_SHORTCODE_ATTEMPTS,
        clock: Callable[[], datetime] = utcnow,
    ):
        if max_attempts < 1:
            raise ValueError(f'max_attempts must be a positive integer (given value: {max_attempts}).')

        self.dao = dao
        self.base_url = base_url
        self.generator = generator
        self.shortcode_length = shortcode_length
        self.max_attempts = max_attempts
        self.clock = clock

    def shorten(self, url: str, shortcode: str | None = None, expiry: str | datetime | None = None) -> ShortenResult:
        """Shorten a URL

        This method follows this procedure to shorten URLs:
        - Step 1: Validate the target URL, custom shortcode and expiry
        - Step 2: Build the link record (created now, zero clicks)
        - Step 3: Persist it under the custom shortcode, or under freshly
                  generated shortcodes until one is free
        - Step 4: Return the short link

        NOTE: An expiry in the past is accepted. The link is created and will
              simply never redirect.

        Args:
            url (str):
                Absolute http(s) URL to shorten.
            shortcode (str | None):
                Custom alphanumeric shortcode. If taken, the request fails
                (there is no fallback to a generated shortcode).
            expiry (str | datetime | None):
                ISO-8601 string or datetime after which the link stops
                redirecting. Naive values are taken as UTC.

        Returns:
            ShortenResult: shortcode, original url, short url and expiry.

        Raises:
            InvalidUrlError:
                If url isn't a valid absolute http(s) URL.
            InvalidShortcodeError:
                If the custom shortcode isn't alphanumeric.
            InvalidExpiryError:
                If expiry can't be parsed.
            ShortcodeTakenError:
                If the custom shortcode is already in use.
            StoreUnavailableError:
                If the data store fails, or no free shortcode was generated
                within max_attempts.
        """
        # 1- Validate request
        if not is_valid_url(url):
            raise InvalidUrlError(f'Invalid URL {url!r}: expected an absolute http(s) URL.')
        if shortcode is not None and not is_valid_shortcode(shortcode):
            raise InvalidShortcodeError(
                f'Invalid shortcode {shortcode!r}: expected 1 to {Defaults.MAX_SHORTCODE_LENGTH} alphanumeric characters.'
            )
        try:
            expires_at = parse_expiry(expiry)
        except (TypeError, ValueError) as e:
            raise InvalidExpiryError(f'Invalid expiry {expiry!r}: expected an ISO-8601 timestamp.') from e

        # 2, 3- Build and persist the record
        created_at = self.clock()
        if shortcode is not None:
            record = self._insert_custom(url, shortcode, created_at, expires_at)
        else:
            record = self._insert_generated(url, created_at, expires_at)

        # 4- Return the short link
        logger.info(
            'Shortened URL.',
            extra={'shortcode': record.shortcode, 'event': Event.LINK_CREATED, 'custom': shortcode is not None},
        )
        return ShortenResult(
            shortcode=record.shortcode,
            url=record.target,
            short_url=get_short_url(record.shortcode, self.base_url),
            expiry=record.expiry,
        )

    def _insert_custom(self, url: str, shortcode: str, created_at: datetime, expiry: datetime | None) -> UrlRecord:
        record = UrlRecord(target=url, shortcode=shortcode, created_at=created_at, expiry=expiry)
        try:
            self.dao.insert(record)
        except ShortURLAlreadyExistsError as e:
            logger.info('Custom shortcode already taken.', extra={'shortcode': shortcode, 'event': Event.SHORTCODE_TAKEN})
            raise ShortcodeTakenError(f"Shortcode '{shortcode}' is already taken.") from e
        except DataStoreError as e:
            logger.exception('Failed to store short URL.', extra={'shortcode': shortcode, 'event': Event.DATA_STORE_FAILURE})
            raise StoreUnavailableError('Data store is unavailable.') from e
        return record

    def _insert_generated(self, url: str, created_at: datetime, expiry: datetime | None) -> UrlRecord:
        for attempt in range(1, self.max_attempts + 1):
            shortcode = self.generator(self.shortcode_length)
            record = UrlRecord(target=url, shortcode=shortcode, created_at=created_at, expiry=expiry)
            try:
                self.dao.insert(record)
            except ShortURLAlreadyExistsError:
                logger.warning(
                    'Generated shortcode collided with an existing link. Regenerating.',
                    extra={'shortcode': shortcode, 'attempt': attempt, 'event': Event.SHORTCODE_COLLISION},
                )
                continue
            except DataStoreError as e:
                logger.exception('Failed to store short URL.', extra={'shortcode': shortcode, 'event': Event.DATA_STORE_FAILURE})
                raise StoreUnavailableError('Data store is unavailable.') from e
            else:
                return record

        logger.error(
            'Exhausted shortcode generation attempts.',
            extra={'attempts': self.max_attempts, 'event': Event.DATA_STORE_FAILURE},
        )
        raise StoreUnavailableError(f'Could not allocate a free shortcode after {self.max_attempts} attempts.')
