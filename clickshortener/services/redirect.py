"""Redirect and statistics service.

Classes:
    RedirectService:
        Resolve shortcodes to target URLs while recording visits, and serve
        per-link click statistics.

A link is Active while it has no expiry or its expiry has not passed, and
Expired afterwards. The transition is a pure function of the wall clock:
no record is ever written to mark it expired.

Example:
    >>> service = RedirectService(dao)
    >>> service.resolve_and_record('abc123', VisitContext(origin='203.0.113.7'))
    'https://example.com/a'
    >>> service.get_stats('abc123').clicks
    1
"""

import logging
from datetime import datetime
from typing import Any
from collections.abc import Callable

from clickshortener.constants import Event
from clickshortener.dao.base import ShortURLBaseDAO
from clickshortener.dao.exceptions import DataStoreError, ShortURLNotFoundError
from clickshortener.exceptions import ShortcodeExpiredError, ShortcodeNotFoundError, StoreUnavailableError
from clickshortener.models import StatsSnapshot, UrlRecord, VisitContext, VisitEvent
from clickshortener.services.geo import GeoLookup
from clickshortener.utils.helpers import utcnow


logger = logging.getLogger(__name__)


class RedirectService:
    """Resolve short links and track their clicks

    Attributes:
        dao (ShortURLBaseDAO):
            Data store of link records.
        geo (GeoLookup | None):
            Optional best-effort geo lookup. Failures never affect redirects.
        clock (Callable[[], datetime]):
            Source of the current UTC time.
    """

    def __init__(self, dao: ShortURLBaseDAO, geo: GeoLookup | None = None, clock: Callable[[], datetime] = utcnow):
        self.dao = dao
        self.geo = geo
        self.clock = clock

    def resolve_and_record(self, shortcode: str, context: VisitContext) -> str:
        """Resolve a shortcode to its target URL and record the visit

        This method follows this procedure to redirect visitors:
        - Step 1: Get the link record from the data store
        - Step 2: Check the link hasn't expired
        - Step 3: Annotate the visit with geo data (best effort)
        - Step 4: Record the visit (click counter + visit log)
        - Step 5: Return the target URL for the caller to redirect to

        NOTE: Expired links are NOT counted. A failed resolution never has
              side effects on the record.

        Args:
            shortcode (str):
                The shortcode from the short URL.
            context (VisitContext):
                What the caller knows about the visitor (origin IP).

        Returns:
            str: target URL.

        Raises:
            ShortcodeNotFoundError:
                If no link exists for shortcode.
            ShortcodeExpiredError:
                If the link's expiry is strictly before the current time.
            StoreUnavailableError:
                If the data store fails.
        """
        # 1- Get link record
        record = self._find(shortcode)
        logger.debug('Short URL record (shortcode: %s) found in database.', shortcode)

        # 2- Check expiry
        now = self.clock()
        if record.is_expired(now):
            logger.info(
                'Short URL expired. Not redirecting.',
                extra={'shortcode': shortcode, 'event': Event.SHORTCODE_EXPIRED, 'expiry': record.expiry},
            )
            raise ShortcodeExpiredError(f"Short URL with code '{shortcode}' expired.")

        # 3- Annotate visit
        visit = VisitEvent(timestamp=now, origin=context.origin, geo=self._locate(shortcode, context.origin))

        # 4- Record visit
        try:
            clicks = self.dao.record_visit(shortcode, visit)
        except ShortURLNotFoundError as e:  # pragma: no cover
            # Records are never deleted; only reachable with a store wiped mid-request
            raise ShortcodeNotFoundError(f"Short URL with code '{shortcode}' not found.") from e
        except DataStoreError as e:
            logger.exception('Failed to record visit.', extra={'shortcode': shortcode, 'event': Event.DATA_STORE_FAILURE})
            raise StoreUnavailableError('Data store is unavailable.') from e

        # 5- Redirect
        logger.info(
            'Redirecting visitor to target URL.',
            extra={'shortcode': shortcode, 'event': Event.REDIRECT_SUCCESS, 'clicks': clicks},
        )
        return record.target

    def get_stats(self, shortcode: str) -> StatsSnapshot:
        """Return click statistics of a link (read only)

        Statistics are served for expired links too.

        Raises:
            ShortcodeNotFoundError:
                If no link exists for shortcode.
            StoreUnavailableError:
                If the data store fails.
        """
        record = self._find(shortcode)
        logger.info('Statistics retrieved.', extra={'shortcode': shortcode, 'event': Event.STATS_RETRIEVED})
        return StatsSnapshot.from_record(record)

    def _find(self, shortcode: str) -> UrlRecord:
        try:
            record = self.dao.find(shortcode)
        except DataStoreError as e:
            logger.exception('Failed to read short URL.', extra={'shortcode': shortcode, 'event': Event.DATA_STORE_FAILURE})
            raise StoreUnavailableError('Data store is unavailable.') from e

        if record is None:
            logger.info('Short URL record not found in database.', extra={'shortcode': shortcode, 'event': Event.SHORTCODE_NOT_FOUND})
            raise ShortcodeNotFoundError(f"Short URL with code '{shortcode}' not found.")
        return record

    def _locate(self, shortcode: str, origin: str) -> dict[str, Any] | None:
        if self.geo is None or not origin:
            return None
        try:
            return self.geo.locate(origin)
        except Exception:
            logger.warning(
                'Geo lookup failed. Recording visit without location.',
                extra={'shortcode': shortcode, 'event': Event.GEO_LOOKUP_FAILED},
                exc_info=True,
            )
            return None
