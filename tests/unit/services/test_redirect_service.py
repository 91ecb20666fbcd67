"""Unit tests for the RedirectService

Test coverage includes:

1. Redirects
   - Resolving an active link returns its target and records one visit.
   - Unknown shortcodes raise ShortcodeNotFoundError.
   - Expired links raise ShortcodeExpiredError and record nothing.

2. Geo annotation
   - Successful lookups are attached to the visit.
   - Lookup failures are absorbed and the redirect still succeeds.
   - Visits without an origin skip the lookup.

3. Statistics
   - get_stats returns clicks and the visit log, also for expired links.

4. Concurrency
   - N concurrent redirects yield exactly N clicks and N visit entries.
   - Concurrent shortening of the same custom shortcode succeeds exactly once.

5. Data store failures
   - DataStoreError surfaces as StoreUnavailableError.
"""

import threading
from datetime import datetime, timedelta, UTC
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import MagicMock

import pytest

from clickshortener.dao.base import ShortURLBaseDAO
from clickshortener.dao.file import ShortURLFileDAO
from clickshortener.dao.exceptions import DataStoreError
from clickshortener.exceptions import (
    ShortcodeExpiredError,
    ShortcodeNotFoundError,
    ShortcodeTakenError,
    StoreUnavailableError,
)
from clickshortener.models import UrlRecord, VisitContext, VisitEvent
from clickshortener.services import GeoLookup, RedirectService, ShortenerService


NOW = datetime(2025, 10, 15, 12, 0, 0, tzinfo=UTC)


# -------------------------------
# Fixtures
# -------------------------------


@pytest.fixture
def dao(tmp_path):
    return ShortURLFileDAO(tmp_path)


@pytest.fixture
def shortener(dao):
    return ShortenerService(dao, base_url='http://localhost:8080/go', clock=lambda: NOW)


@pytest.fixture
def service(dao):
    return RedirectService(dao, clock=lambda: NOW)


@pytest.fixture
def geo():
    return MagicMock(spec=GeoLookup)


# -------------------------------
# 1. Redirects
# -------------------------------


def test_resolve_and_record(shortener, service):
    shortener.shorten('https://example.com/a', shortcode='abc123')

    target = service.resolve_and_record('abc123', VisitContext(origin='203.0.113.7'))

    assert target == 'https://example.com/a'
    stats = service.get_stats('abc123')
    assert stats.clicks == 1
    assert stats.visits == (VisitEvent(timestamp=NOW, origin='203.0.113.7'),)


def test_resolve_generated_shortcode(shortener, service):
    result = shortener.shorten('https://example.com/a')

    assert service.resolve_and_record(result.shortcode, VisitContext()) == 'https://example.com/a'
    assert service.get_stats(result.shortcode).clicks == 1


def test_resolve_records_every_visit(shortener, service):
    shortener.shorten('https://example.com/a', shortcode='abc123')

    for origin in ('198.51.100.1', '198.51.100.2', ''):
        service.resolve_and_record('abc123', VisitContext(origin=origin))

    stats = service.get_stats('abc123')
    assert stats.clicks == 3
    assert [visit.origin for visit in stats.visits] == ['198.51.100.1', '198.51.100.2', '']


def test_resolve_unknown_shortcode(service):
    with pytest.raises(ShortcodeNotFoundError, match="Short URL with code 'nothere' not found."):
        service.resolve_and_record('nothere', VisitContext())


def test_resolve_expired_link(dao, shortener, service):
    shortener.shorten('https://example.com/a', shortcode='old', expiry=NOW - timedelta(seconds=1))

    with pytest.raises(ShortcodeExpiredError, match="Short URL with code 'old' expired."):
        service.resolve_and_record('old', VisitContext(origin='203.0.113.7'))

    record = dao.get('old')
    assert record.clicks == 0
    assert record.visits == ()


def test_resolve_link_expiring_now_is_active(shortener, service):
    shortener.shorten('https://example.com/a', shortcode='edge', expiry=NOW)

    assert service.resolve_and_record('edge', VisitContext()) == 'https://example.com/a'


def test_link_expires_with_the_clock(dao, shortener):
    shortener.shorten('https://example.com/a', shortcode='soon', expiry=NOW + timedelta(hours=1))
    clock = MagicMock(side_effect=[NOW, NOW + timedelta(hours=2)])
    service = RedirectService(dao, clock=clock)

    assert service.resolve_and_record('soon', VisitContext()) == 'https://example.com/a'
    with pytest.raises(ShortcodeExpiredError):
        service.resolve_and_record('soon', VisitContext())

    assert dao.get('soon').clicks == 1


def test_link_without_expiry_never_expires(dao, shortener):
    shortener.shorten('https://example.com/a', shortcode='forever')
    service = RedirectService(dao, clock=lambda: datetime(9999, 1, 1, tzinfo=UTC))

    assert service.resolve_and_record('forever', VisitContext()) == 'https://example.com/a'


# -------------------------------
# 2. Geo annotation
# -------------------------------


def test_resolve_with_geo(dao, shortener, geo):
    shortener.shorten('https://example.com/a', shortcode='abc123')
    geo.locate.return_value = {'country': 'Bulgaria', 'city': 'Sofia'}
    service = RedirectService(dao, geo=geo, clock=lambda: NOW)

    service.resolve_and_record('abc123', VisitContext(origin='203.0.113.7'))

    geo.locate.assert_called_once_with('203.0.113.7')
    (visit,) = service.get_stats('abc123').visits
    assert visit.geo == {'country': 'Bulgaria', 'city': 'Sofia'}


def test_resolve_with_failing_geo(dao, shortener, geo):
    shortener.shorten('https://example.com/a', shortcode='abc123')
    geo.locate.side_effect = TimeoutError('timed out')
    service = RedirectService(dao, geo=geo, clock=lambda: NOW)

    assert service.resolve_and_record('abc123', VisitContext(origin='203.0.113.7')) == 'https://example.com/a'

    (visit,) = service.get_stats('abc123').visits
    assert visit.geo is None
    assert visit.origin == '203.0.113.7'


def test_resolve_without_origin_skips_geo(dao, shortener, geo):
    shortener.shorten('https://example.com/a', shortcode='abc123')
    service = RedirectService(dao, geo=geo, clock=lambda: NOW)

    service.resolve_and_record('abc123', VisitContext())

    geo.locate.assert_not_called()


def test_expired_link_skips_geo(dao, shortener, geo):
    shortener.shorten('https://example.com/a', shortcode='old', expiry=NOW - timedelta(days=1))
    service = RedirectService(dao, geo=geo, clock=lambda: NOW)

    with pytest.raises(ShortcodeExpiredError):
        service.resolve_and_record('old', VisitContext(origin='203.0.113.7'))

    geo.locate.assert_not_called()


# -------------------------------
# 3. Statistics
# -------------------------------


def test_get_stats(shortener, service):
    shortener.shorten('https://example.com/a', shortcode='abc123', expiry='2026-01-01T00:00:00Z')
    service.resolve_and_record('abc123', VisitContext(origin='203.0.113.7'))

    assert service.get_stats('abc123').to_dict() == {
        'url': 'https://example.com/a',
        'shortcode': 'abc123',
        'clicks': 1,
        'visits': [{'timestamp': '2025-10-15T12:00:00Z', 'origin': '203.0.113.7'}],
        'createdAt': '2025-10-15T12:00:00Z',
        'expiry': '2026-01-01T00:00:00Z',
    }


def test_get_stats_of_new_link(shortener, service):
    shortener.shorten('https://example.com/a', shortcode='abc123')

    stats = service.get_stats('abc123')

    assert stats.clicks == 0
    assert stats.visits == ()


def test_get_stats_of_expired_link(shortener, service):
    shortener.shorten('https://example.com/a', shortcode='old', expiry=NOW - timedelta(days=1))

    assert service.get_stats('old').clicks == 0


def test_get_stats_unknown_shortcode(service):
    with pytest.raises(ShortcodeNotFoundError):
        service.get_stats('nothere')


def test_get_stats_is_read_only(dao, shortener, service):
    shortener.shorten('https://example.com/a', shortcode='abc123')

    service.get_stats('abc123')
    service.get_stats('abc123')

    assert dao.get('abc123').clicks == 0


# -------------------------------
# 4. Concurrency
# -------------------------------


def test_concurrent_redirects_count_every_click(shortener, service):
    shortener.shorten('https://example.com/a', shortcode='hot')
    n = 32
    barrier = threading.Barrier(8)

    def visit(i):
        if i < 8:
            barrier.wait()
        return service.resolve_and_record('hot', VisitContext(origin=f'198.51.100.{i}'))

    with ThreadPoolExecutor(max_workers=8) as executor:
        targets = list(executor.map(visit, range(n)))

    assert targets == ['https://example.com/a'] * n
    stats = service.get_stats('hot')
    assert stats.clicks == n
    assert len(stats.visits) == n
    assert {visit.origin for visit in stats.visits} == {f'198.51.100.{i}' for i in range(n)}


def test_concurrent_custom_shortcode_claims(dao):
    n = 8
    barrier = threading.Barrier(n)

    def claim(i):
        service = ShortenerService(dao, clock=lambda: NOW)
        barrier.wait()
        try:
            service.shorten(f'https://example.com/{i}', shortcode='contested')
        except ShortcodeTakenError:
            return None
        return f'https://example.com/{i}'

    with ThreadPoolExecutor(max_workers=n) as executor:
        winners = [url for url in executor.map(claim, range(n)) if url is not None]

    assert len(winners) == 1
    assert dao.get('contested').target == winners[0]


# -------------------------------
# 5. Data store failures
# -------------------------------


@pytest.fixture
def failing_dao():
    return MagicMock(spec=ShortURLBaseDAO)


def test_resolve_with_failing_lookup(failing_dao):
    failing_dao.find.side_effect = DataStoreError('corrupt record')
    service = RedirectService(failing_dao, clock=lambda: NOW)

    with pytest.raises(StoreUnavailableError):
        service.resolve_and_record('abc123', VisitContext())

    failing_dao.record_visit.assert_not_called()


def test_resolve_with_failing_visit_write(failing_dao):
    failing_dao.find.return_value = UrlRecord(target='https://example.com/a', shortcode='abc123', created_at=NOW)
    failing_dao.record_visit.side_effect = DataStoreError("Can't connect to Redis at redis.test:6379/0.")
    service = RedirectService(failing_dao, clock=lambda: NOW)

    with pytest.raises(StoreUnavailableError) as excinfo:
        service.resolve_and_record('abc123', VisitContext())

    assert isinstance(excinfo.value.__cause__, DataStoreError)


def test_get_stats_with_failing_store(failing_dao):
    failing_dao.find.side_effect = DataStoreError('corrupt record')
    service = RedirectService(failing_dao, clock=lambda: NOW)

    with pytest.raises(StoreUnavailableError):
        service.get_stats('abc123')
