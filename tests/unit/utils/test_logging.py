import io
import json
import logging
from datetime import datetime, UTC

import pytest

from clickshortener.constants import Event
from clickshortener.utils.logging import JsonFormatter, initialize_logging


@pytest.fixture
def logger_and_stream():
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    logger = logging.getLogger('clickshortener.tests.logging')
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    yield logger, stream
    logger.removeHandler(handler)


def test_json_formatter_includes_extras(logger_and_stream):
    logger, _ = logger_and_stream
    record = logger.makeRecord(
        logger.name,
        logging.INFO,
        __file__,
        1,
        'Redirecting visitor to %s.',
        ('target',),
        None,
        extra={'shortcode': 'abc123', 'event': Event.REDIRECT_SUCCESS},
    )
    record.created = datetime(2025, 12, 26, 12, 0, 0, tzinfo=UTC).timestamp()

    log = json.loads(JsonFormatter().format(record))
    assert log == {
        'timestamp': '2025-12-26T12:00:00.000Z',
        'level': 'INFO',
        'logger': 'clickshortener.tests.logging',
        'message': 'Redirecting visitor to target.',
        'shortcode': 'abc123',
        'event': 'REDIRECT_SUCCESS',
    }


def test_json_formatter_includes_exception(logger_and_stream):
    logger, stream = logger_and_stream

    try:
        raise RuntimeError('boom')
    except RuntimeError:
        logger.exception('Failed.')

    log = json.loads(stream.getvalue())
    assert log['level'] == 'ERROR'
    assert 'RuntimeError: boom' in log['exception']


def test_json_formatter_serializes_unknown_types(logger_and_stream):
    logger, stream = logger_and_stream

    logger.warning('Expired.', extra={'expiry': object()})

    assert json.loads(stream.getvalue())['expiry'].startswith('<object object')


def test_initialize_logging_reads_log_level(monkeypatch):
    monkeypatch.setenv('LOG_LEVEL', 'debug')
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level

    try:
        initialize_logging()
        assert root.level == logging.DEBUG
        assert any(isinstance(h.formatter, JsonFormatter) for h in root.handlers)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
